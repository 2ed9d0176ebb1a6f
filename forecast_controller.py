#!/usr/bin/env python3
"""
forecast_controller.py

Drives one forecast request at a time, independent of the window toolkit.

The network call runs through `dispatch` (a daemon thread by default) and its
outcome is handed back through `deliver`, which the window points at its own
event loop (tk's after(0, ...)), so state only changes on the UI thread.
"""

from __future__ import annotations

import enum
import functools
import logging
import threading
from typing import Callable, Optional

from city_codes import CityCodeResolver, validate_city_name
from weather_fetcher import (
    CityNotFoundError,
    NetworkError,
    ParseError,
    WeatherError,
    fetch_forecast_payload,
    parse_forecast,
)
from weather_model import Forecast

logger = logging.getLogger(__name__)

CITY_NOT_FOUND_MSG = "请输入正确的城市名称"
BUSY_MSG = "正在获取天气数据，请稍候"
FETCHING_MSG = "正在获取天气数据..."


class State(enum.Enum):
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"


def _thread_dispatch(target: Callable, *args) -> None:
    threading.Thread(target=target, args=args, daemon=True).start()


def _call_now(fn: Callable[[], None]) -> None:
    fn()


class ForecastController:
    def __init__(
        self,
        resolver: CityCodeResolver,
        fetch: Callable[[Optional[str]], bytes] = fetch_forecast_payload,
        dispatch: Callable = _thread_dispatch,
        deliver: Callable[[Callable[[], None]], None] = _call_now,
        on_forecast: Optional[Callable[[Forecast], None]] = None,
        on_error: Optional[Callable[[WeatherError], None]] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ):
        self.resolver = resolver
        self.fetch = fetch
        self.dispatch = dispatch
        self.deliver = deliver
        self.on_forecast = on_forecast
        self.on_error = on_error
        self.on_status = on_status

        self.state = State.IDLE
        self.forecast: Optional[Forecast] = None
        self.last_city_code: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self.state is State.AWAITING_RESPONSE

    # ---------- actions ----------
    def submit(self, query: str) -> bool:
        """Resolve a typed city name and request its forecast."""
        if self._reject_if_busy():
            return False

        city = (query or "").strip()
        code = self.resolver.resolve(city) if validate_city_name(city) else ""
        if not code:
            logger.info("No city code for %r", city)
            self._report_error(CityNotFoundError(CITY_NOT_FOUND_MSG))
            return False

        self._request(code)
        return True

    def refresh(self, city_code: Optional[str] = None) -> bool:
        """Request without resolving; no code lets the API pick the location."""
        if self._reject_if_busy():
            return False
        self._request(city_code)
        return True

    # ---------- request lifecycle ----------
    def _reject_if_busy(self) -> bool:
        if not self.busy:
            return False
        logger.warning("Request rejected, one is already in flight")
        self._report_status(BUSY_MSG)
        return True

    def _request(self, city_code: Optional[str]) -> None:
        self.state = State.AWAITING_RESPONSE
        self.last_city_code = city_code
        self._report_status(FETCHING_MSG)
        self.dispatch(self._fetch_worker, city_code)

    def _fetch_worker(self, city_code: Optional[str]) -> None:
        try:
            payload = self.fetch(city_code)
        except WeatherError as e:
            self.deliver(functools.partial(self._on_failure, e))
            return
        except Exception as e:
            logger.exception("Unexpected error while fetching forecast")
            err = NetworkError(f"Network error: {e}")
            err.__cause__ = e
            self.deliver(functools.partial(self._on_failure, err))
            return
        self.deliver(functools.partial(self._on_payload, payload))

    def _on_payload(self, payload: bytes) -> None:
        self.state = State.IDLE
        try:
            forecast = parse_forecast(payload)
        except ParseError as e:
            logger.warning("Discarding forecast response: %s", e)
            self._report_error(e)
            return
        self.forecast = forecast
        logger.info("Forecast updated for %s", forecast.city or "<unknown city>")
        if self.on_forecast:
            self.on_forecast(forecast)

    def _on_failure(self, error: WeatherError) -> None:
        self.state = State.IDLE
        logger.warning("Forecast request failed: %s", error)
        self._report_error(error)

    def _report_error(self, error: WeatherError) -> None:
        if self.on_error:
            self.on_error(error)

    def _report_status(self, text: str) -> None:
        if self.on_status:
            self.on_status(text)
