import pytest

import weather_fetcher
from forecast_controller import BUSY_MSG, FETCHING_MSG, ForecastController, State
from weather_fetcher import (
    CityNotFoundError,
    NetworkError,
    ParseError,
    WeatherConfig,
    build_request_url,
)
from conftest import make_payload


class Harness:
    """Collects callbacks; requests stay pending until complete() is called."""

    def __init__(self, resolver, payload=None, error=None, synchronous=True):
        self.requested = []
        self.pending = []
        self.forecasts = []
        self.errors = []
        self.statuses = []
        self.payload = payload if payload is not None else make_payload()
        self.error = error
        self.synchronous = synchronous
        self.controller = ForecastController(
            resolver,
            fetch=self.fetch,
            dispatch=self.dispatch,
            deliver=lambda fn: fn(),
            on_forecast=self.forecasts.append,
            on_error=self.errors.append,
            on_status=self.statuses.append,
        )

    def fetch(self, city_code):
        self.requested.append(city_code)
        if self.error is not None:
            raise self.error
        return self.payload

    def dispatch(self, target, *args):
        if self.synchronous:
            target(*args)
        else:
            self.pending.append((target, args))

    def complete(self):
        target, args = self.pending.pop(0)
        target(*args)


def test_submit_resolves_with_city_suffix(resolver):
    h = Harness(resolver)
    assert h.controller.submit("北京") is True
    assert h.requested == ["101010100"]
    assert h.controller.state is State.IDLE
    assert h.controller.last_city_code == "101010100"
    assert len(h.forecasts) == 1
    assert h.controller.forecast is h.forecasts[0]
    assert h.controller.forecast.city == "北京"
    assert h.errors == []


def test_submit_builds_url_with_cityid(resolver):
    h = Harness(resolver)
    h.controller.submit(" 北京 ")
    cfg = WeatherConfig(base_url="http://example.test/api", app_id="a", app_secret="b")
    assert "cityid=101010100" in build_request_url(cfg, h.controller.last_city_code)


def test_unknown_city_reports_error_without_request(resolver):
    h = Harness(resolver)
    assert h.controller.submit("火星") is False
    assert h.requested == []
    assert h.controller.state is State.IDLE
    assert len(h.errors) == 1
    assert isinstance(h.errors[0], CityNotFoundError)


@pytest.mark.parametrize("query", ["", "   ", "北京!", "x" * 21])
def test_invalid_input_is_rejected_before_resolving(resolver, query, monkeypatch):
    h = Harness(resolver)
    monkeypatch.setattr(resolver, "resolve", lambda name: pytest.fail("resolver called"))
    assert h.controller.submit(query) is False
    assert isinstance(h.errors[0], CityNotFoundError)


def test_network_failure_keeps_stale_forecast(resolver):
    h = Harness(resolver)
    h.controller.submit("北京")
    previous = h.controller.forecast

    h.error = NetworkError("API error: HTTP 500")
    assert h.controller.submit("海淀") is True
    assert h.requested == ["101010100", "101010200"]
    assert h.controller.state is State.IDLE
    assert h.controller.forecast is previous
    assert len(h.forecasts) == 1
    assert isinstance(h.errors[0], NetworkError)


def test_empty_data_leaves_display_unchanged(resolver):
    h = Harness(resolver)
    h.controller.submit("北京")
    previous = h.controller.forecast

    h.payload = make_payload(days=0)
    h.controller.submit("北京")
    assert h.controller.forecast is previous
    assert len(h.forecasts) == 1
    assert isinstance(h.errors[0], ParseError)
    assert h.controller.state is State.IDLE


def test_malformed_payload_is_reported(resolver):
    h = Harness(resolver, payload=b"<html>oops</html>")
    h.controller.refresh()
    assert h.controller.forecast is None
    assert isinstance(h.errors[0], ParseError)


def test_refresh_without_code(resolver):
    h = Harness(resolver)
    assert h.controller.refresh() is True
    assert h.requested == [None]
    assert h.controller.forecast.today.pm25 == "35"


def test_second_submit_rejected_while_awaiting(resolver):
    h = Harness(resolver, synchronous=False)
    assert h.controller.submit("北京") is True
    assert h.controller.state is State.AWAITING_RESPONSE
    assert h.controller.busy

    assert h.controller.submit("海淀") is False
    assert h.controller.refresh() is False
    assert h.statuses[-1] == BUSY_MSG
    assert len(h.pending) == 1

    h.complete()
    assert h.requested == ["101010100"]
    assert h.controller.state is State.IDLE
    assert h.controller.submit("海淀") is True


def test_missing_credentials_surface_as_error(resolver, monkeypatch):
    monkeypatch.delenv("WEATHER_APPID", raising=False)
    monkeypatch.delenv("WEATHER_APPSECRET", raising=False)
    errors = []
    controller = ForecastController(
        resolver,
        dispatch=lambda target, *args: target(*args),
        on_error=errors.append,
    )
    controller.refresh()
    assert isinstance(errors[0], weather_fetcher.ConfigError)
    assert controller.state is State.IDLE


def test_unexpected_fetch_error_returns_to_idle(resolver):
    h = Harness(resolver, error=UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"))
    assert h.controller.submit("北京") is True
    assert h.controller.state is State.IDLE
    assert not h.controller.busy
    assert isinstance(h.errors[0], NetworkError)
    assert isinstance(h.errors[0].__cause__, UnicodeDecodeError)

    h.error = None
    assert h.controller.submit("北京") is True
    assert len(h.forecasts) == 1


def test_status_announces_fetch(resolver):
    h = Harness(resolver, synchronous=False)
    h.controller.submit("北京")
    assert h.statuses == [FETCHING_MSG]
