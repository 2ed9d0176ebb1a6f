#!/usr/bin/env python3
"""
weather_fetcher.py

Safe helpers for the tianqiapi multi-day forecast:
 - load_config() -> WeatherConfig
 - build_request_url(config, city_code=None) -> str
 - fetch_forecast_payload(city_code=None, config=None) -> bytes
 - parse_forecast(payload) -> Forecast

This file loads WEATHER_APPID / WEATHER_APPSECRET from .env if present. It does NOT
raise at import time when they are missing; instead a request gives a helpful
ConfigError.
"""

from __future__ import annotations

import os
import json
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

import requests
from dotenv import load_dotenv

from weather_model import DAYS_SHOWN, MAX_DAYS, Forecast, WeatherRecord

# Load .env (if present)
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_BASE = "http://gfeljm.tianqiapi.com/api"
DEFAULT_VERSION = "v9"
# requests never times out on its own; a hung call would keep the window busy for good
DEFAULT_TIMEOUT = 12.0

# position of the advisory entry inside each day's "index" array
ADVISORY_INDEX = 3


class WeatherError(RuntimeError):
    """Base for everything the widget reports to the user."""


class ConfigError(WeatherError):
    pass


class NetworkError(WeatherError):
    pass


class ParseError(WeatherError):
    pass


class CityNotFoundError(WeatherError):
    pass


@dataclass(frozen=True)
class WeatherConfig:
    base_url: str
    app_id: str
    app_secret: str
    version: str = DEFAULT_VERSION
    timeout: float = DEFAULT_TIMEOUT


def load_config() -> WeatherConfig:
    app_id = os.getenv("WEATHER_APPID", "").strip()
    app_secret = os.getenv("WEATHER_APPSECRET", "").strip()
    if not app_id or not app_secret:
        raise ConfigError(
            "WEATHER_APPID / WEATHER_APPSECRET are not set. Create a .env file with:\n"
            "WEATHER_APPID=your_app_id\n"
            "WEATHER_APPSECRET=your_app_secret"
        )
    try:
        timeout = float(os.getenv("WEATHER_TIMEOUT", DEFAULT_TIMEOUT))
    except ValueError:
        raise ConfigError("WEATHER_TIMEOUT must be a number of seconds")
    return WeatherConfig(
        base_url=os.getenv("WEATHER_API_BASE") or DEFAULT_BASE,
        app_id=app_id,
        app_secret=app_secret,
        version=os.getenv("WEATHER_API_VERSION") or DEFAULT_VERSION,
        timeout=timeout,
    )


def build_params(config: WeatherConfig, city_code: Optional[str] = None) -> Dict[str, str]:
    params = {
        "unescape": "1",
        "version": config.version,
        "appid": config.app_id,
        "appsecret": config.app_secret,
    }
    if city_code:
        params["cityid"] = city_code
    return params


def build_request_url(config: WeatherConfig, city_code: Optional[str] = None) -> str:
    req = requests.Request("GET", config.base_url, params=build_params(config, city_code))
    return req.prepare().url


def fetch_forecast_payload(city_code: Optional[str] = None,
                           config: Optional[WeatherConfig] = None) -> bytes:
    """
    One GET against the forecast API. Returns the raw response body.

    Raises ConfigError when credentials are missing and NetworkError on transport
    errors or any status other than 200.
    """
    if config is None:
        config = load_config()
    logger.info("Requesting forecast (cityid=%s)", city_code or "<auto>")
    try:
        resp = requests.get(config.base_url, params=build_params(config, city_code),
                            timeout=config.timeout)
    except requests.RequestException as e:
        raise NetworkError(f"Network error: {e}") from e
    if resp.status_code != 200:
        raise NetworkError(f"API error: HTTP {resp.status_code}")
    return resp.content


# ----------------- parsing -----------------
def _text(value) -> str:
    """Leaf value as text; missing or structured values degrade to ''."""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _first(value):
    return value[0] if isinstance(value, list) and value else None


def _advisory(day: dict) -> str:
    index = day.get("index")
    if not isinstance(index, list) or len(index) <= ADVISORY_INDEX:
        return ""
    entry = index[ADVISORY_INDEX]
    return _text(entry.get("desc")) if isinstance(entry, dict) else ""


def _parse_day(day, city: str) -> WeatherRecord:
    if not isinstance(day, dict):
        day = {}
    return WeatherRecord(
        city=city,
        date=_text(day.get("date")),
        week=_text(day.get("week")),
        condition=_text(day.get("wea")),
        temp_current=_text(day.get("tem")),
        temp_low=_text(day.get("tem2")),
        temp_high=_text(day.get("tem1")),
        wind_direction=_text(_first(day.get("win"))),
        wind_level=_text(day.get("win_speed")),
        air_quality=_text(day.get("air_level")),
        humidity=_text(day.get("humidity")),
        advisory=_advisory(day),
    )


def parse_forecast(payload: Union[bytes, str]) -> Forecast:
    """
    Turn the API's JSON body into a Forecast:

    {
      "city": "北京",
      "aqi": {"pm25": "35", ...},
      "data": [
        {"date": "2025-09-03", "week": "星期三", "wea": "多云转晴",
         "tem": "25", "tem1": "29", "tem2": "18",
         "win": ["北风", ...], "win_speed": "3-4级", "air_level": "良",
         "humidity": "45%", "index": [..., ..., ..., {"desc": "..."}]},
        ...
      ]
    }

    Missing leaf fields become "". Raises ParseError when the body is not a JSON
    object, has no "data" array, or has fewer than six days.
    """
    try:
        root = json.loads(payload)
    except ValueError as e:
        raise ParseError(f"Invalid JSON response from server: {e}") from e
    if not isinstance(root, dict):
        raise ParseError("Forecast response is not a JSON object")
    data = root.get("data")
    if not isinstance(data, list):
        raise ParseError("Forecast response has no 'data' array")
    if len(data) < DAYS_SHOWN:
        raise ParseError(f"Forecast response has {len(data)} days, expected {DAYS_SHOWN}")

    city = _text(root.get("city"))
    records: List[WeatherRecord] = [_parse_day(day, city) for day in data[:MAX_DAYS]]
    aqi = root.get("aqi")
    if isinstance(aqi, dict):
        records[0].pm25 = _text(aqi.get("pm25"))
    return Forecast(records)
