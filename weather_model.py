#!/usr/bin/env python3
"""
weather_model.py

Per-day forecast records and the lookup tables the window renders them with:
 - WeatherRecord: one day's attributes, all kept as text like the API sends them
 - Forecast: today + 5 days (optionally a 7th spare day), length-checked
 - parse_condition(text) -> Condition(display_text, icon_key)
 - icon_file(key), icon_path(key), air_quality_color(level)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

ICONS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "icons", "type")

DAYS_SHOWN = 6
MAX_DAYS = 7

TRANSITION_MARK = "转"
WEEK_LABELS = ("今天", "明天", "后天")


def to_int(text) -> int:
    """int() for temperatures sent as text; empty or non-numeric gives 0."""
    try:
        return int(str(text).strip())
    except ValueError:
        return 0


@dataclass
class WeatherRecord:
    city: str = ""
    date: str = ""
    week: str = ""
    condition: str = ""
    temp_current: str = ""
    temp_low: str = ""
    temp_high: str = ""
    wind_direction: str = ""
    wind_level: str = ""
    air_quality: str = ""
    humidity: str = ""
    pm25: str = ""
    advisory: str = ""

    @property
    def high(self) -> int:
        return to_int(self.temp_high)

    @property
    def low(self) -> int:
        return to_int(self.temp_low)


class Forecast:
    """
    Ordered day records. Slot 0 is today and drives the summary panel,
    slots 0-5 drive the day strip and the trend charts. Iteration and len()
    cover those six slots only; a 7th record, when the API sent one, is
    available as `extra`.
    """

    def __init__(self, records: Sequence[WeatherRecord]):
        if len(records) < DAYS_SHOWN:
            raise ValueError(f"Forecast needs {DAYS_SHOWN} days, got {len(records)}")
        self._records = tuple(records[:MAX_DAYS])

    @property
    def today(self) -> WeatherRecord:
        return self._records[0]

    @property
    def city(self) -> str:
        return self.today.city

    @property
    def extra(self) -> Optional[WeatherRecord]:
        return self._records[DAYS_SHOWN] if len(self._records) > DAYS_SHOWN else None

    def day(self, index: int) -> WeatherRecord:
        if not 0 <= index < DAYS_SHOWN:
            raise IndexError(f"day index {index} outside 0..{DAYS_SHOWN - 1}")
        return self._records[index]

    def __len__(self) -> int:
        return DAYS_SHOWN

    def __iter__(self) -> Iterator[WeatherRecord]:
        return iter(self._records[:DAYS_SHOWN])

    def highs(self) -> List[int]:
        return [r.high for r in self]

    def lows(self) -> List[int]:
        return [r.low for r in self]


def week_label(index: int, record: WeatherRecord) -> str:
    if index < len(WEEK_LABELS):
        return WEEK_LABELS[index]
    return record.week


def short_date(record: WeatherRecord) -> str:
    """'2025-09-03' -> '09-03'; anything else is shown as-is."""
    parts = record.date.split("-")
    if len(parts) != 3:
        return record.date
    return f"{parts[1]}-{parts[2]}"


@dataclass(frozen=True)
class Condition:
    display_text: str
    icon_key: str


def parse_condition(text: str) -> Condition:
    """'多云转晴' shows as-is but uses the icon for '晴'."""
    if TRANSITION_MARK in text:
        return Condition(text, text.partition(TRANSITION_MARK)[2])
    return Condition(text, text)


UNDEFINED_ICON = "undefined"

ICON_FILES = {
    "暴雪": "BaoXue.png",
    "暴雨": "BaoYu.png",
    "暴雨到大暴雨": "BaoYuDaoDaBaoYu.png",
    "大暴雨": "DaBaoYu.png",
    "大暴雨到特大暴雨": "DaBaoYuDaoTeDaBaoYu.png",
    "大到暴雪": "DaDaoBaoXue.png",
    "大雪": "DaXue.png",
    "大雨": "DaYu.png",
    "冻雨": "DongYu.png",
    "多云": "DuoYun.png",
    "浮尘": "FuChen.png",
    "雷阵雨": "LeiZhenYu.png",
    "雷阵雨伴有冰雹": "LeiZhenYuBanYouBingBao.png",
    "霾": "Mai.png",
    "强沙尘暴": "QiangShaChenBao.png",
    "晴": "Qing.png",
    "沙尘暴": "ShaChenBao.png",
    "特大暴雨": "TeDaBaoYu.png",
    UNDEFINED_ICON: "undefined.png",
    "雾": "Wu.png",
    "小到中雪": "XiaoDaoZhongXue.png",
    "小到中雨": "XiaoDaoZhongYu.png",
    "小雪": "XiaoXue.png",
    "小雨": "XiaoYu.png",
    "雪": "Xue.png",
    "扬沙": "YangSha.png",
    "阴": "Yin.png",
    "雨": "Yu.png",
    "雨夹雪": "YuJiaXue.png",
    "阵雪": "ZhenXue.png",
    "阵雨": "ZhenYu.png",
    "中到大雪": "ZhongDaoDaXue.png",
    "中到大雨": "ZhongDaoDaYu.png",
    "中雪": "ZhongXue.png",
    "中雨": "ZhongYu.png",
}


def icon_file(icon_key: str) -> str:
    return ICON_FILES.get(icon_key, ICON_FILES[UNDEFINED_ICON])


def icon_path(icon_key: str, icons_dir: str = ICONS_DIR) -> str:
    """Bundled image for a condition, the undefined icon when that file is absent."""
    path = os.path.join(icons_dir, icon_file(icon_key))
    if not os.path.exists(path):
        path = os.path.join(icons_dir, ICON_FILES[UNDEFINED_ICON])
    return path


# badge background per air-quality level, text is always white
AIR_QUALITY_COLORS = {
    "优": "#96d520",
    "良": "#ffaa7f",
    "轻度": "#ffc7c7",
    "中度": "#ff1111",
    "重度": "#990000",
}


def air_quality_color(level: str) -> Optional[str]:
    return AIR_QUALITY_COLORS.get(level)
