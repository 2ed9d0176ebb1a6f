import json

import pytest

from city_codes import CityCodeResolver


def make_day(i, **overrides):
    day = {
        "date": f"2025-09-{3 + i:02d}",
        "week": f"星期{'一二三四五六日'[i % 7]}",
        "wea": "多云转晴" if i == 0 else "晴",
        "tem": str(20 + i),
        "tem1": str(28 + i),
        "tem2": str(15 + i),
        "win": ["北风", "西北风"],
        "win_speed": "3-4级",
        "air_level": "良",
        "humidity": "45%",
        "index": [{"desc": "a"}, {"desc": "b"}, {"desc": "c"}, {"desc": f"advice {i}"}],
    }
    day.update(overrides)
    return day


def make_payload(days=6, **root_overrides) -> bytes:
    root = {
        "city": "北京",
        "aqi": {"pm25": "35"},
        "data": [make_day(i) for i in range(days)],
    }
    root.update(root_overrides)
    return json.dumps(root, ensure_ascii=False).encode("utf-8")


@pytest.fixture
def dataset(tmp_path):
    path = tmp_path / "citycode.json"
    path.write_text(json.dumps([
        {"city_name": "北京市", "city_code": "101010100"},
        {"city_name": "海淀区", "city_code": "101010200"},
        {"city_name": "正定县", "city_code": "101090103"},
        {"city_name": "香港", "city_code": "101320101"},
        {"city_name": "宁乡市", "city_code": "101250102"},
        {"city_name": "宁乡县", "city_code": "999999999"},
    ], ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def resolver(dataset):
    return CityCodeResolver(str(dataset))
