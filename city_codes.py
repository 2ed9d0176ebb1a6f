#!/usr/bin/env python3
"""
city_codes.py

City name -> weather API city code lookup backed by the bundled citycode.json:
 - CityCodeResolver(dataset_path).resolve(name) -> str ("" when not found)
 - validate_city_name(text) -> bool

The dataset is read lazily on the first lookup and at most once per resolver.
A missing or corrupt dataset is logged and leaves the table empty, so every
lookup misses until the process restarts.
"""

from __future__ import annotations

import os
import re
import json
import logging
from types import MappingProxyType
from typing import Dict, List, Mapping

logger = logging.getLogger(__name__)

DATASET_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "citycode.json")

# tried in this order after an exact miss
SUFFIXES = ("市", "县", "区")

_CITY_NAME_RE = re.compile(r"[\u4e00-\u9fa5A-Za-z0-9]{1,20}")


def validate_city_name(text: str) -> bool:
    """1-20 characters of Chinese, ASCII letters or digits."""
    return bool(text) and _CITY_NAME_RE.fullmatch(text) is not None


class CityCodeResolver:
    def __init__(self, dataset_path: str = DATASET_PATH):
        self.dataset_path = dataset_path
        self._table: Dict[str, str] = {}
        self._load_attempted = False

    @property
    def loaded(self) -> bool:
        return self._load_attempted

    @property
    def table(self) -> Mapping[str, str]:
        return MappingProxyType(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def _read_entries(self) -> List:
        with open(self.dataset_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def load(self) -> None:
        """Populate the table from the dataset. Later calls are no-ops."""
        if self._load_attempted:
            return
        self._load_attempted = True

        try:
            entries = self._read_entries()
        except (OSError, ValueError) as e:
            logger.warning("City dataset %s could not be loaded: %s", self.dataset_path, e)
            return
        if not isinstance(entries, list):
            logger.warning("City dataset %s is not a JSON array", self.dataset_path)
            return

        table: Dict[str, str] = {}
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            name = entry.get("city_name")
            code = entry.get("city_code")
            if isinstance(name, str) and isinstance(code, str) and name and code:
                table[name] = code
        self._table = table
        logger.info("Loaded %d city codes", len(table))

    def resolve(self, city_name: str) -> str:
        """
        Exact match first, then city_name + "市", + "县", + "区".
        Returns "" when none of them is in the table.
        """
        if not self._load_attempted:
            self.load()

        for candidate in (city_name,) + tuple(city_name + s for s in SUFFIXES):
            code = self._table.get(candidate)
            if code is not None:
                return code
        return ""
