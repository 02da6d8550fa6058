"""
In-memory profile store for development and tests.

Why: Local runs should provision accounts without a Postgres instance. For
production, use `DBProfileStore` (PROFILES_BACKEND=db).
"""
from __future__ import annotations

from typing import Dict, Optional
import copy


class InMemoryProfileStore:
    def __init__(self) -> None:
        self._data: Dict[str, dict] = {}

    def put(self, key: str, record: dict) -> None:
        """Insert or replace the record stored under `key`."""
        self._data[key] = copy.deepcopy(record)

    def get(self, key: str) -> Optional[dict]:
        rec = self._data.get(key)
        return copy.deepcopy(rec) if rec is not None else None

    def __len__(self) -> int:
        return len(self._data)
