"""
InMemoryStateStore — Dict-backed store for development and testing.

Features:
  - Zero dependencies (no database, no Redis)
  - Copies on read and write, so no two conversations (or callers) ever
    share a mutable record
  - All data lost on process restart

Best for: local development, unit tests, quick prototyping.
"""
from __future__ import annotations

import copy
import structlog
from collections import defaultdict
from typing import Any, Optional

from state.store_base import BaseStateStore

logger = structlog.get_logger()


class InMemoryStateStore(BaseStateStore):

    def __init__(self):
        self._data: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)   # name → key → record
        logger.info("inmemory_state_store_initialized")

    async def read(self, name: str, conversation_key: str) -> Optional[dict[str, Any]]:
        record = self._data.get(name, {}).get(conversation_key)
        return copy.deepcopy(record) if record is not None else None

    async def write(self, name: str, conversation_key: str, data: dict[str, Any]) -> None:
        self._data[name][conversation_key] = copy.deepcopy(data)

    async def delete(self, name: str, conversation_key: str) -> None:
        self._data.get(name, {}).pop(conversation_key, None)

    def conversation_keys(self, name: str) -> list[str]:
        return list(self._data.get(name, {}).keys())

    @property
    def count(self) -> int:
        return sum(len(records) for records in self._data.values())
