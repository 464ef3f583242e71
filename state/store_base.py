"""
Abstract State Store — Interface for all conversation state backends.

Implementations:
  - InMemoryStateStore (dict-based, single-process, no persistence)
  - FileStateStore     (JSON files on disk, single-process, durable)

A store holds plain JSON-able dicts grouped by property name and keyed by
conversation. Typed access goes through StatePropertyAccessor, which the
dialog engine and the flows use instead of touching the store directly.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional, Type

from pydantic import BaseModel


class BaseStateStore(ABC):
    """Interface that all state store backends must implement."""

    @abstractmethod
    async def read(self, name: str, conversation_key: str) -> Optional[dict[str, Any]]:
        ...

    @abstractmethod
    async def write(self, name: str, conversation_key: str, data: dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def delete(self, name: str, conversation_key: str) -> None:
        ...

    def create_property(self, name: str, model: Type[BaseModel]) -> "StatePropertyAccessor":
        from state.accessor import StatePropertyAccessor
        return StatePropertyAccessor(self, name, model)
