"""
State Property Accessor — typed get/set of one named piece of
per-conversation state.

The conversation key is always passed explicitly; nothing is read from an
ambient turn object. Values cross the boundary as pydantic models and are
stored as JSON-mode dicts, so callers never share a mutable instance with
the store or with another conversation.
"""
from __future__ import annotations

from typing import Generic, Optional, Type, TypeVar

from pydantic import BaseModel

from state.store_base import BaseStateStore

M = TypeVar("M", bound=BaseModel)


class StatePropertyAccessor(Generic[M]):

    def __init__(self, store: BaseStateStore, name: str, model: Type[M]):
        self.store = store
        self.name = name
        self.model = model

    async def get(self, conversation_key: str) -> Optional[M]:
        data = await self.store.read(self.name, conversation_key)
        if data is None:
            return None
        return self.model.model_validate(data)

    async def set(self, conversation_key: str, value: M) -> None:
        await self.store.write(self.name, conversation_key, value.model_dump(mode="json"))

    async def delete(self, conversation_key: str) -> None:
        await self.store.delete(self.name, conversation_key)

    def __repr__(self):
        return f"<StatePropertyAccessor {self.name}:{self.model.__name__}>"
