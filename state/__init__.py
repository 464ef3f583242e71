"""
State layer — per-conversation storage behind a narrow accessor contract.

Backends:
  - In-memory (dict-based, for development/testing)
  - File (JSON files on disk, for small deployments)

Quick start:
  from state import create_state_store
  store = create_state_store({"store_backend": "memory"})
  profiles = store.create_property("user_profile", UserProfile)
  profile = await profiles.get("conv-1")
"""
from state.store_base import BaseStateStore
from state.accessor import StatePropertyAccessor
from state.store_memory import InMemoryStateStore
from state.store_file import FileStateStore
from state.store_factory import create_state_store

__all__ = [
    "BaseStateStore", "StatePropertyAccessor",
    "InMemoryStateStore", "FileStateStore",
    "create_state_store",
]
