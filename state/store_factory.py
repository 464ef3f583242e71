"""
Store Factory — Create the right state store backend from configuration.

Configuration in settings.yaml:
    state:
      # Where conversation state lives
      #   "memory"   — In-memory dicts (development, testing)
      #   "file"     — JSON files on disk (small deployments, demos)
      store_backend: "memory"

      # For file backend: directory path
      store_file_dir: "./data"

Usage:
    from state.store_factory import create_state_store
    store = create_state_store({"store_backend": "file", "store_file_dir": "/tmp/bot"})
"""
from __future__ import annotations

import structlog
from typing import Any, Union

from config.settings import StateConfig
from state.store_base import BaseStateStore

logger = structlog.get_logger()


def create_state_store(config: Union[StateConfig, dict[str, Any]] = None) -> BaseStateStore:
    """
    Factory: create the appropriate state store backend.

    Args:
        config: StateConfig or dict with keys:
            store_backend: "memory" | "file"  (default: "memory")
            store_file_dir: str (for file backend, default: "./data")
    """
    if isinstance(config, StateConfig):
        config = {"store_backend": config.store_backend, "store_file_dir": config.store_file_dir}
    config = config or {}
    backend = config.get("store_backend", "memory")

    if backend == "file":
        from state.store_file import FileStateStore
        data_dir = config.get("store_file_dir", "./data")
        store = FileStateStore(data_dir=data_dir)
        logger.info("state_store_created", backend="file", data_dir=data_dir)
        return store

    if backend != "memory":
        logger.warning("unknown_state_store_backend", backend=backend, using="memory")

    from state.store_memory import InMemoryStateStore
    store = InMemoryStateStore()
    logger.info("state_store_created", backend="memory")
    return store
