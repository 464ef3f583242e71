"""
FileStateStore — JSON file-backed store with persistence across restarts.

Data layout:
  {data_dir}/
    user_profile.json
    dialog_state.json
    ...one file per state property

Features:
  - Survives process restarts (unlike InMemoryStateStore)
  - No external dependencies (no database server, no Redis)
  - Flush on every mutation, atomic rename
  - Single-process only (no concurrent write safety)

Best for: small deployments, demos, air-gapped environments.
"""
from __future__ import annotations

import json
import structlog
from pathlib import Path
from typing import Any

from state.store_memory import InMemoryStateStore

logger = structlog.get_logger()


class FileStateStore(InMemoryStateStore):
    """
    Extends InMemoryStateStore with JSON file persistence.

    On init: loads every *.json file in data_dir into memory.
    On every write: flushes the changed property to disk.
    """

    def __init__(self, data_dir: str = "./data"):
        super().__init__()
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._load_all()
        logger.info("file_state_store_initialized", data_dir=str(self._data_dir))

    # ── Load / Save ───────────────────────────────────────

    def _file_path(self, name: str) -> Path:
        return self._data_dir / f"{name}.json"

    def _load_all(self):
        for path in sorted(self._data_dir.glob("*.json")):
            try:
                with open(path, "r") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("file_state_store_load_error",
                               file=path.name, error=str(e))
                continue
            if isinstance(data, dict):
                self._data[path.stem] = data
                logger.debug("file_state_store_loaded",
                             name=path.stem, records=len(data))

    def _flush(self, name: str):
        path = self._file_path(name)
        tmp_path = path.with_suffix(".tmp")
        with open(tmp_path, "w") as f:
            json.dump(self._data.get(name, {}), f, indent=2, default=str)
        tmp_path.rename(path)  # atomic on POSIX

    def flush_all(self):
        for name in list(self._data.keys()):
            self._flush(name)
        logger.info("file_state_store_flushed_all")

    # ── Override write methods to trigger persistence ──────

    async def write(self, name: str, conversation_key: str, data: dict[str, Any]) -> None:
        await super().write(name, conversation_key, data)
        self._flush(name)

    async def delete(self, name: str, conversation_key: str) -> None:
        await super().delete(name, conversation_key)
        self._flush(name)
