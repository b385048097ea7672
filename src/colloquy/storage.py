"""Key/value storage for conversation and user records."""

from __future__ import annotations

import copy
import json
import os
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol, TypeAlias
from urllib.parse import quote, unquote

from loguru import logger

STATE_FILE_SUFFIX = ".json"

StoreItem: TypeAlias = dict[str, Any]


class Storage(Protocol):
    """Minimal async contract for storage providers."""

    async def read(self, keys: Iterable[str]) -> dict[str, StoreItem]: ...

    async def write(self, changes: dict[str, StoreItem]) -> None: ...

    async def delete(self, keys: Iterable[str]) -> None: ...


def conversation_key(conversation_id: str) -> str:
    return f"conversations/{conversation_id}"


def user_key(user_id: str) -> str:
    return f"users/{user_id}"


class MemoryStorage:
    """In-process storage. Items are deep-copied in and out."""

    def __init__(self) -> None:
        self._items: dict[str, StoreItem] = {}
        self._lock = threading.Lock()

    async def read(self, keys: Iterable[str]) -> dict[str, StoreItem]:
        with self._lock:
            return {key: copy.deepcopy(self._items[key]) for key in keys if key in self._items}

    async def write(self, changes: dict[str, StoreItem]) -> None:
        staged = {key: copy.deepcopy(item) for key, item in changes.items()}
        with self._lock:
            self._items.update(staged)

    async def delete(self, keys: Iterable[str]) -> None:
        with self._lock:
            for key in keys:
                self._items.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._items)


class FileStorage:
    """One JSON document per key under ``<home>/state``."""

    def __init__(self, home: Path) -> None:
        self._root = (home / "state").resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    @property
    def root(self) -> Path:
        return self._root

    async def read(self, keys: Iterable[str]) -> dict[str, StoreItem]:
        items: dict[str, StoreItem] = {}
        with self._lock:
            for key in keys:
                item = self._read_locked(key)
                if item is not None:
                    items[key] = item
        return items

    async def write(self, changes: dict[str, StoreItem]) -> None:
        # Serialize everything first so a bad value cannot leave a partial batch.
        encoded = {key: json.dumps(item, ensure_ascii=False) for key, item in changes.items()}
        with self._lock:
            for key, text in encoded.items():
                path = self._path(key)
                temp = path.with_suffix(f"{STATE_FILE_SUFFIX}.tmp")
                temp.write_text(text, encoding="utf-8")
                os.replace(temp, path)

    async def delete(self, keys: Iterable[str]) -> None:
        with self._lock:
            for key in keys:
                self._path(key).unlink(missing_ok=True)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(
                unquote(path.name.removesuffix(STATE_FILE_SUFFIX)) for path in self._root.glob(f"*{STATE_FILE_SUFFIX}")
            )

    def _read_locked(self, key: str) -> StoreItem | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("storage.corrupt key={} path={}", key, path)
            return None
        if not isinstance(payload, dict):
            return None
        return payload

    def _path(self, key: str) -> Path:
        return self._root / f"{quote(key, safe='')}{STATE_FILE_SUFFIX}"
