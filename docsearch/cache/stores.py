"""Result cache backends.

Entries expire lazily: an expired entry is deleted by the ``get`` that finds
it, nothing sweeps the store in the background. Concurrent writers to the
same key resolve as last-writer-wins.
"""

import hashlib
import json
import logging
import os
import tempfile
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from docsearch.core.config import Settings

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class CacheStore(ABC):
    """Key-value store with per-entry TTL."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when absent or expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int) -> None:
        """Store a value for ``ttl`` seconds."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a single entry if present."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry."""


class MemoryCacheStore(CacheStore):
    def __init__(self, clock: Clock = time.time) -> None:
        self._lock = threading.Lock()
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() > expires_at:
                self._entries.pop(key, None)
                return None
            return value

    def set(self, key: str, value: Any, ttl: int) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + ttl, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class FileCacheStore(CacheStore):
    """One JSON file per key under ``cache_dir``."""

    SUFFIX = ".json"

    def __init__(self, cache_dir: str | Path, clock: Clock = time.time) -> None:
        self._root = Path(cache_dir).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)
        self._clock = clock

    def get(self, key: str) -> Optional[Any]:
        path = self._entry_path(key)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning("Dropping unreadable cache entry %s: %s", path.name, e)
            path.unlink(missing_ok=True)
            return None

        if self._clock() > float(data.get("expires_at", 0)):
            # Another reader may have removed it already.
            path.unlink(missing_ok=True)
            return None
        return data.get("value")

    def set(self, key: str, value: Any, ttl: int) -> None:
        now = self._clock()
        payload = json.dumps(
            {"value": value, "expires_at": now + ttl, "created_at": now},
            ensure_ascii=False,
        )
        path = self._entry_path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self._root, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> None:
        self._entry_path(key).unlink(missing_ok=True)

    def clear(self) -> None:
        for path in self._root.glob(f"*{self.SUFFIX}"):
            path.unlink(missing_ok=True)

    def _entry_path(self, key: str) -> Path:
        digest = hashlib.md5(key.encode("utf-8")).hexdigest()
        return self._root / f"{digest}{self.SUFFIX}"


def build_cache_store(settings: Settings) -> CacheStore:
    if settings.cache_backend == "file":
        return FileCacheStore(settings.cache_dir)
    return MemoryCacheStore()
