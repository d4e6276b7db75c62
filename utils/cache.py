"""
utils/cache.py

Explicit cache for loaded record collections.

Loaders pass a version token (usually the source file's mtime); a cached
value is reused until the token changes or the entry is invalidated.
Analytics code never reads or writes the cache; callers fetch a snapshot
and hand it to the engine.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Hashable, Optional


@dataclass
class _Entry:
    version: Any
    value: Any


class RecordCache:

    def __init__(self) -> None:
        self._entries: Dict[Hashable, _Entry] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable, loader: Callable[[], Any], version: Any = None) -> Any:
        """
        Return the cached value for `key`, calling `loader` when the entry is
        missing or its version differs from `version`.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.version == version:
                return entry.value

        value = loader()

        with self._lock:
            self._entries[key] = _Entry(version=version, value=value)
        return value

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        """Drop one entry, or everything when key is None."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def mtime_version(path: Path) -> Optional[float]:
    path = Path(path)
    if not path.exists():
        return None
    return path.stat().st_mtime
