from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import timedelta
from typing import Any, NamedTuple

from cachetools import TLRUCache


class ResponseCache(ABC):
    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: Any, ttl: timedelta) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError


class _Entry(NamedTuple):
    value: Any
    ttl_seconds: float


def _ttu(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl_seconds


class InMemoryResponseCache(ResponseCache):
    """
    Process-wide response cache with a per-entry absolute expiry.

    Entries are never invalidated by writes to the underlying data; they only
    expire or get evicted (least recently used first) when `maxsize` is hit.
    Concurrent writers to one key are serialised; the last write wins.
    """

    def __init__(
        self,
        *,
        maxsize: int = 1024,
        timer: Callable[[], float] = time.monotonic,
    ):
        self._cache: TLRUCache[str, _Entry] = TLRUCache(maxsize=maxsize, ttu=_ttu, timer=timer)
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._cache.get(key)
        return default if entry is None else entry.value

    def set(self, key: str, value: Any, ttl: timedelta) -> None:
        with self._lock:
            self._cache[key] = _Entry(value, ttl.total_seconds())

    def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            self._cache.expire()
            return len(self._cache)
