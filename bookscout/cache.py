"""Short-lived in-memory cache of final search results."""

import threading
import time
from dataclasses import dataclass
from typing import Callable

from bookscout.models import Book

DEFAULT_TTL_SECONDS = 300
DEFAULT_MAX_ENTRIES = 100


@dataclass
class CacheEntry:
    books: list[Book]
    inserted_at: float


def cache_key(text: str, language: str = "any", max_results: int = 20) -> str:
    return f"{' '.join(text.split()).lower()}|{language}|{max_results}"


class ResultCache:
    """TTL cache with a soft size bound.

    Expired entries are only swept when a write pushes the cache past
    ``max_entries``; if the cache is still full afterwards, the oldest
    insertion is dropped.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> list[Book] | None:
        entry = self._entries.get(key)
        if entry is None or self._clock() - entry.inserted_at >= self.ttl:
            return None
        return list(entry.books)

    def put(self, key: str, books: list[Book]) -> None:
        with self._lock:
            now = self._clock()
            self._entries[key] = CacheEntry(list(books), now)
            if len(self._entries) > self.max_entries:
                self._sweep(now)
            if len(self._entries) > self.max_entries:
                oldest = min(self._entries, key=lambda k: self._entries[k].inserted_at)
                self._entries.pop(oldest, None)

    def _sweep(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if now - e.inserted_at >= self.ttl]
        for k in expired:
            del self._entries[k]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
