"""Base adapter that all book-data providers must implement."""

import asyncio
import logging
import time
from abc import ABC, abstractmethod

import httpx

from bookscout.models import Book, ProviderResult, SearchFilters, Source

log = logging.getLogger(__name__)

DEFAULT_HEADERS = {"User-Agent": "BookScout/0.1 (+https://github.com/bookscout)"}


def secure_url(url: str | None) -> str | None:
    """Upgrade insecure image URLs to https."""
    if not url:
        return None
    if url.startswith("http://"):
        return "https://" + url[len("http://"):]
    return url


class BaseAdapter(ABC):
    """Interface for a book-data source.

    To add a new provider, subclass this and implement ``_search``. Drop the
    file into bookscout/adapters/ and register it in the adapter registry.
    ``search`` itself never raises: any transport or parse error is logged and
    turned into an empty ``ProviderResult``.
    """

    # Provider-local timeout in seconds, for sources known to be flaky.
    timeout: float | None = None

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        self._transport = transport

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this source (e.g. 'Google Books')."""

    @property
    @abstractmethod
    def source(self) -> Source:
        """Canonical source identifier."""

    @property
    @abstractmethod
    def base_url(self) -> str:
        """Base URL of the provider."""

    @abstractmethod
    async def _search(
        self, query: str, limit: int, filters: SearchFilters | None
    ) -> tuple[list[Book], int]:
        """Fetch and normalize up to ``limit`` books. Returns (books, total count)."""

    async def search(
        self, query: str, limit: int, filters: SearchFilters | None = None
    ) -> ProviderResult:
        start = time.monotonic()
        result = ProviderResult(source=self.source, query=query)
        try:
            coro = self._search(query, max(limit, 1), filters)
            if self.timeout is not None:
                books, total = await asyncio.wait_for(coro, timeout=self.timeout)
            else:
                books, total = await coro
            result.books = books[:limit]
            result.total_count = total
        except asyncio.TimeoutError:
            log.warning("%s timed out after %.1fs for %r", self.name, self.timeout, query)
            result.error = "timeout"
        except Exception as e:
            log.warning("%s failed for %r: %s", self.name, query, e)
            result.error = str(e) or type(e).__name__
        result.elapsed_ms = (time.monotonic() - start) * 1000
        return result

    def _client(self, **kwargs) -> httpx.AsyncClient:
        kwargs.setdefault("headers", DEFAULT_HEADERS)
        kwargs.setdefault("timeout", 15.0)
        kwargs.setdefault("follow_redirects", True)
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return httpx.AsyncClient(**kwargs)

    async def is_available(self) -> bool:
        """Check if the source is reachable. Override for custom health checks."""
        return True
