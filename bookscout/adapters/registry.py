"""Adapter registry — central place to manage which providers are active."""

from bookscout.adapters.base import BaseAdapter
from bookscout.adapters.douban import DoubanAdapter
from bookscout.adapters.google_books import GoogleBooksAdapter
from bookscout.adapters.internet_archive import InternetArchiveAdapter
from bookscout.adapters.open_library import OpenLibraryAdapter
from bookscout.config import Config
from bookscout.models import Source

# Built-in adapters
_BUILTIN_ADAPTERS: list[BaseAdapter] = [
    GoogleBooksAdapter(),
    OpenLibraryAdapter(),
    DoubanAdapter(),
    InternetArchiveAdapter(),
]

_custom_adapters: list[BaseAdapter] = []


def _configured_builtins(config: Config) -> list[BaseAdapter]:
    return [
        GoogleBooksAdapter(api_key=config.google_api_key),
        OpenLibraryAdapter(),
        DoubanAdapter(fetch_ratings=config.douban_fetch_ratings),
        InternetArchiveAdapter(),
    ]


def get_all_adapters(config: Config | None = None) -> list[BaseAdapter]:
    """Return all registered adapters; a custom adapter shadows the built-in for its source."""
    builtins = _configured_builtins(config) if config else _BUILTIN_ADAPTERS
    custom_sources = {a.source for a in _custom_adapters}
    return [a for a in builtins if a.source not in custom_sources] + _custom_adapters


def get_adapter(source: Source) -> BaseAdapter | None:
    return next((a for a in get_all_adapters() if a.source is source), None)


def register_adapter(adapter: BaseAdapter) -> None:
    """Register a custom adapter at runtime, replacing any earlier one for the same source."""
    _custom_adapters[:] = [a for a in _custom_adapters if a.source is not adapter.source]
    _custom_adapters.append(adapter)


def clear_custom_adapters() -> None:
    _custom_adapters.clear()
