"""Search pipeline: plan, fan out, dedupe, score, rank, cache."""

import asyncio
import logging
import time
from dataclasses import dataclass, field

from bookscout.adapters.base import BaseAdapter
from bookscout.adapters.registry import get_all_adapters
from bookscout.cache import ResultCache, cache_key
from bookscout.config import Config, load_config
from bookscout.dedup import attach_douban, dedupe
from bookscout.fanout import FanOut
from bookscout.intent import IntentService, LLMIntentService
from bookscout.models import Book, Language, ProviderResult, Query, Source
from bookscout.planner import QueryPlanner, plain_query
from bookscout.ranking import select
from bookscout.scoring import Scorer

log = logging.getLogger(__name__)

# Douban matches fetched to decorate the final list of a Chinese query.
ENRICH_LIMIT = 5


@dataclass
class SearchReport:
    """Ranked books plus per-source status info."""

    books: list[Book] = field(default_factory=list)
    query: Query | None = None
    provider_results: list[ProviderResult] = field(default_factory=list)
    source_counts: dict[str, int] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    candidates: int = 0
    unique: int = 0
    cache_hit: bool = False
    elapsed: float = 0.0

    def add_results(self, results: list[ProviderResult]) -> None:
        self.provider_results.extend(results)
        for r in results:
            name = r.source.value
            self.source_counts[name] = self.source_counts.get(name, 0) + len(r.books)
            if r.error:
                self.errors[name] = r.error


def build_intent_service(config: Config) -> IntentService | None:
    if not config.intent.enabled:
        return None
    return LLMIntentService(
        base_url=config.intent.base_url,
        model=config.intent.model,
        api_key=config.intent.api_key,
        timeout=config.intent.timeout,
    )


def _is_blank(text: str | None) -> bool:
    return not text or not text.strip()


class BookSearchEngine:
    def __init__(
        self,
        adapters: list[BaseAdapter] | None = None,
        planner: QueryPlanner | None = None,
        cache: ResultCache | None = None,
        config: Config | None = None,
        scorer: Scorer | None = None,
        douban: BaseAdapter | None = None,
    ):
        self.config = config or Config()
        self.adapters = adapters if adapters is not None else get_all_adapters(self.config)
        self.planner = planner or QueryPlanner(
            intent_service=build_intent_service(self.config),
            intent_timeout=self.config.intent.timeout,
        )
        self.cache = cache if cache is not None else ResultCache(
            ttl=self.config.cache_ttl, max_entries=self.config.cache_max_entries
        )
        self.scorer = scorer or Scorer()
        self.fanout = FanOut(self.adapters, timeout=self.config.provider_timeout)
        self.douban = douban or next(
            (a for a in self.adapters if a.source is Source.DOUBAN), None
        )

    def _cached(self, key: str) -> list[Book] | None:
        try:
            return self.cache.get(key)
        except Exception as e:
            log.warning("Cache read failed: %s", e)
            return None

    def _store(self, key: str, books: list[Book]) -> None:
        try:
            self.cache.put(key, books)
        except Exception as e:
            log.warning("Cache write failed: %s", e)

    async def _collect(self, query: Query, max_results: int, report: SearchReport) -> list[Book]:
        results = await self.fanout.run(query, max_results)
        report.add_results(results)
        return [b for r in results for b in r.books]

    async def _enrich(self, query: Query, books: list[Book]) -> list[Book]:
        """Attach Douban links and missing covers to the final list of a Chinese query."""
        if not books or self.douban is None or not query.has_cjk:
            return books
        if all(b.douban_link for b in books):
            return books
        try:
            result = await asyncio.wait_for(
                self.douban.search(query.search_text, ENRICH_LIMIT),
                timeout=self.config.provider_timeout,
            )
        except asyncio.TimeoutError:
            log.warning("Douban enrichment timed out for %r", query.text)
            return books
        if not result.ok:
            return books
        return attach_douban(books, result.books)

    async def search_with_report(
        self, text: str, max_results: int = 20, language: Language | str = "any"
    ) -> SearchReport:
        """Search all providers and return ranked books with per-source status."""
        start = time.monotonic()
        report = SearchReport()
        if _is_blank(text) or max_results <= 0:
            return report

        language = Language.parse(language)
        key = cache_key(text, language.value, max_results)
        cached = self._cached(key)
        if cached is not None:
            report.books = cached
            report.cache_hit = True
            report.elapsed = time.monotonic() - start
            log.debug("Cache hit for %r", text)
            return report

        query = await self.planner.plan(text, language)
        report.query = query
        books = await self._collect(query, max_results, report)

        if not books:
            retry = plain_query(query)
            if retry is not None:
                log.info("No candidates for %r; retrying with plain keywords", text)
                books = await self._collect(retry, max_results, report)

        unique = dedupe(books)
        scored = self.scorer.score_all(unique, query)
        selected = select(scored, max_results, query.is_fiction)
        report.books = await self._enrich(query, selected)
        report.candidates = len(books)
        report.unique = len(unique)
        report.elapsed = time.monotonic() - start

        if report.books:
            self._store(key, report.books)

        log.info(
            "Search %r: %d candidates, %d unique, %d returned in %.2fs",
            text, report.candidates, report.unique, len(report.books), report.elapsed,
        )
        return report

    async def search(
        self, text: str, max_results: int = 20, language: Language | str = "any"
    ) -> list[Book]:
        report = await self.search_with_report(text, max_results, language)
        return report.books

    def search_books(
        self, text: str, max_results: int = 20, language: Language | str = "any"
    ) -> list[Book]:
        """Blocking entry point. Fresh cache hits return without an event loop.

        Must not be called from inside a running event loop; use ``search``
        there instead.
        """
        if _is_blank(text) or max_results <= 0:
            return []
        cached = self._cached(cache_key(text, Language.parse(language).value, max_results))
        if cached is not None:
            return cached
        return asyncio.run(self.search(text, max_results, language))


_default_engine: BookSearchEngine | None = None


def get_default_engine() -> BookSearchEngine:
    global _default_engine
    if _default_engine is None:
        _default_engine = BookSearchEngine(config=load_config())
    return _default_engine


def search_books(query: str, max_results: int = 20, language: str = "any") -> list[Book]:
    """Search every provider and return at most ``max_results`` ranked books."""
    return get_default_engine().search_books(query, max_results, language)
