"""Concurrent fan-out of one planned query to every provider and variant."""

import asyncio
import logging
import math
import time
from dataclasses import dataclass, field

from bookscout.adapters.base import BaseAdapter
from bookscout.models import Language, ProviderResult, Query, SearchFilters, Source

log = logging.getLogger(__name__)

# Providers return plenty of noise; fetch several times the share we need.
OVERFETCH = {
    Source.GOOGLE: 4,
    Source.DOUBAN: 5,
    Source.OPEN_LIBRARY: 3,
    Source.INTERNET_ARCHIVE: 3,
}


@dataclass(frozen=True)
class SourcePlan:
    """Share of the result target assigned to each provider."""

    ratios: dict[Source, float] = field(default_factory=dict)

    def share(self, source: Source, target: int) -> int:
        """Books this source is expected to contribute to the final list."""
        ratio = self.ratios.get(source, 0)
        if ratio <= 0 or target <= 0:
            return 0
        return math.ceil(target * ratio)

    def budget(self, source: Source, target: int) -> int:
        return self.share(source, target) * OVERFETCH.get(source, 1)

    @property
    def sources(self) -> list[Source]:
        return [s for s, r in self.ratios.items() if r > 0]


def plan_sources(language: Language, has_cjk: bool, is_fiction: bool) -> SourcePlan:
    if language is Language.EN:
        ratios = {Source.GOOGLE: 0.7, Source.DOUBAN: 0, Source.OPEN_LIBRARY: 0.3,
                  Source.INTERNET_ARCHIVE: 0.3}
    elif language is Language.ZH:
        ratios = {Source.GOOGLE: 0.5, Source.DOUBAN: 0.5, Source.OPEN_LIBRARY: 0,
                  Source.INTERNET_ARCHIVE: 0}
    elif has_cjk:
        ratios = {Source.GOOGLE: 0.5, Source.DOUBAN: 0.3, Source.OPEN_LIBRARY: 0.2,
                  Source.INTERNET_ARCHIVE: 0.2}
    else:
        ratios = {Source.GOOGLE: 0.6, Source.DOUBAN: 0.2, Source.OPEN_LIBRARY: 0.2,
                  Source.INTERNET_ARCHIVE: 0.2}

    # Public-domain scans are rarely what a fiction reader is after.
    if is_fiction:
        ratios[Source.INTERNET_ARCHIVE] = 0
    return SourcePlan(ratios)


class FanOut:
    """Issues one task per (adapter, variant) and waits for all of them."""

    def __init__(self, adapters: list[BaseAdapter], timeout: float = 15.0):
        self.adapters = adapters
        self.timeout = timeout

    async def _call(
        self, adapter: BaseAdapter, variant: str, limit: int, filters: SearchFilters
    ) -> ProviderResult:
        start = time.monotonic()
        try:
            result = await asyncio.wait_for(
                adapter.search(variant, limit, filters), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            log.warning("%s timed out after %.1fs for %r", adapter.name, self.timeout, variant)
            result = ProviderResult(source=adapter.source, query=variant, error="timeout")
        except Exception as e:
            log.warning("%s failed for %r: %s", adapter.name, variant, e)
            result = ProviderResult(
                source=adapter.source, query=variant, error=str(e) or type(e).__name__
            )
        result.elapsed_ms = (time.monotonic() - start) * 1000

        log.info(
            "%s %r -> %d books in %.0fms%s",
            adapter.name, variant, len(result.books), result.elapsed_ms,
            f" ({result.error})" if result.error else "",
        )
        return result

    async def run(self, query: Query, max_results: int) -> list[ProviderResult]:
        plan = plan_sources(query.language, query.has_cjk, query.is_fiction)
        filters = SearchFilters(language=query.language.value if query.strict_language else None)

        tasks = []
        for adapter in self.adapters:
            budget = plan.budget(adapter.source, max_results)
            if budget <= 0:
                continue
            variants = query.variants_for(adapter.source)
            per_variant = max(1, math.ceil(budget / len(variants)))
            # The planned query text alone must be able to fill this source's share.
            share = plan.share(adapter.source, max_results)
            for variant in variants:
                limit = max(per_variant, share) if variant == query.search_text else per_variant
                tasks.append(self._call(adapter, variant, limit, filters))

        if not tasks:
            return []
        log.debug("Fanning out %d provider calls for %r", len(tasks), query.text)
        # Cancelling the caller cancels every pending child.
        return list(await asyncio.gather(*tasks))
