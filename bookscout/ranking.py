"""Final selection of scored candidates."""

from bookscout.models import Book, ScoredCandidate

FICTION_THRESHOLD = 10
DEFAULT_THRESHOLD = 0


def select(candidates: list[ScoredCandidate], max_results: int, is_fiction: bool = False) -> list[Book]:
    """Best candidates above the threshold, backfilled with weaker non-excluded ones.

    The sort is stable, so equal scores keep their discovery order.
    """
    if max_results <= 0:
        return []
    threshold = FICTION_THRESHOLD if is_fiction else DEFAULT_THRESHOLD

    ranked = sorted((c for c in candidates if not c.excluded), key=lambda c: c.score, reverse=True)
    chosen = [c for c in ranked if c.score >= threshold]
    if len(chosen) < max_results:
        chosen += [c for c in ranked if 0 <= c.score < threshold]
    return [c.book for c in chosen[:max_results]]
