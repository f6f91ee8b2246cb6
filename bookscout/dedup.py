"""Cross-provider deduplication of book records."""

import logging
from dataclasses import fields, replace

from bookscout.models import Book
from bookscout.text import author_tokens, normalize_author, normalize_title

log = logging.getLogger(__name__)

KEY_TITLE_CHARS = 20
MIN_CONTAINMENT_LEN = 3

_FILLABLE = tuple(
    f.name for f in fields(Book) if f.name not in ("id", "title", "authors", "source")
)


def dedup_key(book: Book) -> str:
    authors = ",".join(sorted(normalize_author(a) for a in book.authors))
    return f"{normalize_title(book.title)[:KEY_TITLE_CHARS]}|{authors}"


def _authors_compatible(a: Book, b: Book) -> bool:
    if not a.has_real_author or not b.has_real_author:
        return True
    return bool(author_tokens(a.authors) & author_tokens(b.authors))


def _contains(a: Book, b: Book) -> bool:
    ta, tb = normalize_title(a.title), normalize_title(b.title)
    if len(ta) <= MIN_CONTAINMENT_LEN or len(tb) <= MIN_CONTAINMENT_LEN:
        return False
    return (ta in tb or tb in ta) and _authors_compatible(a, b)


def same_work(a: Book, b: Book) -> bool:
    ta, tb = normalize_title(a.title), normalize_title(b.title)
    if ta and ta == tb:
        return _authors_compatible(a, b)
    return _contains(a, b)


def attach_douban(books: list[Book], douban_books: list[Book]) -> list[Book]:
    """Link each record to its Douban match and borrow the cover it lacks."""
    out = []
    for book in books:
        match = None
        if not book.douban_link:
            match = next((d for d in douban_books if same_work(book, d)), None)
        if match is None:
            out.append(book)
            continue
        out.append(replace(
            book,
            douban_link=match.douban_link or match.info_link,
            thumbnail_url=book.thumbnail_url or match.thumbnail_url,
        ))
    return out


def merge(winner: Book, loser: Book) -> Book:
    """Fill the winner's empty optional fields from the loser."""
    missing = {
        name: getattr(loser, name)
        for name in _FILLABLE
        if not getattr(winner, name) and getattr(loser, name)
    }
    if not winner.has_real_author and loser.has_real_author:
        missing["authors"] = loser.authors
    return replace(winner, **missing) if missing else winner


def _pick(existing: Book, incoming: Book) -> Book:
    # Ties keep the record seen first.
    if incoming.completeness > existing.completeness:
        return merge(incoming, existing)
    return merge(existing, incoming)


def dedupe(books: list[Book]) -> list[Book]:
    """Collapse near-duplicates, keeping first-discovery order."""
    kept: list[Book] = []
    by_key: dict[str, int] = {}

    for book in books:
        key = dedup_key(book)
        index = by_key.get(key)
        if index is None:
            index = next((i for i, k in enumerate(kept) if _contains(k, book)), None)
        if index is None:
            by_key[key] = len(kept)
            kept.append(book)
            continue
        kept[index] = _pick(kept[index], book)
        by_key.setdefault(key, index)

    if len(kept) < len(books):
        log.debug("Deduplicated %d records to %d", len(books), len(kept))
    return kept
