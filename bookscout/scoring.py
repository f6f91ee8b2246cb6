"""Relevance scoring.

Every rule is a plain function ``(Book, Query) -> int``. The ``Scorer`` adds
the contributions of one rule set: the non-fiction set, or the fiction
pipeline when the query asks for fiction. A rule may return a sentinel
(``EXCLUDED`` or ``NOT_FICTION``); the first sentinel ends scoring for that
record and the record is dropped by the ranker.
"""

import logging
import math
from typing import Callable

from bookscout import rules
from bookscout.models import (
    EXCLUDED,
    NOT_FICTION,
    Book,
    Query,
    ScoredCandidate,
    is_excluded,
)
from bookscout.text import (
    any_term,
    contains_term,
    has_cjk,
    has_latin,
    normalize_author,
    normalize_title,
)

log = logging.getLogger(__name__)

Rule = Callable[[Book, Query], int]

_REPLACEMENT_CHAR = "\ufffd"
# Part of real titles such as "C++" and "C#".
_MEANINGFUL_SYMBOLS = "+#"


# --- quality filter and language gate -------------------------------------

def is_valid_record(book: Book) -> bool:
    """Drop records that are obviously broken before they are scored."""
    title = (book.title or "").strip()
    if len(title) < 2:
        return False
    visible = [ch for ch in title if not ch.isspace()]
    meaningful = sum(
        1 for ch in visible
        if (ch.isalnum() or ch in _MEANINGFUL_SYMBOLS) and ch != _REPLACEMENT_CHAR
    )
    if meaningful < len(visible) / 2:
        return False
    if not book.has_real_author and not (
        book.description or book.thumbnail_url or book.publisher or book.published_date
    ):
        return False
    return True


def detect_book_language(book: Book) -> str:
    """Best guess at a record's language: "zh", "en", another code, or "mixed"."""
    if has_cjk(book.title):
        return "zh"
    lang = (book.language or "").strip().lower()
    if lang.startswith("zh") or lang in ("chi", "zho", "chinese"):
        return "zh"
    if lang.startswith("en") or lang in ("eng", "english"):
        return "en"
    if lang.isalpha() and len(lang) in (2, 3):
        return lang
    if has_latin(book.title):
        return "en"
    return "mixed"


def language_gate(book: Book, query: Query) -> int:
    if not query.strict_language:
        return 0
    detected = detect_book_language(book)
    if detected == "mixed" or detected == query.language.value:
        return 0
    return EXCLUDED


# --- non-fiction rules ----------------------------------------------------

def keyword_relevance(book: Book, query: Query) -> int:
    title = book.title.lower()
    description = (book.description or "").lower()
    keywords = query.keywords or [query.search_text.lower()]

    score = 0
    title_hits = description_hits = 0
    for keyword in keywords:
        if contains_term(title, keyword):
            score += min(80, max(30, 10 * len(keyword)))
            title_hits += 1
        elif contains_term(description, keyword):
            score += min(30, max(10, 3 * len(keyword)))
            description_hits += 1

    if title_hits + description_hits == 0:
        return EXCLUDED

    score += math.floor((title_hits + description_hits) / len(keywords) * 50)
    if title_hits >= 2:
        score += 30
    if title_hits == 0:
        score -= 20
    return score


def _authors_match(book: Book, names) -> bool:
    authors = [normalize_author(a) for a in book.authors]
    for name in names:
        target = normalize_author(name)
        if not target:
            continue
        if has_cjk(target):
            if any(target.replace(" ", "") in a.replace(" ", "") for a in authors):
                return True
        else:
            surname = target.split()[-1]
            if any(surname in a.split() for a in authors):
                return True
    return False


def _matches_work(book: Book, work: rules.KnownWork) -> bool:
    title = normalize_title(book.title)
    work_title = normalize_title(work.title)
    if not title or not work_title:
        return False
    if work.authors:
        if not _authors_match(book, work.authors):
            return False
        return title == work_title or work_title in title or title in work_title
    return title == work_title or contains_term(title, work_title)


def _query_categories(query: Query) -> list[str]:
    if query.topic_categories:
        return query.topic_categories
    text = " ".join([query.text, *query.keywords]).lower()
    return [key for key, cat in rules.TOPIC_CATEGORIES.items() if any_term(text, cat.triggers)]


def known_work_bonus(book: Book, query: Query) -> int:
    best = 0
    for key in _query_categories(query):
        for work in rules.TOPIC_CATEGORIES[key].known_works:
            if work.bonus > best and _matches_work(book, work):
                best = work.bonus
    return best


def metadata_quality(book: Book, query: Query) -> int:
    score = 0
    if book.has_real_author:
        score += 5
    if book.thumbnail_url and not any(
        t in book.thumbnail_url for t in rules.PLACEHOLDER_THUMBNAIL_TERMS
    ):
        score += 5
    if book.average_rating:
        score += min(10, round(book.average_rating * 2))
    if book.ratings_count and book.ratings_count > 100:
        score += min(15, round(math.log10(book.ratings_count) * 5))
    if book.published_date:
        score += 2
    if book.description and len(book.description) > 50:
        score += 2
    score += rules.TRUSTED_SOURCE_BONUS.get(book.source, 0)
    return score


def _count_terms(text: str, terms) -> int:
    return sum(1 for t in terms if contains_term(text, t))


def category_adjustment(book: Book, query: Query) -> int:
    """Favour theory for theoretical queries and teaching material otherwise."""
    title = book.title.lower()
    description = (book.description or "").lower()

    if query.is_theoretical:
        return (
            15 * _count_terms(title, rules.THEORY_TITLE_TERMS)
            + 5 * _count_terms(description, rules.THEORY_TITLE_TERMS)
            - 5 * _count_terms(title, rules.TUTORIAL_TITLE_TERMS)
        )

    score = (
        8 * _count_terms(title, rules.EDUCATIONAL_TITLE_TERMS)
        + 2 * _count_terms(description, rules.EDUCATIONAL_TITLE_TERMS)
    )
    if query.is_practical:
        score -= 5 * _count_terms(title, rules.THEORY_TITLE_TERMS)
    return score


def noise_penalty(book: Book, query: Query) -> int:
    title = book.title.lower()
    asked = " ".join([query.text, *query.keywords]).lower()
    score = 0
    for term in rules.IRRELEVANT_TITLE_TERMS:
        if contains_term(title, term) and not contains_term(asked, term):
            score -= 30
    score -= 20 * _count_terms(title, rules.LOW_QUALITY_TITLE_TERMS)
    return score


# --- fiction pipeline -----------------------------------------------------

def _genres(query: Query) -> list[rules.Genre]:
    genre = rules.GENRES.get(query.genre or "")
    return [genre] if genre else list(rules.GENRES.values())


def _is_commentary(book: Book) -> bool:
    title = book.title.lower()
    return any_term(title, rules.COMMENTARY_TITLE_TERMS) and not any_term(
        title, rules.ORIGINAL_EDITION_TERMS
    )


def fiction_exclusion(book: Book, query: Query) -> int:
    """Technical manuals, periodicals and reference works are never fiction."""
    if any_term(book.title.lower(), rules.NON_FICTION_TITLE_TERMS):
        return EXCLUDED
    return 0


def commentary_penalty(book: Book, query: Query) -> int:
    return -80 if _is_commentary(book) else 0


def _categories(book: Book) -> str:
    return " ".join(book.categories).lower()


def _genre_title_hits(book: Book, query: Query) -> int:
    title = book.title.lower()
    return sum(_count_terms(title, g.title_terms) for g in _genres(query))


def _genre_category_match(book: Book, query: Query) -> bool:
    categories = _categories(book)
    return any(any_term(categories, g.category_terms) for g in _genres(query))


def _known_author(book: Book, query: Query) -> bool:
    authors = " ".join(normalize_author(a) for a in book.authors)
    return any(
        contains_term(authors, name.lower()) for g in _genres(query) for name in g.known_authors
    )


def _known_work(book: Book, query: Query) -> rules.KnownWork | None:
    best = None
    for genre in _genres(query):
        for work in genre.known_works:
            if _matches_work(book, work) and (best is None or work.bonus > best.bonus):
                best = work
    return best


def fiction_evidence(book: Book, query: Query) -> int:
    """Reward visible fiction markers; without any, fall to the soft floor."""
    title = book.title.lower()
    score = 0
    if any_term(title, rules.FICTION_TITLE_TERMS):
        score += 50
    if any_term(_categories(book), rules.FICTION_CATEGORY_TERMS):
        score += 30
    if score or _genre_title_hits(book, query) or _genre_category_match(book, query):
        return score
    if _known_author(book, query) or _known_work(book, query):
        return score
    if any_term((book.description or "").lower(), rules.FICTION_DESCRIPTION_TERMS):
        return 10
    return NOT_FICTION


def genre_match(book: Book, query: Query) -> int:
    score = 40 * _genre_title_hits(book, query)
    if _genre_category_match(book, query):
        score += 30
    return score


def fiction_keyword_hits(book: Book, query: Query) -> int:
    title = book.title.lower()
    return 10 * _count_terms(title, query.keywords)


def known_author_bonus(book: Book, query: Query) -> int:
    if _is_commentary(book) or not _known_author(book, query):
        return 0
    return 80


def known_fiction_work_bonus(book: Book, query: Query) -> int:
    work = _known_work(book, query)
    if work is None:
        return 0
    if _is_commentary(book):
        return int(work.bonus * rules.COMMENTARY_WORK_FRACTION)
    return work.bonus


def fiction_metadata(book: Book, query: Query) -> int:
    score = 0
    if book.has_real_author:
        score += 5
    if book.thumbnail_url:
        score += 3
    score += rules.FICTION_TRUSTED_SOURCE_BONUS.get(book.source, 0)
    return score


NON_FICTION_RULES: tuple[Rule, ...] = (
    language_gate,
    keyword_relevance,
    known_work_bonus,
    metadata_quality,
    category_adjustment,
    noise_penalty,
)

FICTION_RULES: tuple[Rule, ...] = (
    language_gate,
    fiction_exclusion,
    commentary_penalty,
    fiction_evidence,
    genre_match,
    fiction_keyword_hits,
    known_author_bonus,
    known_fiction_work_bonus,
    fiction_metadata,
    noise_penalty,
)


class Scorer:
    """Sums the contributions of independent scoring rules."""

    def __init__(
        self,
        rule_set: tuple[Rule, ...] = NON_FICTION_RULES,
        fiction_rules: tuple[Rule, ...] = FICTION_RULES,
    ):
        self.rules = rule_set
        self.fiction_rules = fiction_rules

    def score(self, book: Book, query: Query) -> int:
        total = 0
        for rule in self.fiction_rules if query.is_fiction else self.rules:
            contribution = rule(book, query)
            if is_excluded(contribution):
                return contribution
            total += contribution
        return total

    def score_all(self, books: list[Book], query: Query) -> list[ScoredCandidate]:
        valid = [b for b in books if is_valid_record(b)]
        if len(valid) < len(books):
            log.debug("Quality filter dropped %d records", len(books) - len(valid))

        scored = [ScoredCandidate(b, self.score(b, query)) for b in valid]
        if log.isEnabledFor(logging.DEBUG):
            top = sorted(scored, key=lambda c: c.score, reverse=True)[:5]
            for c in top:
                log.debug("  %5d  %s (%s)", c.score, c.book.title, c.book.source.value)
        return scored
