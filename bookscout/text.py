"""Small text helpers shared by the planner, deduplicator and scorer."""

import re
from functools import lru_cache

_CJK_RE = re.compile(r"[一-鿿]")
_LATIN_RE = re.compile(r"[a-zA-Z]")

# Bracketed annotations such as "(2nd edition)", "（修订版）", "【正版】".
_ANNOTATION_RE = re.compile(r"[（(\[【《「『][^）)\]】》」』]*[）)\]】》」』]")
_SUBTITLE_RE = re.compile(r"[:：].*$")

# Locale-specific nationality prefixes on author names: "[美]", "（英）", "【日】".
_NATIONALITY_RE = re.compile(r"^\s*[\[(（【〔]\s*[^\])）】〕]{1,4}\s*[\])）】〕]\s*")


def has_cjk(text: str) -> bool:
    return bool(_CJK_RE.search(text or ""))


def has_latin(text: str) -> bool:
    return bool(_LATIN_RE.search(text or ""))


def contains_term(text: str, term: str) -> bool:
    """Case-insensitive term match.

    CJK terms match as substrings. Latin terms must start on a word boundary;
    terms of three characters or fewer ("ai", "go") must also end on one.
    """
    if not term:
        return False
    if has_cjk(term):
        return term in text
    return bool(term_pattern(term).search(text.lower()))


@lru_cache(maxsize=1024)
def term_pattern(term: str) -> re.Pattern:
    escaped = re.escape(term.lower())
    if len(term) <= 3:
        return re.compile(rf"(?<![a-z0-9]){escaped}(?![a-z0-9])")
    return re.compile(rf"(?<![a-z0-9]){escaped}")


def any_term(text: str, terms) -> bool:
    return any(contains_term(text, t) for t in terms)


def normalize_title(title: str) -> str:
    """Lower-case, drop bracketed annotations and subtitle, collapse whitespace."""
    title = _ANNOTATION_RE.sub("", title or "")
    title = _SUBTITLE_RE.sub("", title)
    return " ".join(title.split()).lower()


def strip_nationality(name: str) -> str:
    return _NATIONALITY_RE.sub("", name or "").strip()


def normalize_author(name: str) -> str:
    name = strip_nationality(name).lower()
    return " ".join(re.sub(r"[.,·•]", " ", name).split())


def author_tokens(authors) -> set[str]:
    """Name tokens usable for loose author comparison."""
    tokens: set[str] = set()
    for author in authors:
        normalized = normalize_author(author)
        if not normalized or normalized == "unknown author":
            continue
        if has_cjk(normalized):
            tokens.add(normalized.replace(" ", ""))
        else:
            tokens.update(t for t in normalized.split() if len(t) > 1)
    return tokens
