from dataclasses import asdict, dataclass, field
from enum import Enum

from bookscout.text import has_cjk


class Source(str, Enum):
    GOOGLE = "google"
    OPEN_LIBRARY = "openlibrary"
    DOUBAN = "douban"
    INTERNET_ARCHIVE = "internetarchive"


class Language(str, Enum):
    ZH = "zh"
    EN = "en"
    ANY = "any"

    @classmethod
    def parse(cls, value: "str | Language | None") -> "Language":
        if isinstance(value, Language):
            return value
        try:
            return cls((value or "any").strip().lower())
        except ValueError:
            return cls.ANY


UNKNOWN_AUTHOR = "Unknown Author"


@dataclass(frozen=True)
class Book:
    """A canonical book record produced by a provider adapter."""

    id: str
    title: str
    authors: tuple[str, ...]
    source: Source
    description: str | None = None
    language: str | None = None
    thumbnail_url: str | None = None
    average_rating: float | None = None
    ratings_count: int | None = None
    published_date: str | None = None
    publisher: str | None = None
    categories: tuple[str, ...] = ()
    isbn: str | None = None
    page_count: int | None = None
    info_link: str | None = None
    read_online_link: str | None = None
    douban_link: str | None = None

    @property
    def has_real_author(self) -> bool:
        return any(a and a != UNKNOWN_AUTHOR for a in self.authors)

    @property
    def completeness(self) -> int:
        """How many of description/thumbnail/rating this record carries."""
        return (
            int(bool(self.description))
            + int(bool(self.thumbnail_url))
            + int(bool(self.average_rating))
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["source"] = self.source.value
        data["authors"] = list(self.authors)
        data["categories"] = list(self.categories)
        return data


def make_book_id(source: Source, native_id: str) -> str:
    return f"{source.value}_{native_id}"


@dataclass
class SearchFilters:
    """Optional provider-side restrictions."""

    language: str | None = None
    order_by: str = "relevance"


@dataclass
class Query:
    """A planned search request. Created per search and discarded afterwards."""

    text: str
    keywords: list[str]
    language: Language = Language.ANY
    is_fiction: bool = False
    is_theoretical: bool = False
    is_practical: bool = False
    topic: str = ""
    search_text: str = ""
    genre: str | None = None
    topic_categories: list[str] = field(default_factory=list)
    variants: dict[Source, list[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.search_text:
            self.search_text = self.text.strip()
        if not self.topic:
            self.topic = self.search_text

    @property
    def has_cjk(self) -> bool:
        return has_cjk(self.text)

    @property
    def strict_language(self) -> bool:
        return self.language is not Language.ANY

    def variants_for(self, source: Source) -> list[str]:
        return self.variants.get(source) or [self.search_text]


@dataclass
class ProviderResult:
    """Outcome of one provider call. Returned even when the provider failed."""

    source: Source
    books: list[Book] = field(default_factory=list)
    elapsed_ms: float = 0.0
    total_count: int = 0
    error: str | None = None
    query: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


# Hard exclusion. Anything at or below NOT_FICTION never reaches the output.
EXCLUDED = -1000
NOT_FICTION = -500


def is_excluded(score: int) -> bool:
    return score <= NOT_FICTION


@dataclass
class ScoredCandidate:
    book: Book
    score: int

    @property
    def excluded(self) -> bool:
        return is_excluded(self.score)
