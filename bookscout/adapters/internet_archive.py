"""Internet Archive adapter — advanced search over public-domain texts.

The service is slow and occasionally unresponsive, so this adapter carries a
provider-local timeout well below the orchestrator's budget.
"""

from bookscout.adapters.base import BaseAdapter
from bookscout.models import UNKNOWN_AUTHOR, Book, SearchFilters, Source, make_book_id

SEARCH_URL = "https://archive.org/advancedsearch.php"
DETAILS_BASE = "https://archive.org/details"
IMAGE_BASE = "https://archive.org/services/img"

FIELDS = (
    "identifier", "title", "creator", "description", "date", "year", "publisher",
    "language", "subject", "imagecount", "avg_rating", "num_reviews",
)


class InternetArchiveAdapter(BaseAdapter):
    timeout = 5.0

    @property
    def name(self) -> str:
        return "Internet Archive"

    @property
    def source(self) -> Source:
        return Source.INTERNET_ARCHIVE

    @property
    def base_url(self) -> str:
        return "https://archive.org"

    async def _search(
        self, query: str, limit: int, filters: SearchFilters | None
    ) -> tuple[list[Book], int]:
        params: list[tuple[str, str | int]] = [
            ("q", f"{query} AND mediatype:texts"),
            *(("fl[]", f) for f in FIELDS),
            ("rows", limit),
            ("page", 1),
            ("output", "json"),
            ("sort[]", "downloads desc"),
        ]

        async with self._client() as client:
            resp = await client.get(SEARCH_URL, params=params)
            resp.raise_for_status()
            data = resp.json()

        response = data.get("response") or {}
        books = [_to_book(doc) for doc in response.get("docs", []) if doc.get("identifier")]
        return books, response.get("numFound", len(books))


def _first(value) -> str | None:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _all(value) -> list[str]:
    if isinstance(value, list):
        return value
    return [value] if value else []


def _to_book(doc: dict) -> Book:
    identifier = doc["identifier"]
    creators = _all(doc.get("creator"))

    return Book(
        id=make_book_id(Source.INTERNET_ARCHIVE, identifier),
        title=_first(doc.get("title")) or "",
        authors=tuple(creators or [UNKNOWN_AUTHOR]),
        source=Source.INTERNET_ARCHIVE,
        description=_first(doc.get("description")),
        language=_first(doc.get("language")),
        thumbnail_url=f"{IMAGE_BASE}/{identifier}",
        average_rating=doc.get("avg_rating"),
        ratings_count=doc.get("num_reviews"),
        published_date=str(doc.get("year") or doc.get("date") or "") or None,
        publisher=_first(doc.get("publisher")),
        categories=tuple(_all(doc.get("subject"))[:5]),
        page_count=doc.get("imagecount"),
        info_link=f"{DETAILS_BASE}/{identifier}",
        read_online_link=f"{DETAILS_BASE}/{identifier}/mode/2up",
    )
