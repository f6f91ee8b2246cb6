"""Open Library adapter — free API, no key required.

Strong on English catalog metadata and community ratings; covers come from
the covers.openlibrary.org image service.
"""

from bookscout.adapters.base import BaseAdapter
from bookscout.models import UNKNOWN_AUTHOR, Book, SearchFilters, Source, make_book_id

API_BASE = "https://openlibrary.org"
COVERS_BASE = "https://covers.openlibrary.org/b/id"

FIELDS = (
    "key,title,author_name,first_publish_year,publisher,number_of_pages_median,"
    "subject,language,cover_i,isbn,ratings_average,ratings_count"
)


class OpenLibraryAdapter(BaseAdapter):
    @property
    def name(self) -> str:
        return "Open Library"

    @property
    def source(self) -> Source:
        return Source.OPEN_LIBRARY

    @property
    def base_url(self) -> str:
        return API_BASE

    async def _search(
        self, query: str, limit: int, filters: SearchFilters | None
    ) -> tuple[list[Book], int]:
        params: dict[str, str | int] = {"q": query, "limit": limit, "fields": FIELDS}

        async with self._client() as client:
            resp = await client.get(f"{API_BASE}/search.json", params=params)
            resp.raise_for_status()
            data = resp.json()

        books = [_to_book(doc) for doc in data.get("docs", []) if doc.get("key")]
        return books, data.get("numFound", len(books))


def _to_book(doc: dict) -> Book:
    key = doc["key"]
    cover = doc.get("cover_i")
    year = doc.get("first_publish_year")

    return Book(
        id=make_book_id(Source.OPEN_LIBRARY, key.replace("/works/", "")),
        title=doc.get("title", ""),
        authors=tuple(doc.get("author_name") or [UNKNOWN_AUTHOR]),
        source=Source.OPEN_LIBRARY,
        language=(doc.get("language") or [None])[0],
        thumbnail_url=f"{COVERS_BASE}/{cover}-L.jpg" if cover else None,
        average_rating=doc.get("ratings_average"),
        ratings_count=doc.get("ratings_count"),
        published_date=str(year) if year else None,
        publisher=(doc.get("publisher") or [None])[0],
        categories=tuple((doc.get("subject") or [])[:5]),
        isbn=(doc.get("isbn") or [None])[0],
        page_count=doc.get("number_of_pages_median"),
        info_link=f"{API_BASE}{key}",
    )
