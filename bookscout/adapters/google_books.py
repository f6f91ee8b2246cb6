"""Google Books adapter — public volumes API, API key optional.

The API caps ``maxResults`` at 40 per request, so larger limits are fetched
page by page using ``startIndex``.
"""

import os

from bookscout.adapters.base import BaseAdapter, secure_url
from bookscout.models import UNKNOWN_AUTHOR, Book, SearchFilters, Source, make_book_id

API_BASE = "https://www.googleapis.com/books/v1/volumes"
PAGE_SIZE = 40


class GoogleBooksAdapter(BaseAdapter):
    def __init__(self, api_key: str | None = None, transport=None):
        super().__init__(transport)
        self._api_key = api_key or os.environ.get("GOOGLE_BOOKS_API_KEY")

    @property
    def name(self) -> str:
        return "Google Books"

    @property
    def source(self) -> Source:
        return Source.GOOGLE

    @property
    def base_url(self) -> str:
        return "https://books.google.com"

    async def _search(
        self, query: str, limit: int, filters: SearchFilters | None
    ) -> tuple[list[Book], int]:
        filters = filters or SearchFilters()
        books: list[Book] = []
        total = 0

        async with self._client() as client:
            start = 0
            while len(books) < limit:
                params: dict[str, str | int] = {
                    "q": query,
                    "maxResults": min(PAGE_SIZE, limit - len(books)),
                    "startIndex": start,
                    "orderBy": filters.order_by,
                }
                if filters.language:
                    params["langRestrict"] = filters.language
                if self._api_key:
                    params["key"] = self._api_key

                resp = await client.get(API_BASE, params=params)
                resp.raise_for_status()
                data = resp.json()

                total = data.get("totalItems", 0)
                items = data.get("items") or []
                books.extend(_to_book(item) for item in items if item.get("volumeInfo"))

                start += len(items)
                if len(items) < params["maxResults"] or start >= total:
                    break

        return books, total


def _to_book(volume: dict) -> Book:
    info = volume["volumeInfo"]
    isbn = next(
        (
            ident.get("identifier")
            for ident in info.get("industryIdentifiers", [])
            if ident.get("type") in ("ISBN_13", "ISBN_10")
        ),
        None,
    )
    images = info.get("imageLinks") or {}

    return Book(
        id=make_book_id(Source.GOOGLE, volume["id"]),
        title=info.get("title", ""),
        authors=tuple(info.get("authors") or [UNKNOWN_AUTHOR]),
        source=Source.GOOGLE,
        description=info.get("description"),
        language=info.get("language"),
        thumbnail_url=secure_url(images.get("thumbnail") or images.get("smallThumbnail")),
        average_rating=info.get("averageRating"),
        ratings_count=info.get("ratingsCount"),
        published_date=info.get("publishedDate"),
        publisher=info.get("publisher"),
        categories=tuple(info.get("categories") or ()),
        isbn=isbn,
        page_count=info.get("pageCount"),
        info_link=info.get("infoLink"),
    )
