"""Douban adapter — public subject-suggest endpoint plus optional rating scrape.

The official API is gone; the suggest endpoint answers short queries well and
returns at most a handful of items, so ``limit`` is applied client side.
Subject pages are plain HTML and carry the community rating in
``strong.rating_num`` and ``span[property="v:votes"]``.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, replace

from bs4 import BeautifulSoup

from bookscout.adapters.base import BaseAdapter, secure_url
from bookscout.models import UNKNOWN_AUTHOR, Book, SearchFilters, Source, make_book_id
from bookscout.text import strip_nationality

log = logging.getLogger(__name__)

SUGGEST_URL = "https://book.douban.com/j/subject_suggest"
SUBJECT_URL = "https://book.douban.com/subject/{id}/"

HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Referer": "https://book.douban.com/",
    "Accept": "application/json, text/html",
}

_YEAR_RE = re.compile(r"^(1[5-9]|20)\d{2}(?:[-./年]\d{1,2})*[月]?$")
_PRICE_RE = re.compile(r"(元|CNY|USD|\$|^\d+\.\d{2}$)")
_PUBLISHER_RE = re.compile(r"(出版社|出版公司|书局|書局|出版|press|publishing|publishers|books$)", re.I)
_AUTHOR_SPLIT_RE = re.compile(r"\s*[、,，&]\s*|\s+and\s+")


@dataclass
class Subtitle:
    authors: list[str]
    year: str | None = None
    publisher: str | None = None


def parse_subtitle(text: str) -> Subtitle:
    """Split a "author / year / publisher" style line into structured fields.

    Douban packs creator, translator, publisher, date and price into one
    slash-separated string in no guaranteed order, e.g.
    ``"[美] 托马斯·科尔曼 / 殷建平 / 机械工业出版社 / 2013-1 / 128.00元"``.
    The first unclassified segment is the author list. Without an obvious
    publisher name, the last unclassified segment after the year is taken.
    """
    authors: list[str] = []
    year = None
    publisher = None
    after_year: list[str] = []

    for part in (p.strip() for p in (text or "").split("/")):
        if not part:
            continue
        if year is None and _YEAR_RE.match(part):
            year = part[:4]
        elif _PRICE_RE.search(part):
            continue
        elif publisher is None and _PUBLISHER_RE.search(part) and authors:
            publisher = part
        elif not authors:
            authors = [
                name
                for name in (strip_nationality(n) for n in _AUTHOR_SPLIT_RE.split(part))
                if name
            ]
        elif year is not None:
            after_year.append(part)

    if publisher is None and after_year:
        publisher = after_year[-1]

    return Subtitle(authors=authors, year=year, publisher=publisher)


class DoubanAdapter(BaseAdapter):
    def __init__(self, fetch_ratings: bool = False, rating_limit: int = 5, transport=None):
        super().__init__(transport)
        self.fetch_ratings = fetch_ratings
        self.rating_limit = rating_limit

    @property
    def name(self) -> str:
        return "Douban"

    @property
    def source(self) -> Source:
        return Source.DOUBAN

    @property
    def base_url(self) -> str:
        return "https://book.douban.com"

    async def _search(
        self, query: str, limit: int, filters: SearchFilters | None
    ) -> tuple[list[Book], int]:
        async with self._client(headers=HEADERS, timeout=10.0) as client:
            resp = await client.get(SUGGEST_URL, params={"q": query})
            resp.raise_for_status()
            items = [item for item in resp.json() if item.get("type") == "b" and item.get("id")]

            books = [_to_book(item) for item in items]
            total = len(books)
            books = books[:limit]

            if self.fetch_ratings and books:
                books = await self._enrich(client, books)

        return books, total

    async def _enrich(self, client, books: list[Book]) -> list[Book]:
        head = books[: self.rating_limit]
        ratings = await asyncio.gather(*(self._fetch_rating(client, b) for b in head))
        enriched = [
            replace(book, average_rating=rating[0], ratings_count=rating[1]) if rating else book
            for book, rating in zip(head, ratings)
        ]
        return enriched + books[self.rating_limit:]

    async def _fetch_rating(self, client, book: Book) -> tuple[float, int] | None:
        native_id = book.id.split("_", 1)[1]
        try:
            resp = await client.get(SUBJECT_URL.format(id=native_id))
            resp.raise_for_status()
        except Exception as e:
            log.debug("Douban rating fetch failed for %s: %s", native_id, e)
            return None
        return parse_rating(resp.text)


def parse_rating(html: str) -> tuple[float, int] | None:
    soup = BeautifulSoup(html, "html.parser")
    rating_el = soup.select_one("strong.rating_num")
    votes_el = soup.select_one('span[property="v:votes"]')

    try:
        rating = float(rating_el.get_text(strip=True)) if rating_el else None
    except ValueError:
        rating = None
    if rating is None:
        return None

    votes_text = votes_el.get_text(strip=True) if votes_el else ""
    votes = int(votes_text) if votes_text.isdigit() else 0
    # Douban rates out of 10; the rest of the pipeline uses a 5-point scale.
    return rating / 2, votes


def _to_book(item: dict) -> Book:
    raw_author = item.get("author_name") or ""
    subtitle = parse_subtitle(item.get("sub_title") or raw_author)
    if not subtitle.authors and raw_author:
        subtitle.authors = [strip_nationality(raw_author)]

    pic = item.get("pic") or ""
    return Book(
        id=make_book_id(Source.DOUBAN, str(item["id"])),
        title=item.get("title", ""),
        authors=tuple(subtitle.authors or [UNKNOWN_AUTHOR]),
        source=Source.DOUBAN,
        language="zh-CN",
        thumbnail_url=secure_url(pic.replace("s_ratio", "l")) if pic else None,
        published_date=item.get("year") or subtitle.year,
        publisher=subtitle.publisher,
        info_link=item.get("url"),
        douban_link=item.get("url"),
    )
