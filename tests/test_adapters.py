import asyncio

import httpx

from bookscout.adapters.base import BaseAdapter
from bookscout.adapters.douban import DoubanAdapter, parse_rating, parse_subtitle
from bookscout.adapters.google_books import GoogleBooksAdapter
from bookscout.adapters.internet_archive import InternetArchiveAdapter
from bookscout.adapters.open_library import OpenLibraryAdapter
from bookscout.adapters import registry
from bookscout.models import SearchFilters, Source


def _volume(i: int) -> dict:
    return {
        "id": f"vol{i}",
        "volumeInfo": {
            "title": f"Book {i}",
            "authors": ["Jane Doe"],
            "language": "en",
            "imageLinks": {"thumbnail": f"http://books.google.com/img/{i}"},
            "industryIdentifiers": [{"type": "ISBN_13", "identifier": f"97800000000{i:02d}"}],
        },
    }


def test_google_paginates_above_40():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        params = request.url.params
        calls.append((int(params["startIndex"]), int(params["maxResults"]), params.get("langRestrict")))
        start, size = int(params["startIndex"]), int(params["maxResults"])
        items = [_volume(i) for i in range(start, min(start + size, 70))]
        return httpx.Response(200, json={"totalItems": 70, "items": items})

    adapter = GoogleBooksAdapter(api_key="k", transport=httpx.MockTransport(handler))
    result = asyncio.run(adapter.search("python", 50, SearchFilters(language="en")))

    assert result.ok
    assert len(result.books) == 50
    assert result.total_count == 70
    assert calls == [(0, 40, "en"), (40, 10, "en")]

    book = result.books[0]
    assert book.id == "google_vol0"
    assert book.source is Source.GOOGLE
    assert book.thumbnail_url.startswith("https://")
    assert book.isbn == "9780000000000"


def test_google_missing_authors_become_placeholder():
    def handler(request):
        return httpx.Response(200, json={"totalItems": 1, "items": [
            {"id": "x", "volumeInfo": {"title": "Anonymous"}},
        ]})

    adapter = GoogleBooksAdapter(transport=httpx.MockTransport(handler))
    book = asyncio.run(adapter.search("x", 5)).books[0]
    assert book.authors == ("Unknown Author",)
    assert not book.has_real_author


def test_open_library_maps_fields():
    def handler(request):
        assert request.url.path == "/search.json"
        return httpx.Response(200, json={"numFound": 1, "docs": [{
            "key": "/works/OL1W",
            "title": "Machine Learning",
            "author_name": ["Tom M. Mitchell"],
            "first_publish_year": 1997,
            "publisher": ["McGraw-Hill"],
            "cover_i": 123,
            "ratings_average": 4.2,
            "ratings_count": 40,
            "subject": ["Machine learning", "a", "b", "c", "d", "e"],
            "language": ["eng"],
        }]})

    adapter = OpenLibraryAdapter(transport=httpx.MockTransport(handler))
    result = asyncio.run(adapter.search("machine learning", 10))
    book = result.books[0]

    assert book.id == "openlibrary_OL1W"
    assert book.authors == ("Tom M. Mitchell",)
    assert book.thumbnail_url == "https://covers.openlibrary.org/b/id/123-L.jpg"
    assert book.average_rating == 4.2
    assert len(book.categories) == 5


def test_internet_archive_flattens_list_fields():
    def handler(request):
        assert "mediatype:texts" in request.url.params["q"]
        return httpx.Response(200, json={"response": {"numFound": 1, "docs": [{
            "identifier": "algorithms00",
            "title": ["Algorithms"],
            "creator": ["Sedgewick, Robert", "Wayne, Kevin"],
            "description": ["A textbook"],
            "language": "eng",
            "year": 2011,
        }]}})

    adapter = InternetArchiveAdapter(transport=httpx.MockTransport(handler))
    book = asyncio.run(adapter.search("algorithms", 5)).books[0]

    assert book.title == "Algorithms"
    assert book.authors == ("Sedgewick, Robert", "Wayne, Kevin")
    assert book.description == "A textbook"
    assert book.published_date == "2011"
    assert book.read_online_link.endswith("/algorithms00/mode/2up")


def test_parse_subtitle():
    parsed = parse_subtitle("[美] 托马斯·科尔曼 / 殷建平 / 机械工业出版社 / 2013-1 / 128.00元")
    assert parsed.authors == ["托马斯·科尔曼"]
    assert parsed.year == "2013"
    assert parsed.publisher == "机械工业出版社"


def test_parse_subtitle_without_publisher_keyword():
    parsed = parse_subtitle("刘慈欣、王晋康 / 2008 / 重庆")
    assert parsed.authors == ["刘慈欣", "王晋康"]
    assert parsed.year == "2008"
    assert parsed.publisher == "重庆"


def test_parse_rating():
    html = '<strong class="ll rating_num">9.4</strong><span property="v:votes">123456</span>'
    assert parse_rating(html) == (4.7, 123456)
    assert parse_rating("<html></html>") is None


def test_douban_filters_items_and_enriches_ratings():
    def handler(request):
        if request.url.path == "/j/subject_suggest":
            return httpx.Response(200, json=[
                {"type": "b", "id": "2567698", "title": "三体", "author_name": "刘慈欣",
                 "year": "2008", "pic": "https://img.doubanio.com/view/subject/s_ratio/public/s2768378.jpg",
                 "url": "https://book.douban.com/subject/2567698/"},
                {"type": "a", "id": "1", "title": "三体 (author page)"},
            ])
        return httpx.Response(
            200, text='<strong class="rating_num">8.8</strong><span property="v:votes">500</span>'
        )

    adapter = DoubanAdapter(fetch_ratings=True, transport=httpx.MockTransport(handler))
    result = asyncio.run(adapter.search("三体", 5))

    assert len(result.books) == 1
    book = result.books[0]
    assert book.id == "douban_2567698"
    assert book.douban_link == "https://book.douban.com/subject/2567698/"
    assert book.authors == ("刘慈欣",)
    assert "/l/" in book.thumbnail_url
    assert book.average_rating == 4.4
    assert book.ratings_count == 500


def test_adapter_errors_become_empty_results():
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    result = asyncio.run(OpenLibraryAdapter(transport=transport).search("x", 5))
    assert not result.ok
    assert result.books == []
    assert result.source is Source.OPEN_LIBRARY


class _Slow(BaseAdapter):
    timeout = 0.05

    @property
    def name(self):
        return "Slow"

    @property
    def source(self):
        return Source.INTERNET_ARCHIVE

    @property
    def base_url(self):
        return "https://example.com"

    async def _search(self, query, limit, filters):
        await asyncio.sleep(1)
        return [], 0


def test_provider_local_timeout():
    result = asyncio.run(_Slow().search("x", 5))
    assert result.error == "timeout"
    assert result.books == []


def test_register_adapter_shadows_builtin():
    custom = _Slow()
    registry.register_adapter(custom)
    try:
        adapters = registry.get_all_adapters()
        assert registry.get_adapter(Source.INTERNET_ARCHIVE) is custom
        assert sum(a.source is Source.INTERNET_ARCHIVE for a in adapters) == 1
    finally:
        registry.clear_custom_adapters()
    assert registry.get_adapter(Source.INTERNET_ARCHIVE) is not custom
