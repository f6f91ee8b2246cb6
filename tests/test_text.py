from bookscout.models import Book, Language, Source
from bookscout.text import (
    author_tokens,
    contains_term,
    has_cjk,
    normalize_author,
    normalize_title,
    strip_nationality,
    term_pattern,
)


def test_has_cjk():
    assert has_cjk("三体")
    assert has_cjk("Python编程")
    assert not has_cjk("Machine Learning")
    assert not has_cjk("")


def test_short_terms_need_both_word_boundaries():
    assert contains_term("a guide to ai safety", "ai")
    assert not contains_term("domain driven design", "ai")
    assert not contains_term("the mountain", "ai")


def test_long_terms_need_leading_boundary_only():
    assert contains_term("introduction to algorithms", "algorithm")
    assert not contains_term("metaprogramming ruby", "programming")


def test_cjk_terms_match_as_substrings():
    assert contains_term("深入理解计算机系统", "计算机")


def test_normalize_title_drops_annotations_and_subtitle():
    assert normalize_title("Fluent Python (2nd Edition)") == "fluent python"
    assert normalize_title("Python编程：从入门到实践") == "python编程"
    assert normalize_title("【正版】三体  全集") == "三体 全集"
    assert normalize_title("Deep Learning: Adaptive Computation") == "deep learning"


def test_strip_nationality():
    assert strip_nationality("[美] 托马斯·科尔曼") == "托马斯·科尔曼"
    assert strip_nationality("（英）乔治·奥威尔") == "乔治·奥威尔"
    assert strip_nationality("【日】东野圭吾") == "东野圭吾"
    assert strip_nationality("Tom Mitchell") == "Tom Mitchell"


def test_author_tokens_ignore_placeholder():
    assert author_tokens(["Unknown Author"]) == set()
    assert author_tokens(["Tom M. Mitchell"]) == {"tom", "mitchell"}
    assert normalize_author("[美] Tom Mitchell") == "tom mitchell"


def test_language_parse_falls_back_to_any():
    assert Language.parse("ZH") is Language.ZH
    assert Language.parse(None) is Language.ANY
    assert Language.parse("fr") is Language.ANY


def test_book_completeness_and_dict():
    book = Book(
        id="google_1",
        title="T",
        authors=("A",),
        source=Source.GOOGLE,
        description="d",
        thumbnail_url="https://img",
    )
    assert book.completeness == 2
    data = book.to_dict()
    assert data["source"] == "google"
    assert data["authors"] == ["A"]


def test_term_patterns_are_bounded():
    term_pattern.cache_clear()
    for i in range(1500):
        contains_term("a long title", f"keyword{i}")
    assert term_pattern.cache_info().currsize <= 1024
    assert contains_term("python cookbook", "python")
