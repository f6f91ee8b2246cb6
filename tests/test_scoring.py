from dataclasses import replace

from bookscout.models import EXCLUDED, NOT_FICTION, Book, Language, Query, Source
from bookscout.planner import plan_from_rules
from bookscout.scoring import (
    Scorer,
    category_adjustment,
    detect_book_language,
    fiction_evidence,
    fiction_exclusion,
    is_valid_record,
    keyword_relevance,
    known_fiction_work_bonus,
    known_work_bonus,
    language_gate,
    metadata_quality,
    noise_penalty,
)


def _book(title, authors=("Jane Doe",), source=Source.GOOGLE, **kw) -> Book:
    return Book(id=f"{source.value}_{title}", title=title, authors=tuple(authors), source=source, **kw)


def test_title_match_beats_no_match():
    q = plan_from_rules("python", Language.EN)
    matched = _book("Python Tricks", language="en", description="Tips for developers")
    unmatched = _book("Clean Tricks", language="en", description="Tips for developers")

    scorer = Scorer()
    assert scorer.score(matched, q) > scorer.score(unmatched, q)


def test_exact_title_match_strictly_higher_than_description_match():
    q = plan_from_rules("rust", Language.EN)
    in_title = _book("Rust in Action", language="en", description="Systems programming with rust")
    in_description = _book("Systems in Action", language="en",
                           description="Systems programming with rust")

    scorer = Scorer()
    assert scorer.score(in_title, q) > scorer.score(in_description, q)
    assert keyword_relevance(in_description, q) > 0


def test_keyword_relevance_no_match_is_excluded():
    q = plan_from_rules("haskell", Language.EN)
    assert keyword_relevance(_book("Cooking at Home"), q) == EXCLUDED


def test_keyword_relevance_components():
    q = Query(text="machine learning python", keywords=["machine learning", "python"])
    both = _book("Python Machine Learning")
    # 80 + 60 title, 50 coverage, 30 for two title hits
    assert keyword_relevance(both, q) == 80 + 60 + 50 + 30

    desc_only = _book("Some Book", description="all about python")
    # 18 description, 25 coverage, -20 description-only
    assert keyword_relevance(desc_only, q) == 18 + 25 - 20


def test_language_detection():
    assert detect_book_language(_book("三体")) == "zh"
    assert detect_book_language(_book("Dune", language="en")) == "en"
    assert detect_book_language(_book("Le Petit Prince", language="fr")) == "fr"
    assert detect_book_language(_book("Dune")) == "en"
    assert detect_book_language(_book("1984")) == "mixed"


def test_language_gate_only_for_strict_preferences():
    zh_book = _book("机器学习", ["周志华"], language="zh")
    assert language_gate(zh_book, Query(text="x", keywords=["x"], language=Language.EN)) == EXCLUDED
    assert language_gate(zh_book, Query(text="x", keywords=["x"], language=Language.ZH)) == 0
    assert language_gate(zh_book, Query(text="x", keywords=["x"], language=Language.ANY)) == 0
    mixed = _book("1984")
    assert language_gate(mixed, Query(text="x", keywords=["x"], language=Language.EN)) == 0


def test_known_work_requires_author():
    q = plan_from_rules("algorithms", Language.EN)
    clrs = _book("Introduction to Algorithms", ["Thomas H. Cormen", "Charles Leiserson"])
    other = _book("Introduction to Algorithms", ["Someone Else"])
    assert known_work_bonus(clrs, q) == 100
    assert known_work_bonus(other, q) == 0


def test_canonical_work_beats_generic_by_known_work_bonus():
    q = plan_from_rules("algorithms", Language.EN)
    common = dict(language="en", description="A book about algorithms and data.",
                  thumbnail_url="https://img", published_date="2009")
    canonical = _book("Introduction to Algorithms", ["Thomas H. Cormen"], **common)
    generic = _book("Grokking Algorithms", ["Aditya Bhargava"], **common)

    scorer = Scorer()
    assert scorer.score(canonical, q) - scorer.score(generic, q) >= 100


def test_metadata_quality():
    bare = _book("X", ["Unknown Author"])
    assert metadata_quality(bare, Query(text="x", keywords=["x"])) == 0

    full = _book(
        "X", ["Real Person"], Source.DOUBAN,
        thumbnail_url="https://img", average_rating=4.5, ratings_count=10_000,
        published_date="2020", description="d" * 60,
    )
    # 5 author + 5 cover + 9 rating + 15 count (capped) + 2 date + 2 description + 15 Douban
    assert metadata_quality(full, Query(text="x", keywords=["x"])) == 53

    placeholder = replace(full, thumbnail_url="https://img/no_cover.png", source=Source.GOOGLE)
    assert metadata_quality(placeholder, Query(text="x", keywords=["x"])) == 33


def test_theoretical_queries_favour_theory_titles():
    q = plan_from_rules("operating system principles", Language.EN)
    assert q.is_theoretical
    theory = _book("Operating System Principles")
    tutorial = _book("Operating System Tutorial for Beginners")
    assert category_adjustment(theory, q) > category_adjustment(tutorial, q)


def test_practical_queries_favour_educational_titles():
    q = plan_from_rules("python tutorial", Language.EN)
    assert q.is_practical
    assert category_adjustment(_book("Python Tutorial"), q) > 0
    assert category_adjustment(_book("Python Internals"), q) < 0


def test_noise_penalty_skipped_when_query_names_the_domain():
    book = _book("Python for Marketing")
    assert noise_penalty(book, plan_from_rules("python")) == -30
    assert noise_penalty(book, plan_from_rules("python marketing")) == 0
    assert noise_penalty(_book("Python Digest"), plan_from_rules("python")) == -20


def test_quality_filter():
    assert not is_valid_record(_book("A"))
    assert not is_valid_record(_book("?!?!"))
    assert not is_valid_record(_book("\ufffd\ufffd\ufffdab"))
    assert not is_valid_record(_book("Some Title", ["Unknown Author"]))
    assert is_valid_record(_book("Some Title", ["Unknown Author"], publisher="Acme"))
    assert is_valid_record(_book("C#", ["Real Person"]))


def test_quality_filter_ignores_spaces_and_keeps_language_names():
    for title in ("C & C++", "C/C++", "C++", "Go in Action", "C# 10 in a Nutshell"):
        assert is_valid_record(_book(title, ["Real Person"], thumbnail_url="https://img")), title
    assert not is_valid_record(_book("? ! ? !", ["Real Person"]))


def test_fiction_excludes_technical_titles():
    q = plan_from_rules("science fiction novel", Language.EN)
    assert q.is_fiction
    book = _book("Python Programming Fundamentals", language="en",
                 description="Examples drawn from science fiction stories.")
    assert fiction_exclusion(book, q) == EXCLUDED
    assert Scorer().score(book, q) == EXCLUDED


def test_fiction_without_evidence_hits_soft_floor():
    q = plan_from_rules("科幻小说")
    plain = _book("平凡的一天", ["某人"])
    assert fiction_evidence(plain, q) == NOT_FICTION
    hinted = replace(plain, description="故事讲述了一个少年的冒险")
    assert fiction_evidence(hinted, q) == 10


def test_known_work_commentary_gets_a_fraction():
    q = plan_from_rules("科幻小说")
    original = _book("三体", ["刘慈欣"], Source.DOUBAN)
    commentary = _book("三体世界观解读", ["某评论家"], Source.DOUBAN)
    assert known_fiction_work_bonus(original, q) == 100
    assert known_fiction_work_bonus(commentary, q) == 30

    scorer = Scorer()
    assert scorer.score(original, q) > scorer.score(commentary, q)


def test_fiction_pipeline_ranks_genre_books():
    q = plan_from_rules("science fiction novel", Language.EN)
    foundation = _book("Foundation", ["Isaac Asimov"], language="en", categories=("Fiction",),
                       thumbnail_url="https://img")
    assert Scorer().score(foundation, q) >= 10
