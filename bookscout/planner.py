"""Query planning: free text (plus an optional LLM intent) to a structured Query."""

import asyncio
import logging
import re
from dataclasses import replace
from itertools import zip_longest

from bookscout import rules
from bookscout.intent import MAX_KEYWORDS, Intent, IntentService
from bookscout.models import Language, Query, Source
from bookscout.text import any_term, contains_term, has_cjk

log = logging.getLogger(__name__)

_SPLIT_RE = re.compile(r"[\s，。！？、；：“”‘’（）【】《》,.!?;:()\[\]\"']+")
_BOOK_NAME_RE = re.compile(r"《([^》]+)》")
_CJK_RUN_RE = re.compile(r"[一-鿿]+")
_PROTECTED = sorted(rules.PROTECTED_COMPOUNDS, key=len, reverse=True)
# Stop words that cling to neighbouring CJK text, since Chinese has no spaces.
_CJK_AFFIXES = ("推荐", "书籍", "一本", "几本", "相关", "的", "书", "找", "想")


def _protect(text: str) -> tuple[str, dict[str, str]]:
    """Swap protected compounds for placeholders so filler removal cannot split them."""
    placeholders: dict[str, str] = {}
    for i, term in enumerate(_PROTECTED):
        pattern = re.compile(re.escape(term), re.I)
        match = pattern.search(text)
        if match:
            token = f"__TERM{i}__"
            placeholders[token] = match.group()
            text = pattern.sub(f" {token} ", text)
    return text, placeholders


def _restore(text: str, placeholders: dict[str, str]) -> str:
    for token, term in placeholders.items():
        text = text.replace(token, term)
    return text


def _remove_filler(text: str) -> str:
    for word in rules.FILLER_WORDS:
        text = re.sub(re.escape(word), " ", text, flags=re.I)
    return text


def optimize_text(text: str) -> str:
    """Strip filler phrases while keeping known compounds intact."""
    protected, placeholders = _protect(text)
    cleaned = _restore(_remove_filler(protected), placeholders)
    return " ".join(cleaned.split())


def _strip_cjk_stop_words(token: str) -> str:
    changed = True
    while token and changed:
        changed = False
        for word in _CJK_AFFIXES:
            if token.startswith(word):
                token, changed = token[len(word):], True
            if token.endswith(word):
                token, changed = token[: -len(word)], True
    return token


def extract_keywords(text: str) -> list[str]:
    """Tokenize, drop stop words and generic modifiers, dedupe, cap at MAX_KEYWORDS."""
    protected, placeholders = _protect(text)
    protected = _remove_filler(protected)

    keywords: list[str] = []
    for token in _SPLIT_RE.split(protected):
        if token in placeholders:
            word = placeholders[token].lower()
        else:
            word = token.lower()
            if has_cjk(word):
                word = _strip_cjk_stop_words(word)
            if word in rules.STOP_WORDS or word in rules.GENERIC_MODIFIERS:
                continue
        if len(word) >= 2 and word not in keywords:
            keywords.append(word)

    if not keywords:
        fallback = " ".join(text.split()).lower()
        return [fallback] if fallback else []
    return keywords[:MAX_KEYWORDS]


def detect_fiction(text: str) -> bool:
    return any_term(text.lower(), rules.FICTION_QUERY_TERMS)


def detect_genre(text: str) -> str | None:
    lowered = text.lower()
    for key, genre in rules.GENRES.items():
        if any_term(lowered, genre.triggers):
            return key
    return None


def detect_topic_categories(text: str) -> list[str]:
    lowered = text.lower()
    return [key for key, cat in rules.TOPIC_CATEGORIES.items() if any_term(lowered, cat.triggers)]


def detect_book_type(text: str) -> tuple[bool, bool]:
    """Return (theoretical, practical) hints. Mixed signals count as neither."""
    lowered = text.lower()
    theory = any_term(lowered, rules.THEORETICAL_QUERY_TERMS)
    practice = any_term(lowered, rules.PRACTICAL_QUERY_TERMS)
    return theory and not practice, practice and not theory


def _drop_modifiers(phrase: str) -> str:
    words = [w for w in phrase.split() if w.lower() not in rules.GENERIC_MODIFIERS]
    return " ".join(words)


def fiction_search_keywords(keywords: list[str], topic: str = "") -> list[str]:
    """Genre/topic first, optionally one reference author or work. Never modifiers."""
    cleaned = [k for k in (_drop_modifiers(k) for k in keywords) if k]
    if topic:
        topic = _drop_modifiers(topic)
        if topic and topic not in cleaned:
            cleaned.insert(0, topic)
    unique = list(dict.fromkeys(cleaned))
    return unique[:2]


def _tutorial_suffix(search_text: str, is_fiction: bool, is_theoretical: bool) -> str:
    if is_fiction or is_theoretical or not has_cjk(search_text):
        return search_text
    if any(term in search_text for term in rules.EDUCATIONAL_QUERY_TERMS):
        return search_text
    return f"{search_text} {rules.TUTORIAL_SUFFIX_ZH}"


def plan_from_rules(text: str, language: Language = Language.ANY) -> Query:
    """Deterministic planning used when no intent is available."""
    is_fiction = detect_fiction(text)
    theoretical, practical = detect_book_type(text)
    keywords = extract_keywords(text)

    if is_fiction:
        search_text = " ".join(fiction_search_keywords(keywords))
    else:
        search_text = _tutorial_suffix(" ".join(keywords), is_fiction, theoretical)

    return Query(
        text=text,
        keywords=keywords,
        language=language,
        is_fiction=is_fiction,
        is_theoretical=theoretical,
        is_practical=practical,
        topic=optimize_text(text),
        search_text=search_text,
        genre=detect_genre(text) if is_fiction else None,
        topic_categories=[] if is_fiction else detect_topic_categories(text),
    )


def plan_from_intent(text: str, intent: Intent, language: Language = Language.ANY) -> Query:
    is_fiction = intent.category == "fiction"
    if intent.book_type is not None:
        theoretical = intent.book_type == "theoretical"
        practical = intent.book_type == "practical"
    else:
        theoretical, practical = detect_book_type(text)

    if is_fiction:
        search_keywords = fiction_search_keywords(intent.search_keywords, intent.topic)
    else:
        search_keywords = [k for k in (_drop_modifiers(k) for k in intent.search_keywords) if k]
    search_keywords = search_keywords or [intent.topic]
    search_text = " ".join(search_keywords)
    if not is_fiction:
        search_text = _tutorial_suffix(search_text, is_fiction, theoretical)

    context = f"{text} {intent.topic} {search_text}"
    return Query(
        text=text,
        keywords=extract_keywords(" ".join(search_keywords)),
        language=language,
        is_fiction=is_fiction,
        is_theoretical=theoretical,
        is_practical=practical,
        topic=intent.topic,
        search_text=search_text,
        genre=detect_genre(context) if is_fiction else None,
        topic_categories=[] if is_fiction else detect_topic_categories(context),
    )


def _unique(items, limit: int) -> list[str]:
    out = [i.strip() for i in dict.fromkeys(items) if i and len(i.strip()) >= 2]
    return list(dict.fromkeys(out))[:limit]


def _core_words(query: Query) -> list[str]:
    return [
        w for w in query.search_text.split()
        if len(w) >= 2 and w.lower() not in rules.GENERIC_MODIFIERS
    ]


def _google_variants(query: Query, chinese: bool) -> list[str]:
    variants: list[str] = []
    book_name = _BOOK_NAME_RE.search(query.text)
    if book_name:
        variants.append(book_name.group(1))

    core = _core_words(query)
    if query.is_fiction:
        genre = rules.GENRES.get(query.genre or "")
        if chinese:
            variants += (genre.variants_zh if genre and genre.variants_zh
                         else rules.FICTION_DEFAULT_VARIANTS_ZH)
        else:
            variants += (genre.variants_en if genre and genre.variants_en
                         else rules.FICTION_DEFAULT_VARIANTS_EN)
        if core:
            variants.append(("" if has_cjk(query.search_text) else " ").join(core))
    else:
        variants.append(query.search_text)
        for key in query.topic_categories[:1]:
            cat = rules.TOPIC_CATEGORIES[key]
            variants += cat.variants_zh if chinese else cat.variants_en
        joined = " ".join(query.keywords)
        if not query.topic_categories and joined != query.search_text:
            variants.append(joined)

    return _unique(variants, 6)


def build_variants(query: Query) -> dict[Source, list[str]]:
    """Provider-specific query wordings."""
    if query.language is Language.ANY:
        zh, en = _google_variants(query, True), _google_variants(query, False)
        blended = [v for pair in zip_longest(zh, en) for v in pair if v]
        google = _unique(blended, 6)
    else:
        google = _google_variants(query, query.language is Language.ZH)

    douban: list[str] = []
    book_name = _BOOK_NAME_RE.search(query.text)
    if book_name:
        douban.append(book_name.group(1))
    if query.is_fiction:
        genre = rules.GENRES.get(query.genre or "")
        if genre:
            douban += genre.douban_variants
    else:
        lowered = f"{query.text} {query.search_text}".lower()
        douban += [t for t in rules.DOUBAN_TECH_TERMS if contains_term(lowered, t.lower())]
    douban.append(query.search_text)

    latin = " ".join(_CJK_RUN_RE.sub(" ", query.search_text).split())
    open_library = [latin or query.text.strip()]
    if not query.is_fiction and query.has_cjk:
        for key in query.topic_categories:
            open_library += rules.TOPIC_CATEGORIES[key].english_terms
    open_library = _unique(open_library, 3)

    return {
        Source.GOOGLE: google,
        Source.DOUBAN: _unique(douban, 8),
        Source.OPEN_LIBRARY: open_library,
        Source.INTERNET_ARCHIVE: [query.search_text],
    }


def plain_query(query: Query) -> Query | None:
    """A copy of ``query`` that sends the bare keywords to every provider.

    Used for a second, differently-worded attempt when the planned variants
    found nothing. Returns None when that would repeat the same requests.
    """
    plain = " ".join(query.keywords)
    if not plain:
        return None
    variants = {source: [plain] for source in query.variants}
    if variants == query.variants:
        return None
    return replace(query, variants=variants)


class QueryPlanner:
    """Builds a Query, preferring the intent collaborator when it answers."""

    def __init__(self, intent_service: IntentService | None = None, intent_timeout: float = 8.0):
        self.intent_service = intent_service
        self.intent_timeout = intent_timeout

    async def _analyze(self, text: str) -> Intent | None:
        if self.intent_service is None:
            return None
        try:
            return await asyncio.wait_for(
                self.intent_service.analyze(text), timeout=self.intent_timeout
            )
        except asyncio.TimeoutError:
            log.warning("Intent service timed out after %.1fs; using rules", self.intent_timeout)
        except Exception as e:
            log.warning("Intent service failed: %s; using rules", e)
        return None

    async def plan(self, text: str, language: Language | str = Language.ANY) -> Query:
        language = Language.parse(language)
        intent = await self._analyze(text)
        if intent is not None:
            query = plan_from_intent(text, intent, language)
        else:
            query = plan_from_rules(text, language)
        query.variants = build_variants(query)

        log.debug(
            "Planned %r: keywords=%s fiction=%s theoretical=%s variants=%s",
            text, query.keywords, query.is_fiction, query.is_theoretical, query.variants,
        )
        return query
