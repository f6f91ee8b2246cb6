import asyncio
import json

import httpx

from bookscout.intent import LLMIntentService, parse_intent


def test_parse_intent_extracts_json_from_chatter():
    raw = 'Sure! Here you go:\n{"topic": "Python", "category": "technical", "language": "en", "searchKeywords": ["Python programming"]}\nHope it helps.'
    intent = parse_intent(raw)
    assert intent is not None
    assert intent.topic == "Python"
    assert intent.category == "technical"
    assert intent.search_keywords == ["Python programming"]


def test_parse_intent_normalizes_nonfiction():
    intent = parse_intent('{"topic": "history", "category": "nonfiction", "language": "zh"}')
    assert intent.category == "other"
    assert intent.search_keywords == ["history"]


def test_parse_intent_null_strings_and_aliases():
    intent = parse_intent(
        '{"topic": "os", "category": "technical", "language": "en", '
        '"level": "null", "bookType": "theoretical", "referenceBooks": ["OSTEP"]}'
    )
    assert intent.level is None
    assert intent.book_type == "theoretical"
    assert intent.reference_books == ["OSTEP"]


def test_parse_intent_rejects_bad_shapes():
    assert parse_intent("") is None
    assert parse_intent("no json here") is None
    assert parse_intent("{not json}") is None
    # language is required
    assert parse_intent('{"topic": "x", "category": "technical"}') is None
    assert parse_intent('{"topic": "x", "category": "poetry", "language": "en"}') is None
    assert parse_intent('{"topic": "", "language": "en"}') is None


def test_parse_intent_caps_keywords():
    payload = {"topic": "x", "language": "en", "searchKeywords": [f"k{i}" for i in range(12)]}
    assert len(parse_intent(json.dumps(payload)).search_keywords) == 8


def test_llm_service_posts_chat_completion():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        content = '{"topic": "科幻小说", "category": "fiction", "language": "zh", "searchKeywords": ["科幻小说"]}'
        return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})

    service = LLMIntentService(
        "https://llm.example.com/v1/", "test-model", api_key="secret",
        transport=httpx.MockTransport(handler),
    )
    intent = asyncio.run(service.analyze("推荐科幻小说"))

    assert intent.category == "fiction"
    assert seen["url"] == "https://llm.example.com/v1/chat/completions"
    assert seen["auth"] == "Bearer secret"
    assert seen["body"]["model"] == "test-model"
    assert "推荐科幻小说" in seen["body"]["messages"][0]["content"]


def test_llm_service_returns_none_on_http_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(500, text="down"))
    service = LLMIntentService("https://llm.example.com/v1", "m", transport=transport)
    assert asyncio.run(service.analyze("python")) is None


def test_llm_service_returns_none_on_unexpected_payload():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"error": "nope"}))
    service = LLMIntentService("https://llm.example.com/v1", "m", transport=transport)
    assert asyncio.run(service.analyze("python")) is None
