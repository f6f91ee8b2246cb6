"""Intent collaborator: turns free-form user text into a structured search intent.

The collaborator is an LLM behind an OpenAI-compatible chat endpoint (OpenAI,
OpenRouter, DeepSeek, or a local Ollama). Its output is never trusted: the
reply must contain a JSON object that validates against ``Intent``, otherwise
the caller gets ``None`` and falls back to rule-based planning.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Literal

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

log = logging.getLogger(__name__)

MAX_KEYWORDS = 8

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.S)

INTENT_PROMPT = """You analyse book search requests. Identify the core topic the user wants.

User input: "{text}"

Rules:
- topic is the core subject in 1-3 words.
- category is "technical", "fiction" or "other".
- level is "beginner", "intermediate", "advanced" or null (technical books only).
- language is "zh" for Chinese books, "en" for English books. Chinese input usually
  means Chinese books unless the user asks for English or original editions.
- bookType is "practical", "theoretical", "both" or null.
- searchKeywords holds only useful search terms. Never add modifiers such as
  "popular", "recommended" or "classic". If the user names a reference book or
  author, add it as the second keyword.

Reply with JSON only:
{{"topic": "...", "category": "...", "level": null, "language": "...",
  "bookType": null, "searchKeywords": ["..."], "referenceBooks": []}}

Examples:
"I want to learn Python programming" ->
{{"topic": "Python", "category": "technical", "level": "beginner", "language": "en", "searchKeywords": ["Python programming"]}}
"找一些类似《三体》的书" ->
{{"topic": "科幻小说", "category": "fiction", "level": null, "language": "zh", "searchKeywords": ["科幻小说", "刘慈欣"], "referenceBooks": ["三体"]}}
"""


class Intent(BaseModel):
    """Validated output of the intent collaborator."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    topic: str = Field(min_length=1)
    category: Literal["technical", "fiction", "other"] = "other"
    level: Literal["beginner", "intermediate", "advanced"] | None = None
    language: Literal["zh", "en"]
    book_type: Literal["practical", "theoretical", "both"] | None = Field(None, alias="bookType")
    search_keywords: list[str] = Field(default_factory=list, alias="searchKeywords")
    reference_books: list[str] = Field(default_factory=list, alias="referenceBooks")

    @field_validator("topic", mode="before")
    @classmethod
    def _strip_topic(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            if value in ("nonfiction", "non-fiction"):
                return "other"
        return value

    @field_validator("level", "book_type", mode="before")
    @classmethod
    def _null_strings(cls, value):
        if isinstance(value, str) and value.strip().lower() in ("", "null", "none"):
            return None
        return value

    @field_validator("search_keywords", "reference_books", mode="before")
    @classmethod
    def _clean_list(cls, value):
        if value is None:
            return []
        if isinstance(value, list):
            return [v.strip() for v in value if isinstance(v, str) and v.strip()][:MAX_KEYWORDS]
        return value

    @model_validator(mode="after")
    def _default_keywords(self) -> "Intent":
        if not self.search_keywords:
            self.search_keywords = [self.topic]
        return self


def parse_intent(raw: str) -> Intent | None:
    """Extract and validate the first JSON object in ``raw``."""
    match = _JSON_OBJECT_RE.search(raw or "")
    if not match:
        return None
    try:
        return Intent.model_validate(json.loads(match.group()))
    except (json.JSONDecodeError, ValidationError) as e:
        log.warning("Discarding malformed intent: %s", e)
        return None


class IntentService(ABC):
    """Interface for the external intent collaborator."""

    @abstractmethod
    async def analyze(self, text: str) -> Intent | None:
        """Return a validated intent, or None when unavailable."""


class LLMIntentService(IntentService):
    """Intent extraction through an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: str | None = None,
        timeout: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def analyze(self, text: str) -> Intent | None:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        payload = {
            "model": self.model,
            "temperature": 0,
            "messages": [{"role": "user", "content": INTENT_PROMPT.format(text=text)}],
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, headers=headers, transport=self._transport
            ) as client:
                resp = await client.post(f"{self.base_url}/chat/completions", json=payload)
                resp.raise_for_status()
                content = resp.json()["choices"][0]["message"]["content"] or ""
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
            log.warning("Intent service unavailable (%s): %s", self.model, e)
            return None

        intent = parse_intent(content)
        if intent is not None:
            log.debug("Intent for %r: %s", text, intent.model_dump())
        return intent
