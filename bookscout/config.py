"""User configuration loaded from a TOML file."""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
_EXAMPLE_CONFIG = _PROJECT_ROOT / "config.example.toml"

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "bookscout" / "config.toml"


@dataclass
class IntentConfig:
    """OpenAI-compatible chat endpoint used for query understanding."""

    enabled: bool = False
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    api_key_env: str = "OPENAI_API_KEY"
    timeout: float = 8.0

    @property
    def api_key(self) -> str | None:
        return os.environ.get(self.api_key_env) or None


@dataclass
class Config:
    max_results: int = 20
    language: str = "any"
    cache_ttl: float = 300
    cache_max_entries: int = 100
    provider_timeout: float = 15.0
    google_api_key: str | None = None
    douban_fetch_ratings: bool = False
    intent: IntentConfig = field(default_factory=IntentConfig)


def load_config(path: Path | None = None) -> Config:
    """Load config from TOML file, falling back to defaults."""
    path = path or DEFAULT_CONFIG_PATH

    if not path.exists():
        return Config(google_api_key=os.environ.get("GOOGLE_BOOKS_API_KEY"))

    with open(path, "rb") as f:
        data = tomllib.load(f)

    google = data.get("google", {})
    douban = data.get("douban", {})
    intent = data.get("intent", {})
    defaults = IntentConfig()

    return Config(
        max_results=data.get("max_results", 20),
        language=data.get("language", "any"),
        cache_ttl=data.get("cache_ttl", 300),
        cache_max_entries=data.get("cache_max_entries", 100),
        provider_timeout=data.get("provider_timeout", 15.0),
        google_api_key=google.get("api_key") or os.environ.get("GOOGLE_BOOKS_API_KEY"),
        douban_fetch_ratings=douban.get("fetch_ratings", False),
        intent=IntentConfig(
            enabled=intent.get("enabled", defaults.enabled),
            base_url=intent.get("base_url", defaults.base_url),
            model=intent.get("model", defaults.model),
            api_key_env=intent.get("api_key_env", defaults.api_key_env),
            timeout=intent.get("timeout", defaults.timeout),
        ),
    )


def write_default_config(path: Path | None = None, force: bool = False) -> Path:
    """Write a default config file if missing.

    Args:
        path: Optional path to write the config.
        force: Overwrite existing file if True.

    Returns:
        Path to the written (or existing) config file.
    """
    path = path or DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.exists() and not force:
        return path

    if _EXAMPLE_CONFIG.exists():
        content = _EXAMPLE_CONFIG.read_text(encoding="utf-8")
    else:
        content = "# BookScout configuration\n"

    path.write_text(content, encoding="utf-8")
    return path
