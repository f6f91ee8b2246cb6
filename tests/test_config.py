from pathlib import Path

from bookscout import config as cfg


def test_write_default_config_creates_file(tmp_path: Path):
    target = tmp_path / "config.toml"

    written = cfg.write_default_config(path=target)

    assert written == target
    assert target.exists()
    assert target.read_text(encoding="utf-8").strip()


def test_write_default_config_respects_force(tmp_path: Path):
    target = tmp_path / "config.toml"
    target.write_text("language = 'zh-custom'\n", encoding="utf-8")

    cfg.write_default_config(path=target, force=False)
    assert "zh-custom" in target.read_text(encoding="utf-8")

    cfg.write_default_config(path=target, force=True)
    assert "zh-custom" not in target.read_text(encoding="utf-8")


def test_missing_file_gives_defaults(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("GOOGLE_BOOKS_API_KEY", "env-key")

    config = cfg.load_config(tmp_path / "absent.toml")

    assert config.max_results == 20
    assert config.cache_ttl == 300
    assert config.google_api_key == "env-key"
    assert not config.intent.enabled


def test_load_config_reads_sections(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("GOOGLE_BOOKS_API_KEY", raising=False)
    monkeypatch.setenv("MY_LLM_KEY", "sk-test")
    target = tmp_path / "config.toml"
    target.write_text(
        "max_results = 10\n"
        "language = 'zh'\n"
        "cache_ttl = 60\n"
        "provider_timeout = 5.0\n"
        "[google]\n"
        "api_key = 'file-key'\n"
        "[douban]\n"
        "fetch_ratings = true\n"
        "[intent]\n"
        "enabled = true\n"
        "model = 'local-model'\n"
        "api_key_env = 'MY_LLM_KEY'\n",
        encoding="utf-8",
    )

    config = cfg.load_config(target)

    assert config.max_results == 10
    assert config.language == "zh"
    assert config.cache_ttl == 60
    assert config.provider_timeout == 5.0
    assert config.google_api_key == "file-key"
    assert config.douban_fetch_ratings is True
    assert config.intent.enabled
    assert config.intent.model == "local-model"
    assert config.intent.api_key == "sk-test"
    assert config.intent.timeout == 8.0


def test_google_key_falls_back_to_environment(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("GOOGLE_BOOKS_API_KEY", "env-key")
    target = tmp_path / "config.toml"
    target.write_text("max_results = 5\n", encoding="utf-8")

    assert cfg.load_config(target).google_api_key == "env-key"
