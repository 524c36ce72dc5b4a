import importlib

import pytest


def _reload_config(monkeypatch, **env):
    keys = [
        "ENVIRONMENT",
        "NODE_ENV",
        "OPENAI_API_KEY",
        "OPENAI_MODEL",
        "GITHUB_TOKEN",
        "GITHUB_API_TOKEN",
        "CORS_ALLOWLIST",
        "RATE_LIMIT_MAX_REQUESTS",
    ]
    for key in keys:
        monkeypatch.delenv(key, raising=False)
    # Keep .env files out of the reload.
    monkeypatch.setenv("ENVIRONMENT", "test")
    for key, value in env.items():
        monkeypatch.setenv(key, value)

    import config

    return importlib.reload(config)


def test_config_defaults(monkeypatch):
    cfg = _reload_config(monkeypatch)

    assert cfg.OPENAI_MODEL == "gpt-4o-mini"
    assert cfg.RATE_LIMIT_MAX_REQUESTS == 5
    assert cfg.RATE_LIMIT_WINDOW_SECONDS == 3600
    assert cfg.MAX_FETCHED_FILES == 10
    assert cfg.get_cors_allowlist() is None
    assert cfg.get_default_github_token() is None


def test_environment_falls_back_to_node_env(monkeypatch):
    cfg = _reload_config(monkeypatch)
    monkeypatch.delenv("ENVIRONMENT")

    assert cfg.get_environment() == "production"
    assert cfg.is_development() is False

    monkeypatch.setenv("NODE_ENV", "Development")
    assert cfg.is_development() is True


def test_model_and_limit_overrides(monkeypatch):
    cfg = _reload_config(monkeypatch, OPENAI_MODEL="gpt-4o", RATE_LIMIT_MAX_REQUESTS="20")

    assert cfg.OPENAI_MODEL == "gpt-4o"
    assert cfg.RATE_LIMIT_MAX_REQUESTS == 20


def test_get_openai_api_key_guard(monkeypatch):
    cfg = _reload_config(monkeypatch)

    with pytest.raises(RuntimeError, match="OPENAI_API_KEY"):
        cfg.get_openai_api_key()

    monkeypatch.setenv("OPENAI_API_KEY", " test-key ")
    assert cfg.get_openai_api_key() == "test-key"


def test_default_github_token_prefers_github_token(monkeypatch):
    cfg = _reload_config(monkeypatch, GITHUB_API_TOKEN="ghp_second")
    assert cfg.get_default_github_token() == "ghp_second"

    monkeypatch.setenv("GITHUB_TOKEN", "ghp_first")
    assert cfg.get_default_github_token() == "ghp_first"


def test_cors_allowlist_parsing(monkeypatch):
    cfg = _reload_config(monkeypatch, CORS_ALLOWLIST=" https://a.example , ,https://b.example")

    assert cfg.get_cors_allowlist() == {"https://a.example", "https://b.example"}
