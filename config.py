"""Application configuration and hard limits."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


ROOT = Path(__file__).resolve().parent

# Local overrides first (.env.local), then shared defaults; the test suite stays hermetic.
if os.getenv("ENVIRONMENT", "").strip().lower() != "test":
    load_dotenv(ROOT / ".env.local")
    load_dotenv(ROOT / ".env")

OPENAI_API_KEY_ENV = "OPENAI_API_KEY"
GITHUB_TOKEN_ENVS = ("GITHUB_TOKEN", "GITHUB_API_TOKEN")

# OpenAI-compatible chat endpoint (override via environment if needed).
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL") or None
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
LLM_TEMPERATURE = 0.3
LLM_MAX_OUTPUT_TOKENS = 2000

# GitHub REST base and fetch budgets.
GITHUB_API_BASE = "https://api.github.com"
GITHUB_USER_AGENT = "SecLens-Security-Analyzer"
DEFAULT_BRANCHES = ("main", "master")
MAX_CANDIDATE_FILES = 20
MAX_FETCHED_FILES = 10
MAX_PROMPT_CHARS_PER_FILE = 2000
MAX_REPOSITORY_URL_LENGTH = 500

TIMEOUT_GITHUB_SECONDS = 10
TIMEOUT_LLM_SECONDS = 60

# Per-client request budget for /api/analyze.
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "5"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "3600"))

DEV_CORS_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
)

REPORT_FILENAME_PREFIX = "SecLens"
REPORT_TITLE = "SecLens Security Report"


def get_environment() -> str:
    """Resolve the runtime mode (development, production, test) on every call."""
    value = os.getenv("ENVIRONMENT") or os.getenv("NODE_ENV") or "production"
    return value.strip().lower()


def is_development() -> bool:
    return get_environment() == "development"


def get_openai_api_key() -> str:
    """Resolve the OpenAI API key at runtime so imports stay test-friendly."""
    api_key = os.getenv(OPENAI_API_KEY_ENV, "").strip()
    if api_key:
        return api_key
    raise RuntimeError(f"OpenAI API key is not configured ({OPENAI_API_KEY_ENV})")


def get_default_github_token() -> str | None:
    for name in GITHUB_TOKEN_ENVS:
        token = os.getenv(name, "").strip()
        if token:
            return token
    return None


def get_cors_allowlist() -> set[str] | None:
    raw = os.getenv("CORS_ALLOWLIST")
    if not raw:
        return None
    return {origin.strip() for origin in raw.split(",") if origin.strip()}
