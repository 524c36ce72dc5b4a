"""Utility helpers for redacting secrets before request data reaches the log."""

from __future__ import annotations

from typing import Any

import config


REDACTED = "[REDACTED]"

SENSITIVE_HEADERS = (
    "authorization",
    "x-api-key",
    "api-key",
    "x-auth-token",
    "cookie",
    "set-cookie",
    "github-token",
    "github_api_token",
    "openai-api-key",
    "openai_api_key",
)

SENSITIVE_FIELDS = (
    "githubtoken",
    "github_token",
    "apikey",
    "api_key",
    "token",
    "password",
    "secret",
    "authorization",
)


def _redact(data: Any, markers: tuple[str, ...]) -> dict[str, Any]:
    if not isinstance(data, dict):
        return {}
    sanitized = dict(data)
    for key in sanitized:
        lower = str(key).lower()
        if any(marker in lower for marker in markers):
            sanitized[key] = REDACTED
    return sanitized


def sanitize_headers(headers: Any) -> dict[str, Any]:
    return _redact(headers, SENSITIVE_HEADERS)


def sanitize_body(body: Any) -> dict[str, Any]:
    return _redact(body, SENSITIVE_FIELDS)


def sanitize_log_data(data: Any) -> Any:
    """Redact headers, body fields and any nested header/request mappings."""
    if not isinstance(data, dict):
        return data

    sanitized = dict(data)
    if sanitized.get("headers"):
        sanitized["headers"] = sanitize_headers(sanitized["headers"])
    if sanitized.get("body"):
        sanitized["body"] = sanitize_body(sanitized["body"])

    for key, value in sanitized.items():
        if key in ("headers", "body") or not isinstance(value, dict):
            continue
        lower = key.lower()
        if "header" in lower or "req" in lower:
            sanitized[key] = sanitize_headers(value)
    return sanitized


def sanitize_error_response(error: BaseException | None) -> dict[str, Any]:
    payload: dict[str, Any] = {"error": "An unexpected error occurred. Please try again later."}
    if config.is_development():
        payload["details"] = str(error) if error else "Unknown error"
    return payload
