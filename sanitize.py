"""Input, URL and markdown sanitization shared by the API handlers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional


GITHUB_REPO_URL_RE = re.compile(r"^https://github\.com/[\w.-]+/[\w.-]+/?$")
GITHUB_REPO_EXTRACT_RE = re.compile(r"(?:https?://)?github\.com/([\w.-]+)/([\w.-]+)")
REPO_NAME_RE = re.compile(r"^[a-z0-9._-]+$", re.IGNORECASE)

_HTML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#x27;"),
    ("/", "&#x2F;"),
)

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_IFRAME_RE = re.compile(r"<iframe\b[^<]*(?:(?!</iframe>)<[^<]*)*</iframe>", re.IGNORECASE)
_JS_SCHEME_RE = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER_RE = re.compile(r"on\w+\s*=", re.IGNORECASE)


@dataclass
class ValidationResult:
    valid: bool
    value: str = ""
    error: Optional[str] = None


def sanitize_text(text: Any) -> str:
    """HTML-escape plain text. Ampersands go first so nothing is double-escaped."""
    if not text or not isinstance(text, str):
        return ""
    for raw, escaped in _HTML_ESCAPES:
        text = text.replace(raw, escaped)
    return text


def sanitize_markdown(markdown: Any) -> str:
    """Strip script/iframe elements and inline handlers while leaving markdown intact."""
    if not markdown or not isinstance(markdown, str):
        return ""
    cleaned = _SCRIPT_RE.sub("", markdown)
    cleaned = _IFRAME_RE.sub("", cleaned)
    cleaned = _JS_SCHEME_RE.sub("", cleaned)
    return _EVENT_HANDLER_RE.sub("", cleaned)


def is_valid_github_url(url: Any) -> bool:
    if not url or not isinstance(url, str):
        return False
    return GITHUB_REPO_URL_RE.match(url.strip()) is not None


def sanitize_github_url(url: Any) -> Optional[str]:
    """Reduce any GitHub link (with or without scheme, with extra path) to https://github.com/{owner}/{repo}."""
    if not url or not isinstance(url, str):
        return None
    match = GITHUB_REPO_EXTRACT_RE.search(url.strip())
    if not match:
        return None
    sanitized = f"https://github.com/{match.group(1)}/{match.group(2)}"
    return sanitized if is_valid_github_url(sanitized) else None


def validate_input(value: Any, max_length: int = 10_000, allow_empty: bool = False, trim: bool = True) -> ValidationResult:
    if not value or not isinstance(value, str):
        return ValidationResult(valid=allow_empty, error="Input must be a string")

    processed = value.strip() if trim else value
    if not allow_empty and not processed:
        return ValidationResult(valid=False, error="Input cannot be empty")
    if len(processed) > max_length:
        return ValidationResult(valid=False, error=f"Input exceeds maximum length of {max_length}")
    return ValidationResult(valid=True, value=processed)


def validate_string(value: Any, required: bool = True, max_length: int = 10_000, trim: bool = True) -> ValidationResult:
    if value is None:
        if required:
            return ValidationResult(valid=False, error="Value is required")
        return ValidationResult(valid=True)
    if not isinstance(value, str):
        return ValidationResult(valid=False, error="Value must be a string")

    processed = value.strip() if trim else value
    if required and not processed:
        return ValidationResult(valid=False, error="Value cannot be empty")
    if len(processed) > max_length:
        return ValidationResult(valid=False, error=f"Value exceeds maximum length of {max_length}")
    return ValidationResult(valid=True, value=processed)


def validate_repo_name(name: Any, max_length: int = 200) -> ValidationResult:
    result = validate_string(name, required=False, max_length=max_length)
    if not result.valid or not result.value:
        return result
    if not REPO_NAME_RE.match(result.value):
        return ValidationResult(valid=False, error="Repository name contains invalid characters")
    return result
