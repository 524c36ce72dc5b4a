"""Strict origin allowlist for the API routes. No wildcards outside development."""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit

import config


BASE_CORS_HEADERS = {
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Vary": "Origin",
}


def get_allowed_origins() -> set[str]:
    allowlist = config.get_cors_allowlist()
    if allowlist is not None:
        return allowlist
    if config.is_development():
        return set(config.DEV_CORS_ORIGINS)
    # Production without CORS_ALLOWLIST denies every cross-origin caller.
    return set()


def cors_headers(origin: Optional[str]) -> dict[str, str]:
    headers = dict(BASE_CORS_HEADERS)
    if not origin:
        if config.is_development():
            headers["Access-Control-Allow-Origin"] = "*"
        return headers
    if origin in get_allowed_origins():
        headers["Access-Control-Allow-Origin"] = origin
    return headers


def is_same_origin(origin: Optional[str], host: Optional[str]) -> bool:
    """Browsers send Origin on same-origin POSTs too; those are not cross-origin calls."""
    if not origin or not host:
        return False
    return urlsplit(origin).netloc.lower() == host.lower()


def is_origin_allowed(origin: Optional[str], host: Optional[str] = None) -> bool:
    if not origin or is_same_origin(origin, host):
        return True
    return "Access-Control-Allow-Origin" in cors_headers(origin)
