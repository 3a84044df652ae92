"""Permissive cross-origin headers attached to every response."""

from __future__ import annotations

from typing import MutableMapping

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, api-key",
}
PREFLIGHT_MAX_AGE_SECONDS = 86400


def preflight_headers() -> dict[str, str]:
    return {**CORS_HEADERS, "Access-Control-Max-Age": str(PREFLIGHT_MAX_AGE_SECONDS)}


def apply_cors_headers(headers: MutableMapping[str, str]) -> None:
    for key, value in CORS_HEADERS.items():
        headers[key] = value
