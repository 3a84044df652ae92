"""CORS-bypass page fetch proxy: GET /api/fetch-url?url=<target>."""

from __future__ import annotations

from typing import Any

import httpx
from fastapi import APIRouter
from fastapi.responses import JSONResponse, Response

from fetchgate.adapters.fetch_proxy.client import get_fetch_async_client
from fetchgate.adapters.fetch_proxy.headers import browser_headers
from fetchgate.adapters.fetch_proxy.redirects import MAX_REDIRECTS, walk_redirects
from fetchgate.config.settings import settings
from fetchgate.core.errors import (
    ClientInputError,
    FetchGateError,
    FetchNetworkError,
    UpstreamFetchFailed,
)
from fetchgate.core.models import FetchedPage
from fetchgate.observability.events import OUTCOME_OK, fetch_outcome
from fetchgate.util.logger import get_logger

router = APIRouter()
logger = get_logger("fetch")

DEFAULT_CONTENT_TYPE = "text/html"
_REDIRECT_MODES = ("manual", "follow")


def validate_target_url(raw: str | None) -> str:
    target = raw or ""
    if not target:
        raise ClientInputError("Missing url parameter")
    if not (target.startswith("http://") or target.startswith("https://")):
        raise ClientInputError("Invalid URL - must start with http:// or https://")
    return target


def _redirect_mode() -> str:
    mode = str(settings.fetch_redirect_mode or "manual").strip().lower()
    if mode not in _REDIRECT_MODES:
        logger.warning("unknown fetch_redirect_mode=%s, using manual", mode)
        return "manual"
    return mode


async def _fetch_following(client: Any, target_url: str) -> httpx.Response:
    # weaker guarantees: httpx walks the chain, no loop diagnostics
    return await client.get(
        target_url,
        headers=browser_headers(hop_index=0, current_url=target_url, identity_encoding=True),
        follow_redirects=True,
    )


async def fetch_page(target_url: str, *, client: Any, mode: str = "manual") -> FetchedPage:
    try:
        if mode == "follow":
            response = await _fetch_following(client, target_url)
            redirects = len(response.history)
        else:
            response, state = await walk_redirects(client, target_url, ceiling=MAX_REDIRECTS)
            redirects = state.hops
    except httpx.HTTPError as exc:
        detail = (str(exc) or "").strip() or exc.__class__.__name__
        raise FetchNetworkError(detail) from exc

    if not response.is_success:
        raise UpstreamFetchFailed(response.status_code, response.reason_phrase)

    try:
        final_url = str(response.url)
    except RuntimeError:
        final_url = target_url
    return FetchedPage(
        body=response.content,
        content_type=response.headers.get("content-type") or DEFAULT_CONTENT_TYPE,
        final_url=final_url,
        redirects=redirects,
    )


def _failure_response(exc: FetchGateError) -> JSONResponse:
    failure = exc.to_failure()
    return JSONResponse(status_code=failure.http_status, content=failure.to_content())


@router.get("/api/fetch-url")
async def fetch_url(url: str | None = None) -> Response:
    target_url = url
    mode = None
    try:
        target_url = validate_target_url(url)
        mode = _redirect_mode()
        logger.info("fetch start url=%s mode=%s", target_url, mode)
        client = await get_fetch_async_client()
        page = await fetch_page(target_url, client=client, mode=mode)
    except FetchNetworkError as exc:
        logger.error("fetch network error url=%s error=%s", target_url, exc.message)
        fetch_outcome(target_url, outcome="network_error", status=exc.status_code, mode=mode)
        return _failure_response(exc)
    except FetchGateError as exc:
        logger.warning("fetch rejected url=%s status=%s error=%s", target_url, exc.status_code, exc)
        fetch_outcome(target_url, outcome=exc.__class__.__name__, status=exc.status_code, mode=mode)
        return _failure_response(exc)
    except Exception as exc:
        logger.exception("fetch unexpected error url=%s", target_url)
        fetch_outcome(target_url, outcome="exception", status=500, mode=mode)
        return JSONResponse(status_code=500, content={"error": f"Failed to fetch URL: {exc}"})

    fetch_outcome(
        target_url,
        outcome=OUTCOME_OK,
        status=200,
        mode=mode,
        redirects=page.redirects,
        final_url=page.final_url,
        size=len(page.body),
    )
    return Response(content=page.body, status_code=200, headers={"Content-Type": page.content_type})
