"""Shared outbound client for page fetches."""

from __future__ import annotations

import httpx

from fetchgate.adapters.fetch_proxy.redirects import MAX_REDIRECTS
from fetchgate.config.settings import settings
from fetchgate.util.http_client import ClientProfile, SharedAsyncClient


def fetch_client_profile() -> ClientProfile:
    # redirects are walked manually unless a request opts into follow mode;
    # max_redirects bounds that opt-in path
    return ClientProfile(
        timeout_seconds=settings.fetch_timeout_seconds,
        max_connections=settings.fetch_max_connections,
        max_keepalive_connections=settings.fetch_max_keepalive_connections,
        follow_redirects=False,
        max_redirects=MAX_REDIRECTS,
        pool_slack=True,
    )


_fetch_client = SharedAsyncClient("fetch", fetch_client_profile)


async def get_fetch_async_client() -> httpx.AsyncClient:
    return await _fetch_client.get()


async def close_fetch_async_client() -> None:
    await _fetch_client.aclose()
