"""Process-wide outbound httpx clients, one per upstream kind."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable

import httpx

from fetchgate.util.logger import get_logger

logger = get_logger("http_client")


@dataclass(slots=True, frozen=True)
class ClientProfile:
    """Pool and timeout shape for one shared client.

    With ``pool_slack`` the pool-acquire timeout is ``max(t + 5, 2t)``
    instead of the per-request ``t``.
    """

    timeout_seconds: float
    max_connections: int
    max_keepalive_connections: int
    follow_redirects: bool = False
    max_redirects: int = 20
    pool_slack: bool = False

    def timeout(self) -> httpx.Timeout:
        timeout = float(self.timeout_seconds)
        pool = max(timeout + 5.0, timeout * 2.0) if self.pool_slack else timeout
        return httpx.Timeout(connect=timeout, read=timeout, write=timeout, pool=pool)

    def limits(self) -> httpx.Limits:
        return httpx.Limits(
            max_connections=max(10, int(self.max_connections)),
            max_keepalive_connections=max(5, int(self.max_keepalive_connections)),
        )


class SharedAsyncClient:
    """Creates its client on first use and reuses it until ``aclose``.

    The profile is read at creation time, so settings changed before the
    first request still apply.
    """

    def __init__(self, name: str, profile_factory: Callable[[], ClientProfile]) -> None:
        self.name = name
        self._profile_factory = profile_factory
        self._client: httpx.AsyncClient | None = None
        self._lock: asyncio.Lock | None = None

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def get(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self._client is None:
                profile = self._profile_factory()
                logger.info(
                    "http client open name=%s timeout=%ss max_connections=%s follow_redirects=%s",
                    self.name,
                    profile.timeout_seconds,
                    profile.max_connections,
                    profile.follow_redirects,
                )
                self._client = httpx.AsyncClient(
                    follow_redirects=profile.follow_redirects,
                    max_redirects=profile.max_redirects,
                    http2=False,
                    timeout=profile.timeout(),
                    limits=profile.limits(),
                )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("http client closed name=%s", self.name)
