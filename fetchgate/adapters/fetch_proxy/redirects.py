"""Manual redirect-chain walking with loop and hop-ceiling detection.

The shared httpx client never follows redirects on its own in manual mode.
Instead every ``Location`` is resolved and checked here so that redirect
loops (a common bot-defence trick) and overly long chains end in a
diagnostic error rather than an opaque transport failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from fetchgate.adapters.fetch_proxy.headers import browser_headers
from fetchgate.core.errors import RedirectLoopDetected, TooManyRedirects
from fetchgate.util.logger import get_logger

MAX_REDIRECTS = 10

logger = get_logger("fetch.redirects")


def canonical_url(url: str) -> str:
    """Comparison key for loop detection.

    Lowercases scheme and host, drops a default port and the fragment, and
    gives an empty path its implicit "/". The fetch itself still uses the
    URL as written.
    """
    parsed = httpx.URL(url)
    netloc = parsed.netloc.decode("ascii")
    raw_path = parsed.raw_path.decode("ascii")
    return f"{parsed.scheme}://{netloc}{raw_path}"


@dataclass(slots=True, frozen=True)
class RedirectWalkState:
    current_url: str
    visited: tuple[str, ...]
    hops: int = 0
    ceiling: int = MAX_REDIRECTS

    @classmethod
    def start(cls, url: str, *, ceiling: int = MAX_REDIRECTS) -> RedirectWalkState:
        return cls(current_url=url, visited=(canonical_url(url),), hops=0, ceiling=ceiling)

    def advance(self, target: str) -> RedirectWalkState:
        """Return the state for fetching ``target`` next.

        The loop check runs before the ceiling check, so a revisit is always
        reported as a loop even when the ceiling is also reached.
        """
        key = canonical_url(target)
        if key in self.visited:
            raise RedirectLoopDetected(target)
        hops = self.hops + 1
        if hops > self.ceiling:
            raise TooManyRedirects(self.ceiling)
        return RedirectWalkState(
            current_url=target,
            visited=(*self.visited, key),
            hops=hops,
            ceiling=self.ceiling,
        )


def is_redirect_status(status_code: int) -> bool:
    return 300 <= status_code < 400


def _effective_url(response: httpx.Response, fallback: str) -> str:
    try:
        return str(response.url)
    except RuntimeError:
        # responses built without a request expose no URL
        return fallback


def resolve_redirect_target(response: httpx.Response, location: str, *, fallback: str) -> str:
    base = _effective_url(response, fallback) or fallback
    return str(httpx.URL(base).join(location))


async def walk_redirects(
    client: Any,
    start_url: str,
    *,
    ceiling: int = MAX_REDIRECTS,
) -> tuple[httpx.Response, RedirectWalkState]:
    """Fetch ``start_url`` and follow its redirect chain by hand.

    Returns the first non-3xx response (or a 3xx without ``Location``)
    together with the final walk state.
    Raises ``RedirectLoopDetected`` or ``TooManyRedirects``; transport
    errors from ``client`` propagate unchanged.
    """
    state = RedirectWalkState.start(start_url, ceiling=ceiling)
    logger.info("redirect walk start hop=0 url=%s", start_url)
    response = await client.get(
        start_url,
        headers=browser_headers(hop_index=0, current_url=start_url),
        follow_redirects=False,
    )

    while is_redirect_status(response.status_code):
        location = response.headers.get("location")
        if not location:
            logger.warning(
                "redirect without location treated as final status=%s url=%s",
                response.status_code,
                state.current_url,
            )
            break

        target = resolve_redirect_target(response, location, fallback=state.current_url)
        previous_url = state.current_url
        try:
            state = state.advance(target)
        except RedirectLoopDetected:
            logger.warning("redirect loop detected hop=%s from=%s to=%s", state.hops + 1, previous_url, target)
            raise
        except TooManyRedirects:
            logger.warning("redirect ceiling exceeded ceiling=%s last=%s next=%s", ceiling, previous_url, target)
            raise

        logger.info("redirect hop=%s status=%s to=%s", state.hops, response.status_code, target)
        response = await client.get(
            target,
            headers=browser_headers(hop_index=state.hops, current_url=target, previous_url=previous_url),
            follow_redirects=False,
        )

    return response, state
