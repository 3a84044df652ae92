"""Browser-like request header profile for outbound page fetches."""

from __future__ import annotations

from urllib.parse import urlparse

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8"
# httpx decodes gzip/deflate itself; identity is for the auto-redirect mode
ACCEPT_ENCODING_COMPRESSED = "gzip, deflate"
ACCEPT_ENCODING_IDENTITY = "identity"


def url_origin(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def browser_headers(
    *,
    hop_index: int,
    current_url: str,
    previous_url: str | None = None,
    identity_encoding: bool = False,
) -> dict[str, str]:
    """Build the header set for one hop of a page fetch.

    The first hop looks like a navigation typed into the address bar: the
    referer is the target's own origin and ``Sec-Fetch-Site`` is ``none``.
    Later hops look like the browser following a redirect from the previous
    URL.
    """
    first_hop = hop_index <= 0 or not previous_url
    return {
        "User-Agent": USER_AGENT,
        "Accept": ACCEPT,
        "Accept-Language": "en-US,en;q=0.9",
        "Accept-Encoding": ACCEPT_ENCODING_IDENTITY if identity_encoding else ACCEPT_ENCODING_COMPRESSED,
        "Referer": url_origin(current_url) if first_hop else str(previous_url),
        "DNT": "1",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": "none" if first_hop else "same-origin",
        "Sec-Fetch-User": "?1",
        "Cache-Control": "max-age=0",
    }
