import httpx
import pytest

from fetchgate.adapters.fetch_proxy.redirects import (
    MAX_REDIRECTS,
    RedirectWalkState,
    canonical_url,
    resolve_redirect_target,
    walk_redirects,
)
from fetchgate.core.errors import RedirectLoopDetected, TooManyRedirects


class ScriptedClient:
    """Answers each GET from a url -> (status, location) script."""

    def __init__(self, script: dict[str, tuple[int, str | None]], *, attach_request: bool = True):
        self.script = script
        self.attach_request = attach_request
        self.calls: list[dict[str, object]] = []

    async def get(self, url: str, *, headers: dict[str, str], follow_redirects: bool):
        self.calls.append({"url": url, "headers": headers, "follow_redirects": follow_redirects})
        status, location = self.script[url]
        response_headers = {"content-type": "text/html; charset=utf-8"}
        if location is not None:
            response_headers["location"] = location
        request = httpx.Request("GET", url) if self.attach_request else None
        return httpx.Response(
            status_code=status,
            headers=response_headers,
            content=f"<html>{url}</html>".encode("utf-8"),
            request=request,
        )


def _chain(length: int) -> dict[str, tuple[int, str | None]]:
    script: dict[str, tuple[int, str | None]] = {}
    for index in range(length):
        script[f"https://example.com/p{index}"] = (302, f"https://example.com/p{index + 1}")
    script[f"https://example.com/p{length}"] = (200, None)
    return script


def test_state_advance_records_target_and_counts_hop():
    state = RedirectWalkState.start("https://a.example/")
    advanced = state.advance("https://b.example/")

    assert state.visited == ("https://a.example/",)
    assert state.hops == 0
    assert advanced.visited == ("https://a.example/", "https://b.example/")
    assert advanced.hops == 1
    assert advanced.current_url == "https://b.example/"


def test_state_loop_check_precedes_ceiling_check():
    state = RedirectWalkState.start("https://a.example/", ceiling=0)
    with pytest.raises(RedirectLoopDetected) as exc_info:
        state.advance("https://a.example/")
    assert exc_info.value.last_url == "https://a.example/"


def test_state_raises_when_ceiling_exceeded():
    state = RedirectWalkState.start("https://a.example/", ceiling=1)
    state = state.advance("https://b.example/")
    with pytest.raises(TooManyRedirects) as exc_info:
        state.advance("https://c.example/")
    assert exc_info.value.ceiling == 1


@pytest.mark.asyncio
async def test_walk_without_redirect_fetches_once():
    client = ScriptedClient({"https://example.com/p0": (200, None)})

    response, state = await walk_redirects(client, "https://example.com/p0")

    assert response.status_code == 200
    assert state.hops == 0
    assert len(client.calls) == 1
    assert client.calls[0]["follow_redirects"] is False


@pytest.mark.asyncio
@pytest.mark.parametrize("length", [1, 3, MAX_REDIRECTS])
async def test_walk_follows_distinct_chain_with_k_plus_one_fetches(length):
    client = ScriptedClient(_chain(length))

    response, state = await walk_redirects(client, "https://example.com/p0")

    assert response.status_code == 200
    assert response.content == f"<html>https://example.com/p{length}</html>".encode("utf-8")
    assert state.hops == length
    assert len(client.calls) == length + 1


@pytest.mark.asyncio
async def test_walk_rejects_eleventh_redirect_without_fetching_it():
    client = ScriptedClient(_chain(MAX_REDIRECTS + 1))

    with pytest.raises(TooManyRedirects) as exc_info:
        await walk_redirects(client, "https://example.com/p0")

    assert str(exc_info.value) == "Stopped after 10 redirects"
    assert len(client.calls) == MAX_REDIRECTS + 1
    assert client.calls[-1]["url"] == f"https://example.com/p{MAX_REDIRECTS}"


@pytest.mark.asyncio
async def test_walk_detects_self_redirect_on_first_hop():
    client = ScriptedClient({"https://example.com/a": (301, "https://example.com/a")})

    with pytest.raises(RedirectLoopDetected) as exc_info:
        await walk_redirects(client, "https://example.com/a")

    assert exc_info.value.last_url == "https://example.com/a"
    assert len(client.calls) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("start_url", ["https://example.com", "https://EXAMPLE.com/", "https://example.com:443/"])
async def test_walk_detects_redirect_back_to_equivalent_start_url(start_url):
    client = ScriptedClient({start_url: (302, "/")})

    with pytest.raises(RedirectLoopDetected) as exc_info:
        await walk_redirects(client, start_url)

    assert exc_info.value.last_url == "https://example.com/"
    assert len(client.calls) == 1
    assert client.calls[0]["url"] == start_url


def test_canonical_url_normalizes_host_port_and_empty_path():
    assert canonical_url("https://Example.COM") == "https://example.com/"
    assert canonical_url("http://example.com:80/a?b=1#frag") == "http://example.com/a?b=1"
    assert canonical_url("https://example.com:8443/a") == "https://example.com:8443/a"
    assert canonical_url("https://example.com/A") != canonical_url("https://example.com/a")


@pytest.mark.asyncio
async def test_walk_detects_cycle_before_ceiling_is_consulted():
    client = ScriptedClient(
        {
            "https://example.com/a": (302, "https://example.com/b"),
            "https://example.com/b": (302, "https://example.com/c"),
            "https://example.com/c": (302, "https://example.com/a"),
        }
    )

    with pytest.raises(RedirectLoopDetected):
        await walk_redirects(client, "https://example.com/a", ceiling=2)

    assert [call["url"] for call in client.calls] == [
        "https://example.com/a",
        "https://example.com/b",
        "https://example.com/c",
    ]


@pytest.mark.asyncio
async def test_walk_treats_redirect_without_location_as_final():
    client = ScriptedClient({"https://example.com/a": (302, None)})

    response, state = await walk_redirects(client, "https://example.com/a")

    assert response.status_code == 302
    assert state.hops == 0
    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_walk_resolves_relative_location_against_response_url():
    client = ScriptedClient(
        {
            "https://shop.example.com/item/42": (302, "/login?next=42"),
            "https://shop.example.com/login?next=42": (200, None),
        }
    )

    response, _ = await walk_redirects(client, "https://shop.example.com/item/42")

    assert response.status_code == 200
    assert client.calls[1]["url"] == "https://shop.example.com/login?next=42"


@pytest.mark.asyncio
async def test_walk_falls_back_to_request_url_when_response_has_no_url():
    client = ScriptedClient(
        {
            "https://shop.example.com/item/42": (302, "detail"),
            "https://shop.example.com/item/detail": (200, None),
        },
        attach_request=False,
    )

    response, state = await walk_redirects(client, "https://shop.example.com/item/42")

    assert response.status_code == 200
    assert state.current_url == "https://shop.example.com/item/detail"


@pytest.mark.asyncio
async def test_walk_sends_navigation_headers_then_same_origin_referer():
    client = ScriptedClient(_chain(2))

    await walk_redirects(client, "https://example.com/p0")

    first, second, third = (call["headers"] for call in client.calls)
    assert first["Referer"] == "https://example.com"
    assert first["Sec-Fetch-Site"] == "none"
    assert second["Referer"] == "https://example.com/p0"
    assert second["Sec-Fetch-Site"] == "same-origin"
    assert third["Referer"] == "https://example.com/p1"


@pytest.mark.asyncio
async def test_walk_propagates_transport_errors():
    class BrokenClient:
        async def get(self, url: str, *, headers: dict[str, str], follow_redirects: bool):
            raise httpx.ConnectError("name resolution failed")

    with pytest.raises(httpx.ConnectError):
        await walk_redirects(BrokenClient(), "https://unreachable.example/")


def test_resolve_redirect_target_keeps_absolute_location():
    response = httpx.Response(301, request=httpx.Request("GET", "https://a.example/x"))
    target = resolve_redirect_target(response, "https://b.example/y", fallback="https://a.example/x")
    assert target == "https://b.example/y"
