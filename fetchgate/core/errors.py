"""Project error hierarchy.

Every error knows the HTTP status it maps to and renders itself as a
``ProxyFailure`` so handlers can answer with one ``except`` clause.
"""

from __future__ import annotations

from fetchgate.core.models import ProxyFailure

BOT_PROTECTION_MESSAGE = (
    "This website appears to use bot protection that blocks automated access. "
    "Please copy and paste the page content manually."
)
COPY_FINAL_URL_SUGGESTION = (
    "Open the URL in your browser, wait for the page to load, "
    "then copy the final URL from the address bar and try again."
)


class FetchGateError(Exception):
    """Base error."""

    status_code = 500

    def to_failure(self) -> ProxyFailure:
        return ProxyFailure(http_status=self.status_code, message=str(self))


class ClientInputError(FetchGateError):
    """Bad or missing request parameters."""

    status_code = 400


class ServerConfigurationError(FetchGateError):
    """Required server-side secrets are absent."""

    status_code = 500


class UpstreamUnavailableError(FetchGateError):
    """Target site unreachable or answered with a failure."""

    status_code = 502


class UpstreamFetchFailed(UpstreamUnavailableError):
    def __init__(self, status: int, status_text: str) -> None:
        self.status = status
        self.status_text = status_text
        super().__init__(f"Failed to fetch URL: {status} - {status_text}")


class RedirectPolicyViolation(UpstreamUnavailableError):
    """Redirect chain rejected; usually a bot-defence mechanism."""


class RedirectLoopDetected(RedirectPolicyViolation):
    def __init__(self, last_url: str) -> None:
        self.last_url = last_url
        super().__init__(f"Redirect loop detected at {last_url}")

    def to_failure(self) -> ProxyFailure:
        return ProxyFailure(
            http_status=self.status_code,
            message=BOT_PROTECTION_MESSAGE,
            details=str(self),
        )


class TooManyRedirects(RedirectPolicyViolation):
    def __init__(self, ceiling: int) -> None:
        self.ceiling = ceiling
        super().__init__(f"Stopped after {ceiling} redirects")

    def to_failure(self) -> ProxyFailure:
        return ProxyFailure(
            http_status=self.status_code,
            message=BOT_PROTECTION_MESSAGE,
            details=str(self),
            suggestion=COPY_FINAL_URL_SUGGESTION,
        )


class FetchNetworkError(FetchGateError):
    """DNS, TLS, connect or read failure raised by the HTTP client."""

    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Failed to fetch URL: {message}")
