"""One outcome line per proxied request.

Lines are ``key=value`` pairs under the ``fetchgate.events`` logger so they
can be grepped or shipped without a metrics backend. Successes log at INFO,
everything else at WARNING.
"""

from __future__ import annotations

import logging

from fetchgate.util.logger import get_logger

logger = get_logger("events")

OUTCOME_OK = "ok"


def _level(outcome: str) -> int:
    return logging.INFO if outcome == OUTCOME_OK else logging.WARNING


def fetch_outcome(
    url: str | None,
    *,
    outcome: str,
    status: int,
    mode: str | None = None,
    redirects: int | None = None,
    final_url: str | None = None,
    size: int | None = None,
) -> None:
    logger.log(
        _level(outcome),
        "fetch outcome=%s status=%s mode=%s url=%s final_url=%s redirects=%s bytes=%s",
        outcome,
        status,
        mode or "-",
        url or "-",
        final_url or "-",
        "-" if redirects is None else redirects,
        "-" if size is None else size,
    )


def chat_outcome(
    *,
    outcome: str,
    status: int,
    deployment: str | None = None,
    size: int | None = None,
) -> None:
    logger.log(
        _level(outcome),
        "chat outcome=%s status=%s deployment=%s bytes=%s",
        outcome,
        status,
        deployment or "-",
        "-" if size is None else size,
    )
