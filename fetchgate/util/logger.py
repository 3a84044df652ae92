"""Project logger.

Every ``fetchgate.*`` logger writes through the handlers built here. Each
handler carries a ``SecretMaskingFilter``; the Azure OpenAI key is masked
in anything written to stderr or the log file.
"""

from __future__ import annotations

import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Callable, Iterable

from fetchgate.config.settings import azure_settings, settings

LOG_FILE_NAME = "fetchgate.log"
MAX_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 5
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_LEVELS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def resolve_level(raw: str | None) -> int:
    return _LEVELS.get(str(raw or "").strip().lower(), logging.INFO)


def mask_secret(value: str) -> str:
    """Keep a short prefix and suffix of ``value`` so operators can tell keys apart."""
    compact = re.sub(r"\s+", "", value)
    if len(compact) <= 4:
        return "*" * len(compact)
    visible = 3 if len(compact) >= 12 else 1
    return f"{compact[:visible]}{'*' * (len(compact) - 2 * visible)}{compact[-visible:]}"


def _configured_secrets() -> Iterable[str]:
    return (azure_settings.key,)


class SecretMaskingFilter(logging.Filter):
    """Rewrites a record's rendered message with every known secret masked."""

    def __init__(self, secrets: Callable[[], Iterable[str]] = _configured_secrets) -> None:
        super().__init__()
        self._secrets = secrets

    def filter(self, record: logging.LogRecord) -> bool:
        secrets = [secret for secret in self._secrets() if secret and secret.strip()]
        if not secrets:
            return True
        message = record.getMessage()
        masked = message
        for secret in secrets:
            masked = masked.replace(secret, mask_secret(secret))
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def _file_handler(log_dir: Path) -> logging.Handler | None:
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError:
        # read-only container filesystems log to stderr only
        return None


def build_logger(name: str = "fetchgate") -> logging.Logger:
    configured = logging.getLogger(name)
    if configured.handlers:
        return configured

    level = resolve_level(settings.log_level)
    configured.setLevel(level)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.log_to_file:
        file_handler = _file_handler(Path(settings.log_dir))
        if file_handler is not None:
            handlers.append(file_handler)

    formatter = logging.Formatter(LOG_FORMAT)
    masking = SecretMaskingFilter()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(masking)
        configured.addHandler(handler)

    configured.propagate = False
    return configured


logger = build_logger()


def get_logger(name: str) -> logging.Logger:
    return logger.getChild(name)
