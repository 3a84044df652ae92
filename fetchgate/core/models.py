"""Request-scoped transport models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict

DEFAULT_MAX_COMPLETION_TOKENS = 1500


class ChatCompletionRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    messages: list[Any]
    # relayed to Azure as sent
    max_completion_tokens: Any = DEFAULT_MAX_COMPLETION_TOKENS
    response_format: Any = None

    def to_upstream_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "messages": self.messages,
            "max_completion_tokens": self.max_completion_tokens,
        }
        if self.response_format is not None:
            payload["response_format"] = self.response_format
        return payload


@dataclass(slots=True, frozen=True)
class FetchedPage:
    body: bytes
    content_type: str
    final_url: str
    redirects: int = 0


@dataclass(slots=True, frozen=True)
class ProxyFailure:
    http_status: int
    message: str
    details: str | None = None
    suggestion: str | None = None

    def to_content(self) -> dict[str, str]:
        content = {"error": self.message}
        if self.details is not None:
            content["details"] = self.details
        if self.suggestion is not None:
            content["suggestion"] = self.suggestion
        return content
