"""
Azure OpenAI upstream: configuration resolution, URL building and HTTP forwarding.
Split from the router so the transport can be faked in tests.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import httpx

from fetchgate.config.settings import azure_settings, settings
from fetchgate.core.errors import ServerConfigurationError
from fetchgate.util.http_client import ClientProfile, SharedAsyncClient
from fetchgate.util.logger import get_logger

DEFAULT_API_VERSION = "2024-08-01-preview"
API_KEY_HEADER = "api-key"

logger = get_logger("openai.upstream")


@dataclass(slots=True, frozen=True)
class AzureOpenAIConfig:
    api_key: str
    endpoint: str
    deployment: str
    api_version: str = DEFAULT_API_VERSION

    def __repr__(self) -> str:
        # never render the key
        return (
            f"AzureOpenAIConfig(endpoint={self.endpoint!r}, deployment={self.deployment!r}, "
            f"api_version={self.api_version!r})"
        )


def resolve_azure_config() -> AzureOpenAIConfig:
    api_key = (azure_settings.key or "").strip()
    endpoint = (azure_settings.endpoint or "").strip()
    deployment = (azure_settings.model or "").strip()
    if not api_key or not endpoint or not deployment:
        logger.error(
            "azure openai misconfigured key_present=%s endpoint_present=%s deployment_present=%s",
            bool(api_key),
            bool(endpoint),
            bool(deployment),
        )
        raise ServerConfigurationError("Azure OpenAI not configured on server")
    api_version = (azure_settings.api_version or "").strip() or DEFAULT_API_VERSION
    return AzureOpenAIConfig(
        api_key=api_key,
        endpoint=endpoint,
        deployment=deployment,
        api_version=api_version,
    )


def build_chat_completions_url(config: AzureOpenAIConfig) -> str:
    base = config.endpoint.rstrip("/")
    return f"{base}/openai/deployments/{config.deployment}/chat/completions?api-version={config.api_version}"


def upstream_client_profile() -> ClientProfile:
    return ClientProfile(
        timeout_seconds=settings.upstream_timeout_seconds,
        max_connections=settings.upstream_max_connections,
        max_keepalive_connections=settings.upstream_max_keepalive_connections,
    )


_upstream_client = SharedAsyncClient("azure_openai", upstream_client_profile)


async def get_upstream_async_client() -> httpx.AsyncClient:
    return await _upstream_client.get()


async def close_upstream_async_client() -> None:
    await _upstream_client.aclose()


async def forward_chat_completion(url: str, payload: dict[str, Any], api_key: str) -> httpx.Response:
    body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    logger.debug("forward_chat_completion start payload_bytes=%d", len(body))
    client = await get_upstream_async_client()
    response = await client.post(
        url,
        content=body,
        headers={"Content-Type": "application/json", API_KEY_HEADER: api_key},
    )
    logger.debug("forward_chat_completion done status=%s", response.status_code)
    return response
