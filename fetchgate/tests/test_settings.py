import pytest

from fetchgate.adapters.azure_openai import upstream as openai_upstream
from fetchgate.adapters.fetch_proxy import client as fetch_client
from fetchgate.config.settings import AzureOpenAISettings, Settings, settings
from fetchgate.core.errors import ServerConfigurationError
from fetchgate.util.http_client import ClientProfile, SharedAsyncClient


def test_azure_settings_read_host_injected_environment(monkeypatch):
    monkeypatch.setenv("AZURE_OPENAI_KEY", "secret-key-123")
    monkeypatch.setenv("AZURE_OPENAI_ENDPOINT", "https://r.openai.azure.com/")
    monkeypatch.setenv("AZURE_OPENAI_MODEL", "gpt-4o-mini")
    monkeypatch.setenv("AZURE_OPENAI_API_VERSION", "2025-01-01")

    loaded = AzureOpenAISettings()

    assert loaded.key == "secret-key-123"
    assert loaded.endpoint == "https://r.openai.azure.com/"
    assert loaded.model == "gpt-4o-mini"
    assert loaded.api_version == "2025-01-01"


def test_gateway_settings_use_prefixed_environment(monkeypatch):
    monkeypatch.setenv("FETCHGATE_FETCH_REDIRECT_MODE", "follow")
    monkeypatch.setenv("FETCHGATE_FETCH_TIMEOUT_SECONDS", "12.5")

    loaded = Settings()

    assert loaded.fetch_redirect_mode == "follow"
    assert loaded.fetch_timeout_seconds == 12.5


def test_partial_azure_configuration_is_rejected(monkeypatch):
    monkeypatch.setattr(openai_upstream.azure_settings, "key", "secret-key-123")
    monkeypatch.setattr(openai_upstream.azure_settings, "endpoint", "https://r.openai.azure.com/")
    monkeypatch.setattr(openai_upstream.azure_settings, "model", "   ")

    with pytest.raises(ServerConfigurationError) as exc_info:
        openai_upstream.resolve_azure_config()

    assert exc_info.value.to_failure().to_content() == {"error": "Azure OpenAI not configured on server"}


def test_fetch_timeout_follows_settings(monkeypatch):
    monkeypatch.setattr(settings, "fetch_timeout_seconds", 15.0)

    timeout = fetch_client.fetch_client_profile().timeout()

    assert timeout.connect == 15.0
    assert timeout.read == 15.0
    assert timeout.pool == 30.0


@pytest.mark.asyncio
async def test_fetch_client_is_shared_and_never_auto_follows():
    first = await fetch_client.get_fetch_async_client()
    try:
        second = await fetch_client.get_fetch_async_client()
        assert first is second
        assert first.follow_redirects is False
        assert first.max_redirects == 10
    finally:
        await fetch_client.close_fetch_async_client()


def test_upstream_profile_uses_its_own_timeout_without_pool_slack(monkeypatch):
    monkeypatch.setattr(settings, "upstream_timeout_seconds", 45.0)
    monkeypatch.setattr(settings, "upstream_max_connections", 3)

    profile = openai_upstream.upstream_client_profile()

    assert profile.timeout().pool == 45.0
    assert profile.timeout().read == 45.0
    assert profile.limits().max_connections == 10
    assert profile.follow_redirects is False


@pytest.mark.asyncio
async def test_shared_client_reads_profile_once_and_reopens_after_close():
    built: list[ClientProfile] = []

    def profile() -> ClientProfile:
        built.append(ClientProfile(timeout_seconds=3.0, max_connections=20, max_keepalive_connections=5))
        return built[-1]

    shared = SharedAsyncClient("test", profile)
    first = await shared.get()
    assert await shared.get() is first
    assert len(built) == 1
    assert first.timeout.connect == 3.0

    await shared.aclose()
    assert shared.is_open is False
    assert first.is_closed

    second = await shared.get()
    try:
        assert second is not first
        assert len(built) == 2
    finally:
        await shared.aclose()
