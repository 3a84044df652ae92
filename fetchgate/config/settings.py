"""Runtime settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FETCHGATE_", extra="ignore")

    app_name: str = "FetchGate"
    env: str = "dev"
    log_level: str = "info"
    log_to_file: bool = True
    log_dir: str = "logs"
    host: str = "127.0.0.1"
    port: int = 8787

    # manual: walk redirects ourselves with loop/ceiling detection
    # follow: let httpx follow redirects, send Accept-Encoding: identity
    fetch_redirect_mode: str = "manual"
    fetch_timeout_seconds: float = Field(default=20.0, gt=0.0)
    fetch_max_connections: int = 50
    fetch_max_keepalive_connections: int = 10

    upstream_timeout_seconds: float = Field(default=60.0, gt=0.0)
    upstream_max_connections: int = 50
    upstream_max_keepalive_connections: int = 10


class AzureOpenAISettings(BaseSettings):
    """Secrets for the chat-completion endpoint, injected by the host environment."""

    model_config = SettingsConfigDict(env_prefix="AZURE_OPENAI_", extra="ignore")

    key: str = ""
    endpoint: str = ""
    model: str = ""
    api_version: str = ""


settings = Settings()
azure_settings = AzureOpenAISettings()
