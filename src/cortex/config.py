# Environment-derived configuration.
# Created: 2026-10-19
#
# The host launcher passes CORTEX_BRIDGE_URL, CORTEX_BRIDGE_TOKEN and
# CORTEX_SERVER_PORT to the sidecar; every field falls back to a default.

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BRIDGE_URL = "http://127.0.0.1:9999"


class Settings(BaseSettings):
    """Cortex settings, read from ``CORTEX_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="CORTEX_", extra="ignore")

    # URL of the credential bridge (e.g. "http://127.0.0.1:12345")
    bridge_url: str = DEFAULT_BRIDGE_URL
    # Bearer token for authenticating with the bridge
    bridge_token: str = ""
    # Port for the sidecar server; 0 picks a random free port
    server_port: int = Field(default=0, ge=0, le=65535)
    server_host: str = "127.0.0.1"
    # Extra CORS origins on top of the desktop webview ones
    cors_allowed_origins: list[str] = Field(default_factory=list)
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, loaded once from the environment."""
    return Settings()
