"""Configuration management for Fluxez Realtime."""

from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://api-dev.fluxez.com/api/v1"
REALTIME_PATH = "/realtime"


class FluxezConfig(BaseSettings):
    """
    Configuration for the Fluxez realtime client.

    Values are loaded from (in order of precedence):
    1. Constructor arguments
    2. Environment variables (prefixed with FLUXEZ_)
    3. .env file
    4. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="FLUXEZ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Required settings
    api_key: SecretStr = Field(..., description="Fluxez API key")

    # Endpoints
    base_url: str = Field(default=DEFAULT_BASE_URL, description="HTTP API base URL")
    realtime_url: Optional[str] = Field(
        default=None, description="Explicit WebSocket URL (derived from base_url if unset)"
    )

    # Client identification
    client_name: str = Field(default="fluxez-realtime", description="Client identifier")
    client_version: str = Field(default="0.1.0", description="Client version")

    # Reconnection settings
    reconnect: bool = Field(default=True, description="Enable auto-reconnect")
    reconnect_interval: float = Field(
        default=5.0, ge=0, description="Delay before a reconnect attempt (seconds)"
    )
    max_reconnect_attempts: int = Field(default=10, ge=0, description="Reconnect cap")

    # Keepalive settings
    ping_interval: float = Field(default=30.0, description="Ping interval (seconds)")
    ping_timeout: float = Field(default=10.0, description="Ping timeout (seconds)")
    open_timeout: float = Field(default=10.0, description="Handshake timeout (seconds)")

    # Control-plane HTTP settings
    http_timeout: float = Field(default=30.0, description="Request timeout (seconds)")
    max_retries: int = Field(default=3, ge=0, description="Retries for failed requests")
    retry_delay: float = Field(default=1.0, ge=0, description="Base retry delay (seconds)")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    def build_url(self) -> str:
        """Construct the WebSocket connection URL."""
        if self.realtime_url:
            return self.realtime_url
        return websocket_url(self.base_url)

    def auth_headers(self) -> dict[str, str]:
        """Headers authenticating control-plane HTTP requests."""
        key = self.api_key.get_secret_value()
        if key.startswith("Bearer "):
            return {"Authorization": key}
        return {"x-api-key": key}

    def transport_headers(self) -> dict[str, str]:
        """Headers sent with the WebSocket handshake."""
        return {"Authorization": f"Bearer {self.api_key.get_secret_value()}"}

    def realtime_options(self) -> "RealtimeOptions":
        """Default connection options for a new client."""
        return RealtimeOptions(
            url=self.realtime_url,
            reconnect=self.reconnect,
            reconnect_interval=self.reconnect_interval,
            max_reconnect_attempts=self.max_reconnect_attempts,
        )


class RealtimeOptions(BaseModel):
    """
    Connection options merged in by RealtimeClient.connect().

    Only fields explicitly set by the caller override the client's current
    options; the merged result persists for later connects and reconnects.
    """

    model_config = ConfigDict(extra="forbid")

    url: Optional[str] = None
    reconnect: bool = True
    reconnect_interval: float = Field(default=5.0, ge=0)
    max_reconnect_attempts: int = Field(default=10, ge=0)

    def merge(self, override: "RealtimeOptions") -> "RealtimeOptions":
        """Return a copy updated with the fields set on override."""
        return self.model_copy(update=override.model_dump(exclude_unset=True))


def websocket_url(base_url: str) -> str:
    """Rewrite an http(s) base URL to the ws(s) realtime endpoint."""
    return re.sub(r"^http", "ws", base_url.rstrip("/")) + REALTIME_PATH
