"""Configuration model for the HTTP listener."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import ServerConfigurationError


@dataclass(frozen=True)
class WebServerConfig:
    """Validated listener configuration derived from `[server]` settings."""
    host: str = "127.0.0.1"
    port: int = 8090

    def __post_init__(self) -> None:
        if not self.host.strip():
            raise ServerConfigurationError("server.host cannot be empty")

        if not 1 <= self.port <= 65535:
            raise ServerConfigurationError(
                f"server.port must be in [1, 65535], got: {self.port}"
            )

    @classmethod
    def from_settings(cls, settings) -> "WebServerConfig":
        return cls(host=settings.host.strip(), port=settings.port)
