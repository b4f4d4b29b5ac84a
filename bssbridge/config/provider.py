"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class QueueConfig:
    """Command queue tuning (all windows in milliseconds)."""
    max_queue_size: int = 50
    command_expiration_ms: int = 300_000
    duplicate_cooldown_ms: int = 60_000
    cleanup_interval_ms: int = 30_000

    def __post_init__(self):
        for name in (
            "max_queue_size",
            "command_expiration_ms",
            "duplicate_cooldown_ms",
            "cleanup_interval_ms",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be a positive integer")


@dataclass
class APIConfig:
    """API configuration."""
    port: int
    host: str
    debug: bool


@dataclass
class AuthConfig:
    """Authentication configuration."""
    api_key: Optional[str]
    require_auth: bool

    @property
    def is_configured(self) -> bool:
        """Check if a shared secret has been set."""
        return bool(self.api_key)


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_queue_config(self) -> QueueConfig:
        """Get command queue configuration."""
        ...

    def get_api_config(self) -> APIConfig:
        """Get API configuration."""
        ...

    def get_auth_config(self) -> AuthConfig:
        """Get authentication configuration."""
        ...


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_queue_config(self) -> QueueConfig:
        """Get command queue configuration from environment variables."""
        return QueueConfig(
            max_queue_size=_int_env("MAX_QUEUE_SIZE", 50),
            command_expiration_ms=_int_env("COMMAND_EXPIRATION_MS", 300_000),
            duplicate_cooldown_ms=_int_env("DUPLICATE_COOLDOWN_MS", 60_000),
            cleanup_interval_ms=_int_env("CLEANUP_INTERVAL_MS", 30_000),
        )

    def get_api_config(self) -> APIConfig:
        """Get API configuration from environment variables."""
        return APIConfig(
            port=_int_env("API_PORT", 8080),
            host=os.getenv("API_HOST", "0.0.0.0"),
            debug=os.getenv("DEBUG", "false").lower() == "true",
        )

    def get_auth_config(self) -> AuthConfig:
        """
        Get authentication configuration from environment variables.

        The shared secret is optional. When API_KEY is set, authentication is
        required unless REQUIRE_AUTH explicitly says otherwise.
        """
        api_key = os.getenv("API_KEY") or None
        require_env = os.getenv("REQUIRE_AUTH")
        if require_env is None or require_env.strip() == "":
            require_auth = api_key is not None
        else:
            require_auth = require_env.lower() == "true"

        return AuthConfig(api_key=api_key, require_auth=require_auth)
