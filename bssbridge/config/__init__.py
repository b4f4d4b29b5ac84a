"""Typed configuration sources for the queue and authentication."""

from .provider import APIConfig, AuthConfig, ConfigProvider, EnvConfigProvider, QueueConfig

__all__ = ["APIConfig", "AuthConfig", "ConfigProvider", "EnvConfigProvider", "QueueConfig"]
