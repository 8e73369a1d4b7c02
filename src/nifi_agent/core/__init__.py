# src/nifi_agent/core/__init__.py
"""Core infrastructure: Configuration, Logging."""

from nifi_agent.core.config import (
    AgentSettings,
    NiFiSettings,
    OpenAISettings,
    load_settings,
    require_chat_credentials,
    require_nifi_credentials,
)
from nifi_agent.core.logging import configure_logging

__all__ = [
    "AgentSettings",
    "NiFiSettings",
    "OpenAISettings",
    "configure_logging",
    "load_settings",
    "require_chat_credentials",
    "require_nifi_credentials",
]
