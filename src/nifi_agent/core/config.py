# src/nifi_agent/core/config.py
"""
Configuration schema and loading for nifi-agent.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

import os
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from nifi_agent.contracts.errors import SettingsError

# ${VAR} or ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")

# Plain environment variables accepted as fallbacks when neither the settings
# file nor a NIFI_AGENT_* variable sets the key.
_PLAIN_ENV_FALLBACKS: dict[tuple[str, str], str] = {
    ("nifi", "base_url"): "NIFI_BASE_URL",
    ("nifi", "username"): "NIFI_USERNAME",
    ("nifi", "password"): "NIFI_PASSWORD",
    ("openai", "api_key"): "OPENAI_API_KEY",
    ("openai", "model"): "OPENAI_MODEL",
}

_PLACEHOLDER_API_KEYS = frozenset({"", "your-openai-api-key-here"})


class NiFiSettings(BaseModel):
    """NiFi REST API connection."""

    model_config = {"frozen": True, "coerce_numbers_to_str": True}

    base_url: str = Field(default="https://localhost:8443/nifi-api", description="NiFi REST API root")
    username: str = Field(default="admin")
    password: str = Field(default="", description="Single-user credentials password")
    verify_tls: bool = Field(
        default=False,
        description="Verify the NiFi TLS certificate (NiFi ships a self-signed one by default)",
    )
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    ui_url: str = Field(default="https://localhost:8443/nifi", description="Canvas URL shown after a build")

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class OpenAISettings(BaseModel):
    """LLM provider used by the planner."""

    model_config = {"frozen": True, "coerce_numbers_to_str": True}

    api_key: str = Field(default="")
    model: str = Field(default="gpt-4")
    base_url: str | None = Field(default=None, description="Override for OpenAI-compatible endpoints")
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)


class AgentSettings(BaseModel):
    """Top-level nifi-agent configuration."""

    model_config = {"frozen": True}

    nifi: NiFiSettings = Field(default_factory=NiFiSettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand ${VAR} and ${VAR:-default} patterns in config values."""

    def replacer(match: re.Match[str]) -> str:
        env_value = os.environ.get(match.group(1))
        if env_value is not None:
            return env_value
        default = match.group(2)
        if default is not None:
            return default
        # No env var and no default - keep original
        return match.group(0)

    def _expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _ENV_VAR_PATTERN.sub(replacer, value)
        elif isinstance(value, dict):
            return {k: _expand_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [_expand_value(item) for item in value]
        else:
            return value

    return {k: _expand_value(v) for k, v in config.items()}


def _lower_keys(value: Any) -> Any:
    # Dynaconf uppercases top-level keys and keeps env-var casing for nested ones
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    return value


def _apply_plain_env_fallbacks(config: dict[str, Any]) -> dict[str, Any]:
    result = {section: dict(values) for section, values in config.items() if isinstance(values, dict)}
    result.update({k: v for k, v in config.items() if not isinstance(v, dict)})
    for (section, key), env_name in _PLAIN_ENV_FALLBACKS.items():
        env_value = os.environ.get(env_name)
        if env_value is None:
            continue
        section_values = result.setdefault(section, {})
        if key not in section_values:
            section_values[key] = env_value
    return result


def load_settings(config_path: Path | None = None) -> AgentSettings:
    """Load settings from an optional YAML file with environment overrides.

    Precedence:
    1. Environment variables (NIFI_AGENT_*) - highest priority
    2. Config file, when given
    3. Plain variables (NIFI_BASE_URL, NIFI_PASSWORD, OPENAI_API_KEY, ...)
    4. Defaults from the Pydantic schema - lowest priority

    Environment variable format: NIFI_AGENT_NIFI__PASSWORD for nested keys.

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config_path is given but doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="NIFI_AGENT",
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,  # The CLI loads .env itself
        merge_enabled=True,
    )

    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = _lower_keys({k: v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys})
    raw_config = _apply_plain_env_fallbacks(raw_config)
    raw_config = _expand_env_vars(raw_config)

    return AgentSettings(**raw_config)


def require_nifi_credentials(settings: AgentSettings) -> None:
    """Raise SettingsError unless NiFi can be authenticated against."""
    if not settings.nifi.password:
        raise SettingsError("NiFi password is not set (NIFI_PASSWORD or NIFI_AGENT_NIFI__PASSWORD)")


def require_chat_credentials(settings: AgentSettings) -> None:
    """Raise SettingsError unless both the planner and NiFi are usable."""
    problems: list[str] = []
    if settings.openai.api_key in _PLACEHOLDER_API_KEYS:
        problems.append("OpenAI API key is not set (OPENAI_API_KEY or NIFI_AGENT_OPENAI__API_KEY)")
    if not settings.nifi.password:
        problems.append("NiFi password is not set (NIFI_PASSWORD or NIFI_AGENT_NIFI__PASSWORD)")
    if problems:
        raise SettingsError("; ".join(problems))
