# src/nifi_agent/core/logging.py
"""Structured logging configuration for nifi-agent.

Configures BOTH structlog and stdlib logging to emit consistent output
(JSON or console). ProcessorFormatter routes stdlib log records through
structlog's processor chain, so modules using logging.getLogger(__name__)
produce the same output format as modules using structlog.get_logger().

User-facing progress goes through typer.echo; logging is for diagnostics
and goes to stderr so it never interleaves with ``--format json`` output.

Processor property maps pass through debug logs, so every record is
scrubbed of credential-like fields before rendering.
"""

import logging
import re
import sys
from collections.abc import Mapping
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

# Third-party loggers that log every request at DEBUG/INFO.
_NOISY_LOGGERS: tuple[str, ...] = (
    "httpx",
    "httpcore",
    "openai",
    "openai._base_client",
    "urllib3",
    "urllib3.connectionpool",
)

# Name segments that mark a field as a credential, e.g. "Password",
# "api_key", "Client Secret". Segment matching keeps "Topic" or
# "Keystore Type" readable.
_SENSITIVE_WORDS = frozenset(
    {
        "apikey",
        "authorization",
        "credential",
        "credentials",
        "key",
        "passphrase",
        "password",
        "secret",
        "token",
    }
)

REDACTED = "***"


def is_sensitive_name(name: str) -> bool:
    """True if any delimiter-separated segment of ``name`` names a credential."""
    segments = [seg for seg in re.split(r"[^a-z0-9]+", name.lower()) if seg]
    return any(seg in _SENSITIVE_WORDS for seg in segments)


def _redact_mapping(values: Mapping[Any, Any]) -> dict[Any, Any]:
    redacted: dict[Any, Any] = {}
    for name, value in values.items():
        if value is not None and is_sensitive_name(str(name)):
            redacted[name] = REDACTED
        elif isinstance(value, Mapping):
            redacted[name] = _redact_mapping(value)
        else:
            redacted[name] = value
    return redacted


def _redact_secrets(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Mask credential-like fields, including keys of nested mappings."""
    for name, value in list(event_dict.items()):
        if name == "event" or name.startswith("_"):
            continue
        if value is not None and is_sensitive_name(name):
            event_dict[name] = REDACTED
        elif isinstance(value, Mapping):
            event_dict[name] = _redact_mapping(value)
    return event_dict


def _remove_internal_fields(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Remove ProcessorFormatter bookkeeping fields from output.

    ProcessorFormatter always adds _record and _from_structlog, so del
    (not pop) is correct here.
    """
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "WARNING",
) -> None:
    """Configure structlog and stdlib logging.

    Args:
        json_output: If True, output JSON. If False, human-readable.
        level: Log level (DEBUG, INFO, WARNING, ERROR).
    """
    log_level = getattr(logging, level.upper())

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _redact_secrets,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        final_processors: list[Any] = [
            _remove_internal_fields,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        final_processors = [
            _remove_internal_fields,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Caching off so tests can reconfigure
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ProcessorFormatter(
            processors=final_processors,
            foreign_pre_chain=shared_processors,
        )
    )

    root = logging.getLogger()
    root.handlers = []
    root.addHandler(handler)
    root.setLevel(log_level)

    # Never make noisy loggers less restrictive than the root level
    noisy_level = max(log_level, logging.WARNING)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(noisy_level)

