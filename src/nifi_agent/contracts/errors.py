"""Exception contracts.

NiFi client errors are what the flow builder catches at single-object
granularity and turns into error strings. Planner errors carry a
``retryable`` flag so the conversation loop can tell the user whether
trying again is worthwhile.
"""

from __future__ import annotations

# =============================================================================
# NiFi REST client
# =============================================================================


class NiFiClientError(Exception):
    """Base exception for all NiFi client failures."""


class NiFiConnectionError(NiFiClientError):
    """Transport-level failure: DNS, refused connection, timeout, TLS."""


class NiFiAPIError(NiFiClientError):
    """NiFi answered with a non-2xx status.

    Attributes:
        status_code: HTTP status returned by NiFi
        method: HTTP method of the failed request
        path: API path of the failed request
        detail: NiFi's error message (NiFi returns plain text bodies on errors)
    """

    def __init__(self, status_code: int, method: str, path: str, detail: str) -> None:
        self.status_code = status_code
        self.method = method
        self.path = path
        self.detail = detail
        super().__init__(f"{method} {path} returned {status_code}: {detail}")

    @property
    def is_revision_conflict(self) -> bool:
        """NiFi reports stale revisions as 409 Conflict."""
        return self.status_code == 409


class NiFiAuthenticationError(NiFiClientError):
    """Token request was rejected or could not be made."""


# =============================================================================
# LLM planner
# =============================================================================


class PlannerError(Exception):
    """Error from the LLM planner.

    Attributes:
        retryable: Whether the error is likely transient
    """

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class RateLimitError(PlannerError):
    """Rate limit exceeded (HTTP 429) - retryable."""

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=True)


class NetworkError(PlannerError):
    """Timeout, refused connection, DNS failure - retryable."""

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=True)


class ServerError(PlannerError):
    """Provider-side 5xx error - retryable."""

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=True)


class ContentPolicyError(PlannerError):
    """Content policy violation - not retryable."""

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=False)


class ContextLengthError(PlannerError):
    """Prompt exceeds the model's context window - not retryable.

    Usually means the conversation has grown too long; ``reset`` clears it.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=False)


class MalformedToolCallError(PlannerError):
    """The model called a tool with arguments that do not fit its schema."""

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=True)


# =============================================================================
# Flow build
# =============================================================================


class BuildEventCallbackError(Exception):
    """A build progress callback raised; the build stops and this propagates."""


# =============================================================================
# Configuration
# =============================================================================


class SettingsError(Exception):
    """Settings are missing or unusable for the requested command."""
