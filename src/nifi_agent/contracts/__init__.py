"""Shared contracts: flow definitions, realization results, build events, errors."""

from nifi_agent.contracts.errors import (
    BuildEventCallbackError,
    ContentPolicyError,
    ContextLengthError,
    MalformedToolCallError,
    NetworkError,
    NiFiAPIError,
    NiFiAuthenticationError,
    NiFiClientError,
    NiFiConnectionError,
    PlannerError,
    RateLimitError,
    ServerError,
    SettingsError,
)
from nifi_agent.contracts.events import BuildEvent, BuildEventCallback, BuildOutcome, BuildPhase
from nifi_agent.contracts.flow import (
    ConnectionSpec,
    FlowDefinition,
    ProcessorSpec,
    ServiceReference,
    ServiceSpec,
)
from nifi_agent.contracts.results import ComponentHandle, FlowBuildResult, Position

__all__ = [
    "BuildEvent",
    "BuildEventCallbackError",
    "BuildEventCallback",
    "BuildOutcome",
    "BuildPhase",
    "ComponentHandle",
    "ConnectionSpec",
    "ContentPolicyError",
    "ContextLengthError",
    "FlowBuildResult",
    "FlowDefinition",
    "MalformedToolCallError",
    "NetworkError",
    "NiFiAPIError",
    "NiFiAuthenticationError",
    "NiFiClientError",
    "NiFiConnectionError",
    "PlannerError",
    "Position",
    "ProcessorSpec",
    "RateLimitError",
    "ServerError",
    "ServiceReference",
    "ServiceSpec",
    "SettingsError",
]
