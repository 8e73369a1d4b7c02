"""Progress events for flow builds.

Emitted by the flow builder and consumed by CLI formatters. Events carry
no behaviour: dropping every event must not change what a build does.

Callbacks are our own code. An exception from a callback is not folded
into the build result; it stops the build and reaches the caller wrapped
in BuildEventCallbackError.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum


class BuildPhase(StrEnum):
    """Flow build phases, in execution order."""

    TARGET = "target"
    SERVICES = "services"
    LAYOUT = "layout"
    PROCESSORS = "processors"
    CONNECTIONS = "connections"
    START = "start"


class BuildOutcome(StrEnum):
    """What happened to the subject of an event."""

    STARTED = "started"
    SUCCEEDED = "succeeded"
    WARNING = "warning"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class BuildEvent:
    """One step of a flow build.

    Attributes:
        phase: Build phase the step belongs to
        outcome: Whether the step started, succeeded, warned or failed
        subject: Display name of the component (or group id for TARGET)
        detail: Optional human-readable detail
    """

    phase: BuildPhase
    outcome: BuildOutcome
    subject: str
    detail: str | None = None


BuildEventCallback = Callable[[BuildEvent], None]


def ignore_event(event: BuildEvent) -> None:
    """Default callback when nobody is listening."""
