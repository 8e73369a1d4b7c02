"""Realization outcomes.

These types answer: "What did a flow build produce?"

- ComponentHandle is the versioned handle for one realized NiFi component.
  NiFi rejects any mutation that does not carry the revision returned by
  the previous accepted change, so the handle is threaded by value through
  every call and replaced (never mutated) when a response advances it.
- FlowBuildResult accumulates identifiers and error strings across a whole
  run. ``success`` is derived, not an early-exit signal.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class Position:
    """Canvas coordinates for a component."""

    x: float
    y: float

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class ComponentHandle:
    """Identifier plus the current optimistic-concurrency revision."""

    component_id: str
    version: int

    def advance(self, version: int) -> ComponentHandle:
        """Return a handle carrying the revision from the latest response."""
        return replace(self, version=version)

    @classmethod
    def from_entity(cls, entity: dict[str, Any]) -> ComponentHandle:
        """Build a handle from a NiFi entity response (``{"id", "revision", "component"}``)."""
        return cls(component_id=entity_id(entity), version=entity["revision"]["version"])


def entity_id(entity: dict[str, Any]) -> str:
    """Identifier of a NiFi entity, from ``component.id`` or the top-level ``id``."""
    component = entity.get("component") or {}
    component_id: str = component.get("id") or entity["id"]
    return component_id


@dataclass
class FlowBuildResult:
    """Everything a flow build created, plus every error it recorded.

    Fields:
        process_group_id: Group the flow was built in ("" if never resolved)
        processor_ids: Created processor identifiers, in definition order
        connection_ids: Created connection identifiers, in definition order
        controller_service_ids: Created controller service identifiers
        errors: Human-readable error strings, in the order they occurred
        success: True iff no errors were recorded (set by ``finish()``)
    """

    process_group_id: str = ""
    processor_ids: list[str] = field(default_factory=list)
    connection_ids: list[str] = field(default_factory=list)
    controller_service_ids: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    success: bool = False

    def finish(self) -> FlowBuildResult:
        self.success = not self.errors
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "process_group_id": self.process_group_id,
            "processor_ids": list(self.processor_ids),
            "connection_ids": list(self.connection_ids),
            "controller_service_ids": list(self.controller_service_ids),
            "errors": list(self.errors),
        }
