# src/nifi_agent/contracts/flow.py
"""Flow definition contracts.

A FlowDefinition is the planner's output and the flow builder's input.
It is an immutable, index-based plan: processors and controller services
are referenced by their position in the ordered lists, because no NiFi
identifiers exist until the builder realizes them.

Models are frozen after construction. The builder never writes back into
a definition; anything it infers (auto-terminated relationships, merged
properties) lives in local state for the duration of one build.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class ProcessorSpec(BaseModel):
    """One processor in the planned flow."""

    model_config = {"frozen": True}

    name: str = Field(description="Display name for the processor")
    type: str = Field(description="Catalog key (e.g. PublishMQTT) or fully-qualified NiFi type")
    properties: dict[str, str] = Field(default_factory=dict, description="Explicit processor properties")
    auto_terminate: tuple[str, ...] | None = Field(
        default=None,
        description="Relationships to auto-terminate",
    )


class ConnectionSpec(BaseModel):
    """A connection between two processors, by processor index."""

    model_config = {"frozen": True}

    from_index: int = Field(ge=0, description="Index of the source processor")
    to_index: int = Field(ge=0, description="Index of the destination processor")
    relationships: tuple[str, ...] = Field(min_length=1, description="Relationships routed on this connection")


class ServiceReference(BaseModel):
    """A processor property that must hold a controller service's identifier."""

    model_config = {"frozen": True}

    processor_index: int = Field(ge=0)
    property_name: str


class ServiceSpec(BaseModel):
    """One controller service in the planned flow."""

    model_config = {"frozen": True}

    name: str
    type: str = Field(description="Catalog key (e.g. DBCPConnectionPool) or fully-qualified NiFi type")
    properties: dict[str, str] = Field(default_factory=dict)
    referenced_by: tuple[ServiceReference, ...] = Field(default_factory=tuple)

    @field_validator("referenced_by", mode="before")
    @classmethod
    def _none_means_no_references(cls, value: object) -> object:
        # LLM tool output sends null for "no references"
        return () if value is None else value


class FlowDefinition(BaseModel):
    """Complete, index-based flow plan."""

    model_config = {"frozen": True}

    flow_name: str = Field(default="Untitled flow")
    processors: tuple[ProcessorSpec, ...] = Field(default_factory=tuple)
    connections: tuple[ConnectionSpec, ...] = Field(default_factory=tuple)
    controller_services: tuple[ServiceSpec, ...] | None = None

    def outgoing_indices(self) -> frozenset[int]:
        """Indices of processors that are the source of at least one connection."""
        return frozenset(connection.from_index for connection in self.connections)

    def references_to(self, processor_index: int) -> list[tuple[int, str]]:
        """(service_index, property_name) pairs naming the given processor, in definition order."""
        if not self.controller_services:
            return []
        return [
            (service_index, reference.property_name)
            for service_index, service in enumerate(self.controller_services)
            for reference in service.referenced_by
            if reference.processor_index == processor_index
        ]
