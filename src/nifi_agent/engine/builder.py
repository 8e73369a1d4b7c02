# src/nifi_agent/engine/builder.py
"""FlowBuilder: realizes a FlowDefinition as live NiFi components.

Phases run strictly in order, each finishing before the next starts:

1. target      - resolve the root process group
2. services    - create and enable controller services
3. layout      - read existing processor positions, pick the column x
4. processors  - create, configure and auto-terminate each processor
5. connections - wire processors together through the realized ids
6. start       - optional, start every created processor

Failure policy:
    Every remote call is attempted on behalf of one object. If it fails the
    failure becomes an error string on the result and the loop moves on to
    the next object. Only failures in the target and layout phases end the
    run early, because there is no group to build into or no safe place to
    put anything. ``build_flow`` never raises for NiFi or response errors;
    only an exception from the ``on_event`` callback propagates.

Cross-references:
    The definition refers to processors and services by list index. Realized
    identifiers are recorded in index maps as objects are created; services
    and connections are resolved through those maps, never through the
    raw indices, so an index whose object failed to create resolves to
    nothing.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, TypeVar

import structlog

from nifi_agent.catalog import Bundle, resolve_processor, resolve_service
from nifi_agent.contracts.errors import BuildEventCallbackError
from nifi_agent.contracts.events import (
    BuildEvent,
    BuildEventCallback,
    BuildOutcome,
    BuildPhase,
    ignore_event,
)
from nifi_agent.contracts.flow import ConnectionSpec, FlowDefinition, ProcessorSpec, ServiceSpec
from nifi_agent.contracts.results import ComponentHandle, FlowBuildResult, Position, entity_id
from nifi_agent.engine.layout import ColumnLayout, layout_for
from nifi_agent.engine.properties import (
    apply_completion_rules,
    merge_properties,
    resolve_auto_terminate,
    substitute_service_references,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class FlowClient(Protocol):
    """The part of NiFiClient the builder depends on."""

    def get_root_process_group_id(self) -> str: ...

    def get_processor_positions(self, group_id: str) -> list[Position]: ...

    def create_processor(
        self,
        group_id: str,
        name: str,
        type: str,
        position: Position,
        bundle: Bundle | None = None,
    ) -> dict[str, Any]: ...

    def update_processor_properties(
        self,
        processor_id: str,
        properties: dict[str, str | None],
        version: int,
    ) -> dict[str, Any]: ...

    def update_processor_auto_terminate(
        self,
        processor_id: str,
        relationships: list[str],
        version: int,
    ) -> dict[str, Any]: ...

    def create_connection(
        self,
        group_id: str,
        source_id: str,
        destination_id: str,
        relationships: list[str],
    ) -> dict[str, Any]: ...

    def create_controller_service(
        self,
        group_id: str,
        name: str,
        type: str,
        properties: dict[str, str] | None = None,
        bundle: Bundle | None = None,
    ) -> dict[str, Any]: ...

    def enable_controller_service(self, service_id: str, version: int) -> dict[str, Any]: ...

    def start_processor(self, processor_id: str, version: int) -> dict[str, Any]: ...


class FlowBuilder:
    """Drives a FlowClient through the creation sequence for one definition.

    Example:
        builder = FlowBuilder(client)
        result = builder.build_flow(definition)
        if not result.success:
            for error in result.errors:
                print(error)
    """

    def __init__(
        self,
        client: FlowClient,
        *,
        start_processors: bool = False,
        on_event: BuildEventCallback = ignore_event,
    ) -> None:
        """Initialize the builder.

        Args:
            client: NiFi client (or anything implementing FlowClient)
            start_processors: Start each created processor after wiring
            on_event: Progress callback; called synchronously for each step
        """
        self._client = client
        self._start_processors = start_processors
        self._on_event = on_event

    def build_flow(self, definition: FlowDefinition) -> FlowBuildResult:
        """Realize ``definition`` in the root process group.

        Returns:
            FlowBuildResult with created ids and every recorded error.
            ``success`` is True iff no error was recorded.

        Raises:
            BuildEventCallbackError: The ``on_event`` callback raised
        """
        result = FlowBuildResult()
        log = logger.bind(flow_name=definition.flow_name)
        phase = BuildPhase.TARGET
        try:
            group_id = self._client.get_root_process_group_id()
            result.process_group_id = group_id
            self._emit(BuildPhase.TARGET, BuildOutcome.SUCCEEDED, group_id)
            log.info("flow_build_started", process_group_id=group_id, processors=len(definition.processors))

            phase = BuildPhase.SERVICES
            service_ids = self._build_services(result, group_id, definition)

            phase = BuildPhase.LAYOUT
            layout = layout_for(self._client.get_processor_positions(group_id))
            self._emit(BuildPhase.LAYOUT, BuildOutcome.SUCCEEDED, group_id, f"x={layout.start_x:g}")

            phase = BuildPhase.PROCESSORS
            handles = self._build_processors(result, group_id, definition, layout, service_ids)
            phase = BuildPhase.CONNECTIONS
            self._build_connections(result, group_id, definition, handles)

            if self._start_processors:
                phase = BuildPhase.START
                self._start(result, definition, handles)
        except BuildEventCallbackError:
            raise
        except Exception as e:
            result.errors.append(f"Flow build failed: {e}")
            log.error("flow_build_aborted", phase=phase.value, error=str(e), error_type=type(e).__name__)
            self._emit(phase, BuildOutcome.FAILED, result.process_group_id or "root", str(e))

        result.finish()
        log.info(
            "flow_build_finished",
            success=result.success,
            processors=len(result.processor_ids),
            connections=len(result.connection_ids),
            controller_services=len(result.controller_service_ids),
            errors=len(result.errors),
        )
        return result

    # ------------------------------------------------------------------
    # Step folding
    # ------------------------------------------------------------------

    def _attempt(
        self,
        result: FlowBuildResult,
        phase: BuildPhase,
        subject: str,
        operation: Callable[[], T],
        describe: Callable[[Exception], str],
    ) -> T | None:
        """Run one remote step for one object.

        ``operation`` covers both the call and reading what the build needs
        from its response. On failure the error string is appended to
        ``result`` and None is returned; the caller skips whatever depended
        on this step.
        """
        try:
            return operation()
        except BuildEventCallbackError:
            raise
        except Exception as e:
            message = describe(e)
            result.errors.append(message)
            self._emit(phase, BuildOutcome.FAILED, subject, message)
            logger.warning("flow_build_step_failed", phase=phase.value, subject=subject, error=str(e))
            return None

    def _emit(self, phase: BuildPhase, outcome: BuildOutcome, subject: str, detail: str | None = None) -> None:
        event = BuildEvent(phase=phase, outcome=outcome, subject=subject, detail=detail)
        try:
            self._on_event(event)
        except Exception as e:
            raise BuildEventCallbackError(f"Build event callback failed on {phase.value} {subject}: {e}") from e

    # ------------------------------------------------------------------
    # Phase 2: controller services
    # ------------------------------------------------------------------

    def _build_services(self, result: FlowBuildResult, group_id: str, definition: FlowDefinition) -> dict[int, str]:
        service_ids: dict[int, str] = {}
        for index, spec in enumerate(definition.controller_services or ()):
            service_id = self._realize_service(result, group_id, spec)
            if service_id is not None:
                service_ids[index] = service_id
        return service_ids

    def _realize_service(self, result: FlowBuildResult, group_id: str, spec: ServiceSpec) -> str | None:
        resolved = resolve_service(spec.type)
        self._emit(BuildPhase.SERVICES, BuildOutcome.STARTED, spec.name)

        handle = self._attempt(
            result,
            BuildPhase.SERVICES,
            spec.name,
            lambda: ComponentHandle.from_entity(
                self._client.create_controller_service(
                    group_id, spec.name, resolved.type, dict(spec.properties), resolved.bundle
                )
            ),
            lambda e: f"Failed to create controller service {spec.name}: {e}",
        )
        if handle is None:
            return None
        result.controller_service_ids.append(handle.component_id)

        enabled = self._attempt(
            result,
            BuildPhase.SERVICES,
            spec.name,
            lambda: self._client.enable_controller_service(handle.component_id, handle.version),
            lambda e: f"Failed to enable controller service {spec.name}: {e}",
        )
        if enabled is not None:
            self._emit(BuildPhase.SERVICES, BuildOutcome.SUCCEEDED, spec.name, "created and enabled")
        # A service that failed to enable still exists; processors may reference it
        return handle.component_id

    # ------------------------------------------------------------------
    # Phase 4: processors
    # ------------------------------------------------------------------

    def _build_processors(
        self,
        result: FlowBuildResult,
        group_id: str,
        definition: FlowDefinition,
        layout: ColumnLayout,
        service_ids: dict[int, str],
    ) -> dict[int, ComponentHandle]:
        handles: dict[int, ComponentHandle] = {}
        outgoing = definition.outgoing_indices()
        for index, spec in enumerate(definition.processors):
            handle = self._realize_processor(
                result, group_id, definition, index, spec, layout.position(index), service_ids, outgoing
            )
            if handle is not None:
                handles[index] = handle
        return handles

    def _realize_processor(
        self,
        result: FlowBuildResult,
        group_id: str,
        definition: FlowDefinition,
        index: int,
        spec: ProcessorSpec,
        position: Position,
        service_ids: dict[int, str],
        outgoing: frozenset[int],
    ) -> ComponentHandle | None:
        resolved = resolve_processor(spec.type)
        entry = resolved.entry
        self._emit(BuildPhase.PROCESSORS, BuildOutcome.STARTED, spec.name)

        handle = self._attempt(
            result,
            BuildPhase.PROCESSORS,
            spec.name,
            lambda: ComponentHandle.from_entity(
                self._client.create_processor(group_id, spec.name, resolved.type, position, resolved.bundle)
            ),
            lambda e: f"Failed to create processor {spec.name}: {e}",
        )
        if handle is None:
            return None
        result.processor_ids.append(handle.component_id)
        self._emit(BuildPhase.PROCESSORS, BuildOutcome.SUCCEEDED, spec.name, f"created (id: {handle.component_id})")

        properties = merge_properties(entry.default_properties if entry is not None else {}, spec.properties)
        apply_completion_rules(entry, properties)
        for unresolved in substitute_service_references(properties, definition.references_to(index), service_ids):
            logger.warning(
                "service_reference_unresolved",
                processor=spec.name,
                property_name=unresolved.property_name,
                service_index=unresolved.service_index,
            )
        auto_terminate = resolve_auto_terminate(index, spec.auto_terminate, entry, outgoing)

        if properties:
            handle = self._configure_properties(result, spec.name, handle, properties)
        else:
            self._emit(BuildPhase.PROCESSORS, BuildOutcome.WARNING, spec.name, "no properties to set")

        if auto_terminate:
            current = handle
            updated = self._attempt(
                result,
                BuildPhase.PROCESSORS,
                spec.name,
                lambda: current.advance(
                    self._client.update_processor_auto_terminate(
                        current.component_id, auto_terminate, current.version
                    )["revision"]["version"]
                ),
                lambda e: f"Failed to auto-terminate relationships on {spec.name}: {e}",
            )
            if updated is not None:
                handle = updated
                self._emit(
                    BuildPhase.PROCESSORS,
                    BuildOutcome.SUCCEEDED,
                    spec.name,
                    f"auto-terminated: {', '.join(auto_terminate)}",
                )
        return handle

    def _configure_properties(
        self,
        result: FlowBuildResult,
        name: str,
        handle: ComponentHandle,
        properties: dict[str, str],
    ) -> ComponentHandle:
        """Push properties; returns the advanced handle, or the same one on failure."""
        logger.debug("processor_properties", processor=name, properties=properties)

        def push() -> tuple[ComponentHandle, dict[str, Any]]:
            updated = self._client.update_processor_properties(handle.component_id, dict(properties), handle.version)
            return handle.advance(updated["revision"]["version"]), updated.get("component") or {}

        pushed = self._attempt(
            result,
            BuildPhase.PROCESSORS,
            name,
            push,
            lambda e: f"Failed to configure {name}: {e}",
        )
        if pushed is None:
            return handle

        advanced, component = pushed
        status = component.get("validationStatus")
        if status == "VALID":
            self._emit(BuildPhase.PROCESSORS, BuildOutcome.SUCCEEDED, name, f"configured {len(properties)} properties")
        else:
            # Advisory only: NiFi still holds the component and its configuration
            validation_errors = component.get("validationErrors") or []
            logger.warning("processor_not_valid", processor=name, status=status, validation_errors=validation_errors)
            detail = f"configured {len(properties)} properties ({status})"
            if validation_errors:
                detail += ": " + "; ".join(validation_errors)
            self._emit(BuildPhase.PROCESSORS, BuildOutcome.WARNING, name, detail)
        return advanced

    # ------------------------------------------------------------------
    # Phase 5: connections
    # ------------------------------------------------------------------

    def _build_connections(
        self,
        result: FlowBuildResult,
        group_id: str,
        definition: FlowDefinition,
        handles: dict[int, ComponentHandle],
    ) -> None:
        for spec in definition.connections:
            self._realize_connection(result, group_id, definition, spec, handles)

    def _realize_connection(
        self,
        result: FlowBuildResult,
        group_id: str,
        definition: FlowDefinition,
        spec: ConnectionSpec,
        handles: dict[int, ComponentHandle],
    ) -> None:
        source = handles.get(spec.from_index)
        destination = handles.get(spec.to_index)
        label = f"{_processor_name(definition, spec.from_index)} → {_processor_name(definition, spec.to_index)}"

        if source is None or destination is None:
            message = f"Cannot create connection {label}: source or destination processor not found"
            result.errors.append(message)
            self._emit(BuildPhase.CONNECTIONS, BuildOutcome.FAILED, label, message)
            return

        self._emit(BuildPhase.CONNECTIONS, BuildOutcome.STARTED, label)
        created = self._attempt(
            result,
            BuildPhase.CONNECTIONS,
            label,
            # Connections are never mutated again, so only the id is read
            lambda: entity_id(
                self._client.create_connection(
                    group_id, source.component_id, destination.component_id, list(spec.relationships)
                )
            ),
            lambda e: f"Failed to connect {label}: {e}",
        )
        if created is not None:
            result.connection_ids.append(created)
            self._emit(BuildPhase.CONNECTIONS, BuildOutcome.SUCCEEDED, label, f"via {', '.join(spec.relationships)}")

    # ------------------------------------------------------------------
    # Phase 6: start
    # ------------------------------------------------------------------

    def _start(self, result: FlowBuildResult, definition: FlowDefinition, handles: dict[int, ComponentHandle]) -> None:
        for index, handle in handles.items():
            name = definition.processors[index].name
            started = self._attempt(
                result,
                BuildPhase.START,
                name,
                lambda: self._client.start_processor(handle.component_id, handle.version),
                lambda e: f"Failed to start {name}: {e}",
            )
            if started is not None:
                self._emit(BuildPhase.START, BuildOutcome.SUCCEEDED, name, "running")


def _processor_name(definition: FlowDefinition, index: int) -> str:
    if 0 <= index < len(definition.processors):
        return definition.processors[index].name
    return f"#{index}"
