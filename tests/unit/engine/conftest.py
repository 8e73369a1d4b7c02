# tests/unit/engine/conftest.py
"""In-memory stand-in for the NiFi REST API.

FakeNiFiClient implements the FlowClient protocol and enforces NiFi's
optimistic locking: every mutation must carry the component's current
revision or it fails with a 409, exactly like the real API. Tests can make
any call fail for a given subject through ``fail_on``.
"""

from __future__ import annotations

import itertools
from collections import defaultdict
from typing import Any

import pytest

from nifi_agent.catalog import Bundle
from nifi_agent.contracts.errors import NiFiAPIError, NiFiConnectionError
from nifi_agent.contracts.events import BuildEvent
from nifi_agent.contracts.results import Position


class FakeNiFiClient:
    """Records every call and keeps components in dicts.

    ``fail_on[method]`` is a set of subjects for which ``method`` raises.
    Subjects are processor/service names, or the source processor's name for
    ``create_connection``, or "root" / the group id for the group lookups.
    """

    def __init__(
        self,
        *,
        root_id: str = "root-pg",
        positions: list[Position] | None = None,
        validation_status: str = "VALID",
    ) -> None:
        self.root_id = root_id
        self.positions = list(positions or [])
        self.validation_status = validation_status
        self.fail_on: dict[str, set[str]] = defaultdict(set)
        self.calls: list[tuple[str, str]] = []
        self.versions: dict[str, int] = {}
        self.processors: dict[str, dict[str, Any]] = {}
        self.services: dict[str, dict[str, Any]] = {}
        self.connections: dict[str, dict[str, Any]] = {}
        self._ids = itertools.count(1)

    def _record(self, method: str, subject: str) -> None:
        self.calls.append((method, subject))
        if subject in self.fail_on[method]:
            raise NiFiAPIError(500, "PUT", f"/{method}", f"{method} rejected {subject}")

    def _bump(self, component_id: str, version: int) -> int:
        current = self.versions[component_id]
        if version != current:
            raise NiFiAPIError(409, "PUT", f"/{component_id}", f"stale revision {version}, current is {current}")
        self.versions[component_id] = current + 1
        return current + 1

    def _name(self, component_id: str) -> str:
        component = self.processors.get(component_id) or self.services[component_id]
        name: str = component["name"]
        return name

    def _entity(self, component_id: str, **component: Any) -> dict[str, Any]:
        return {
            "id": component_id,
            "revision": {"version": self.versions[component_id]},
            "component": {"id": component_id, **component},
        }

    def calls_to(self, method: str) -> list[str]:
        return [subject for called, subject in self.calls if called == method]

    # FlowClient ----------------------------------------------------------

    def get_root_process_group_id(self) -> str:
        if "root" in self.fail_on["get_root_process_group_id"]:
            raise NiFiConnectionError("GET /flow/process-groups/root failed: connection refused")
        self.calls.append(("get_root_process_group_id", "root"))
        return self.root_id

    def get_processor_positions(self, group_id: str) -> list[Position]:
        self._record("get_processor_positions", group_id)
        return list(self.positions)

    def create_processor(
        self,
        group_id: str,
        name: str,
        type: str,
        position: Position,
        bundle: Bundle | None = None,
    ) -> dict[str, Any]:
        self._record("create_processor", name)
        processor_id = f"proc-{next(self._ids)}"
        self.versions[processor_id] = 1
        self.processors[processor_id] = {
            "name": name,
            "type": type,
            "group_id": group_id,
            "position": position,
            "bundle": bundle,
            "properties": {},
            "auto_terminate": [],
            "state": "STOPPED",
        }
        return self._entity(processor_id, name=name)

    def update_processor_properties(
        self,
        processor_id: str,
        properties: dict[str, str | None],
        version: int,
    ) -> dict[str, Any]:
        self._record("update_processor_properties", self._name(processor_id))
        self._bump(processor_id, version)
        self.processors[processor_id]["properties"] = dict(properties)
        errors = [] if self.validation_status == "VALID" else ["'Topic' is invalid because Topic is required"]
        return self._entity(processor_id, validationStatus=self.validation_status, validationErrors=errors)

    def update_processor_auto_terminate(
        self,
        processor_id: str,
        relationships: list[str],
        version: int,
    ) -> dict[str, Any]:
        self._record("update_processor_auto_terminate", self._name(processor_id))
        self._bump(processor_id, version)
        self.processors[processor_id]["auto_terminate"] = list(relationships)
        return self._entity(processor_id)

    def create_connection(
        self,
        group_id: str,
        source_id: str,
        destination_id: str,
        relationships: list[str],
    ) -> dict[str, Any]:
        self._record("create_connection", self._name(source_id))
        connection_id = f"conn-{next(self._ids)}"
        self.connections[connection_id] = {
            "source": source_id,
            "destination": destination_id,
            "relationships": list(relationships),
        }
        # The builder needs only the id of a new connection
        return {"id": connection_id}

    def create_controller_service(
        self,
        group_id: str,
        name: str,
        type: str,
        properties: dict[str, str] | None = None,
        bundle: Bundle | None = None,
    ) -> dict[str, Any]:
        self._record("create_controller_service", name)
        service_id = f"svc-{next(self._ids)}"
        self.versions[service_id] = 1
        self.services[service_id] = {
            "name": name,
            "type": type,
            "properties": dict(properties or {}),
            "bundle": bundle,
            "state": "DISABLED",
        }
        return self._entity(service_id, name=name)

    def enable_controller_service(self, service_id: str, version: int) -> dict[str, Any]:
        self._record("enable_controller_service", self._name(service_id))
        self._bump(service_id, version)
        self.services[service_id]["state"] = "ENABLED"
        return self._entity(service_id)

    def start_processor(self, processor_id: str, version: int) -> dict[str, Any]:
        self._record("start_processor", self._name(processor_id))
        self._bump(processor_id, version)
        self.processors[processor_id]["state"] = "RUNNING"
        return self._entity(processor_id)

    # Lookups for assertions ---------------------------------------------

    def processor_named(self, name: str) -> dict[str, Any]:
        return next(processor for processor in self.processors.values() if processor["name"] == name)

    def processor_id_named(self, name: str) -> str:
        return next(pid for pid, processor in self.processors.items() if processor["name"] == name)


@pytest.fixture
def fake_client() -> FakeNiFiClient:
    return FakeNiFiClient()


@pytest.fixture
def events() -> list[BuildEvent]:
    return []
