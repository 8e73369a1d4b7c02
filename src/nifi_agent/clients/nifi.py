# src/nifi_agent/clients/nifi.py
"""NiFi REST API client.

Thin, synchronous wrapper over httpx. Every mutating call carries the
caller's current revision (``{"version": v, "clientId": ...}``) and returns
NiFi's entity, whose ``revision.version`` is the value the next mutation
of the same component must carry.

No retries happen here: a failed call raises and the caller decides what
that means for the run.
"""

from __future__ import annotations

import time
import uuid
from typing import Any

import httpx
import structlog

from nifi_agent.catalog import Bundle
from nifi_agent.contracts.errors import (
    NiFiAPIError,
    NiFiAuthenticationError,
    NiFiClientError,
    NiFiConnectionError,
)
from nifi_agent.contracts.results import Position

logger = structlog.get_logger(__name__)


class NiFiClient:
    """Revision-guarded CRUD over the NiFi REST API.

    Example:
        with NiFiClient(base_url="https://localhost:8443/nifi-api") as client:
            client.authenticate("admin", "secret")
            group_id = client.get_root_process_group_id()
            entity = client.create_processor(group_id, "Log", "org.apache.nifi...LogAttribute", Position(100, 100))
            entity = client.update_processor_properties(entity["id"], {"Log Level": "warn"}, entity["revision"]["version"])
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        verify: bool = False,
        client_id: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: NiFi API root, e.g. https://localhost:8443/nifi-api
            timeout: Request timeout in seconds
            verify: Verify the server TLS certificate
            client_id: Revision client id (generated when omitted)
            transport: Optional httpx transport (tests)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self.client_id = client_id or f"nifi-agent-{uuid.uuid4()}"
        self._token: str | None = None
        self._client = httpx.Client(
            timeout=timeout,
            verify=verify,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    def __enter__(self) -> NiFiClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying httpx client and release connections."""
        self._client.close()

    @property
    def authenticated(self) -> bool:
        return self._token is not None

    def _resolve_url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    def _revision(self, version: int) -> dict[str, Any]:
        return {"version": version, "clientId": self.client_id}

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        data: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send one request; raise on transport failure or non-2xx status."""
        url = self._resolve_url(path)
        headers: dict[str, str] = {}
        if self._token is not None:
            headers["Authorization"] = f"Bearer {self._token}"
        if data is not None:
            headers["Content-Type"] = "application/x-www-form-urlencoded"

        start = time.perf_counter()
        try:
            response = self._client.request(method, url, json=json, data=data, headers=headers)
        except httpx.HTTPError as e:
            logger.debug("nifi_request_failed", method=method, path=path, error=str(e))
            raise NiFiConnectionError(f"{method} {path} failed: {e}") from e
        latency_ms = (time.perf_counter() - start) * 1000

        logger.debug(
            "nifi_request",
            method=method,
            path=path,
            status_code=response.status_code,
            latency_ms=round(latency_ms, 1),
        )
        if not response.is_success:
            # NiFi error bodies are plain text
            detail = response.text.strip() or response.reason_phrase
            raise NiFiAPIError(response.status_code, method, path, detail)
        return response

    def _json(self, method: str, path: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        response = self._request(method, path, json=payload)
        try:
            body = response.json()
        except ValueError as e:
            raise NiFiClientError(f"{method} {path} returned a non-JSON body") from e
        if not isinstance(body, dict):
            raise NiFiClientError(f"{method} {path} returned {type(body).__name__}, expected an object")
        return body

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def authenticate(self, username: str, password: str) -> None:
        """Exchange single-user credentials for a bearer token."""
        try:
            response = self._request("POST", "/access/token", data={"username": username, "password": password})
        except NiFiClientError as e:
            raise NiFiAuthenticationError(f"Failed to authenticate with NiFi: {e}") from e
        self._token = response.text.strip()
        logger.info("nifi_authenticated", base_url=self._base_url, username=username)

    def get_about(self) -> dict[str, Any]:
        """Title and version of the NiFi instance."""
        about: dict[str, Any] = self._json("GET", "/flow/about")["about"]
        return about

    # ------------------------------------------------------------------
    # Topology
    # ------------------------------------------------------------------

    def get_root_process_group_id(self) -> str:
        group_id: str = self._json("GET", "/flow/process-groups/root")["processGroupFlow"]["id"]
        return group_id

    def get_process_group_flow(self, group_id: str) -> dict[str, Any]:
        return self._json("GET", f"/flow/process-groups/{group_id}")

    def get_processor_positions(self, group_id: str) -> list[Position]:
        """Canvas positions of processors already in the group.

        Processors without a position are reported at the origin.
        """
        flow = self.get_process_group_flow(group_id)["processGroupFlow"]["flow"]
        positions: list[Position] = []
        for processor in flow.get("processors") or []:
            position = processor.get("component", {}).get("position") or {}
            positions.append(Position(x=position.get("x", 0), y=position.get("y", 0)))
        return positions

    # ------------------------------------------------------------------
    # Processors
    # ------------------------------------------------------------------

    def create_processor(
        self,
        group_id: str,
        name: str,
        type: str,
        position: Position,
        bundle: Bundle | None = None,
    ) -> dict[str, Any]:
        component: dict[str, Any] = {"name": name, "type": type, "position": position.to_dict()}
        if bundle is not None:
            component["bundle"] = bundle.to_dict()
        return self._json(
            "POST",
            f"/process-groups/{group_id}/processors",
            {"revision": self._revision(0), "component": component},
        )

    def update_processor_properties(
        self,
        processor_id: str,
        properties: dict[str, str | None],
        version: int,
    ) -> dict[str, Any]:
        """Set processor properties. Response carries validationStatus/validationErrors."""
        return self._json(
            "PUT",
            f"/processors/{processor_id}",
            {
                "revision": self._revision(version),
                "component": {"id": processor_id, "config": {"properties": properties}},
            },
        )

    def update_processor_auto_terminate(
        self,
        processor_id: str,
        relationships: list[str],
        version: int,
    ) -> dict[str, Any]:
        return self._json(
            "PUT",
            f"/processors/{processor_id}",
            {
                "revision": self._revision(version),
                "component": {"id": processor_id, "config": {"autoTerminatedRelationships": relationships}},
            },
        )

    def start_processor(self, processor_id: str, version: int) -> dict[str, Any]:
        return self._set_processor_state(processor_id, "RUNNING", version)

    def stop_processor(self, processor_id: str, version: int) -> dict[str, Any]:
        return self._set_processor_state(processor_id, "STOPPED", version)

    def _set_processor_state(self, processor_id: str, state: str, version: int) -> dict[str, Any]:
        return self._json(
            "PUT",
            f"/processors/{processor_id}/run-status",
            {"revision": self._revision(version), "state": state},
        )

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def create_connection(
        self,
        group_id: str,
        source_id: str,
        destination_id: str,
        relationships: list[str],
    ) -> dict[str, Any]:
        return self._json(
            "POST",
            f"/process-groups/{group_id}/connections",
            {
                "revision": self._revision(0),
                "component": {
                    "source": {"id": source_id, "groupId": group_id, "type": "PROCESSOR"},
                    "destination": {"id": destination_id, "groupId": group_id, "type": "PROCESSOR"},
                    "selectedRelationships": relationships,
                },
            },
        )

    # ------------------------------------------------------------------
    # Controller services
    # ------------------------------------------------------------------

    def create_controller_service(
        self,
        group_id: str,
        name: str,
        type: str,
        properties: dict[str, str] | None = None,
        bundle: Bundle | None = None,
    ) -> dict[str, Any]:
        component: dict[str, Any] = {"name": name, "type": type}
        if properties:
            component["properties"] = properties
        if bundle is not None:
            component["bundle"] = bundle.to_dict()
        return self._json(
            "POST",
            f"/process-groups/{group_id}/controller-services",
            {"revision": self._revision(0), "component": component},
        )

    def update_controller_service_properties(
        self,
        service_id: str,
        properties: dict[str, str | None],
        version: int,
    ) -> dict[str, Any]:
        return self._json(
            "PUT",
            f"/controller-services/{service_id}",
            {"revision": self._revision(version), "component": {"id": service_id, "properties": properties}},
        )

    def enable_controller_service(self, service_id: str, version: int) -> dict[str, Any]:
        return self._set_service_state(service_id, "ENABLED", version)

    def disable_controller_service(self, service_id: str, version: int) -> dict[str, Any]:
        return self._set_service_state(service_id, "DISABLED", version)

    def _set_service_state(self, service_id: str, state: str, version: int) -> dict[str, Any]:
        return self._json(
            "PUT",
            f"/controller-services/{service_id}/run-status",
            {"revision": self._revision(version), "state": state},
        )

    # ------------------------------------------------------------------
    # Type discovery
    # ------------------------------------------------------------------

    def get_processor_types(self) -> list[dict[str, Any]]:
        types: list[dict[str, Any]] = self._json("GET", "/flow/processor-types")["processorTypes"]
        return types

    def get_controller_service_types(self) -> list[dict[str, Any]]:
        types: list[dict[str, Any]] = self._json("GET", "/flow/controller-service-types")["controllerServiceTypes"]
        return types
