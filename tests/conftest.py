from __future__ import annotations

import asyncio
import copy
import json
from collections.abc import Iterable, Mapping
from typing import Any, Callable

from firmware_fleet.api import FetchError, ScheduleError
from firmware_fleet.domain.ids import Severity
from firmware_fleet.domain.inventory import (
    FirmwareComponent,
    FirmwareInventory,
    InventorySnapshot,
    InventorySummary,
    Server,
    entries_from_servers,
)


def make_component(
    component_id: str,
    *,
    available: str | None = None,
    current: str = "1.0.0",
    name: str | None = None,
    component_type: str | None = None,
    severity: Severity | None = None,
    updateable: bool = True,
) -> FirmwareComponent:
    """Return a firmware component with sensible defaults."""

    return FirmwareComponent(
        id=component_id,
        name=name or component_id,
        component_type=component_type or component_id,
        current_version=current,
        available_version=available,
        updateable=updateable,
        severity=severity,
    )


def make_server(
    name: str,
    components: Iterable[FirmwareComponent] = (),
    *,
    model: str = "PowerEdge R650",
    namespace: str = "ns-a",
    updates_available: int | None = None,
) -> Server:
    """Return a server whose update count defaults to its pending components."""

    firmware = tuple(components)
    if updates_available is None:
        updates_available = sum(1 for fw in firmware if fw.has_update)
    return Server(
        name=name,
        namespace=namespace,
        model=model,
        manufacturer="Dell Inc.",
        firmware_count=len(firmware),
        updates_available=updates_available,
        firmware=firmware,
    )


def build_snapshot(
    servers: Iterable[Server], namespace: str | None = None
) -> InventorySnapshot:
    """Return a snapshot whose entries are projected from ``servers``."""

    return InventorySnapshot.build(namespace, servers)


def fleet_servers() -> list[Server]:
    """Return the three-server fleet used across the session tests."""

    return [
        make_server(
            "worker-0",
            [
                make_component(
                    "bios", available="2.0.0", severity=Severity.CRITICAL
                ),
                make_component("bmc"),
            ],
            model="PowerEdge R650",
        ),
        make_server("worker-1", [make_component("bios")], model="PowerEdge R750"),
        make_server(
            "master-0",
            [
                make_component(
                    "nic", available="3.1.0", severity=Severity.RECOMMENDED
                ),
                make_component(
                    "raid", available="5.1.0", severity=Severity.OPTIONAL
                ),
            ],
            model="PowerEdge R750",
            namespace="ns-b",
        ),
    ]


class FakeInventoryClient:
    """In-memory stand-in for ``InventoryClient``."""

    def __init__(
        self,
        servers: Iterable[Server] | Mapping[str | None, Iterable[Server]] = (),
        *,
        namespaces: Iterable[str] = ("ns-a", "ns-b"),
    ) -> None:
        if isinstance(servers, Mapping):
            self._servers = {key: list(value) for key, value in servers.items()}
        else:
            self._servers = {None: list(servers)}
        self.namespaces = list(namespaces)
        self.fetch_error: Exception | None = None
        self.namespace_error: Exception | None = None
        self.schedule_error: Exception | None = None
        self.schedule_gate: asyncio.Event | None = None
        self.fetch_gates: dict[str | None, asyncio.Event] = {}
        self.server_calls: list[str | None] = []
        self.firmware_calls: list[str | None] = []
        self.schedule_calls: list[dict[str, Any]] = []

    def set_servers(
        self, servers: Iterable[Server], namespace: str | None = None
    ) -> None:
        self._servers[namespace] = list(servers)

    def _servers_for(self, namespace: str | None) -> list[Server]:
        if namespace in self._servers:
            return list(self._servers[namespace])
        return [
            server
            for server in self._servers.get(None, [])
            if namespace is None or server.namespace == namespace
        ]

    async def _maybe_wait(self, namespace: str | None) -> None:
        gate = self.fetch_gates.get(namespace)
        if gate is not None:
            await gate.wait()

    async def async_list_servers(self, namespace: str | None = None) -> list[Server]:
        self.server_calls.append(namespace)
        await self._maybe_wait(namespace)
        if self.fetch_error is not None:
            raise self.fetch_error
        return self._servers_for(namespace)

    async def async_list_firmware_inventory(
        self, namespace: str | None = None
    ) -> FirmwareInventory:
        self.firmware_calls.append(namespace)
        await self._maybe_wait(namespace)
        if self.fetch_error is not None:
            raise self.fetch_error
        entries = entries_from_servers(self._servers_for(namespace))
        return FirmwareInventory(
            summary=InventorySummary.from_entries(entries), entries=entries
        )

    async def async_list_namespaces(self) -> list[str]:
        if self.namespace_error is not None:
            raise self.namespace_error
        return list(self.namespaces)

    async def async_schedule_updates(
        self,
        servers: Iterable[str],
        components: Iterable[str] | None = None,
        *,
        mode: str = "OnReboot",
    ) -> bool:
        self.schedule_calls.append(
            {
                "servers": list(servers),
                "components": list(components) if components is not None else None,
                "mode": mode,
            }
        )
        if self.schedule_gate is not None:
            await self.schedule_gate.wait()
        if self.schedule_error is not None:
            raise self.schedule_error
        return True


def network_error(message: str = "Network error") -> ScheduleError:
    return ScheduleError(message)


def fetch_failure(message: str = "Service unavailable") -> FetchError:
    return FetchError(message, status=503)


# ----------------- aiohttp doubles -----------------


class MockResponse:
    def __init__(
        self,
        status: int,
        json_data: Any,
        *,
        headers: dict[str, str] | None = None,
        text_data: str | Callable[[], str] | None = "",
        text_exc: Exception | None = None,
    ) -> None:
        self.status = status
        self._json = json_data
        self._text = text_data
        self._text_exc = text_exc
        self.headers = headers or {}
        self.request_info = None
        self.history = ()

    async def __aenter__(self) -> MockResponse:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def text(self) -> str:
        if self._text_exc is not None:
            raise self._text_exc
        value = self._text() if callable(self._text) else self._text
        return value or ""

    async def json(self, content_type: str | None = None) -> Any:
        return self._json() if callable(self._json) else self._json


def json_response(status: int, payload: Any) -> MockResponse:
    """Return a JSON response whose text mirrors ``payload``."""

    return MockResponse(
        status,
        payload,
        headers={"Content-Type": "application/json"},
        text_data=json.dumps(payload),
    )


class FakeSession:
    def __init__(self) -> None:
        self._request_queue: list[Any] = []
        self.request_calls: list[tuple[str, str, dict[str, Any]]] = []

    def queue_request(self, *responses: Any) -> None:
        self._request_queue.extend(responses)

    def request(self, method: str, url: str, *args: Any, **kwargs: Any) -> Any:
        self.request_calls.append((method, url, copy.deepcopy(kwargs)))
        if not self._request_queue:
            raise AssertionError("Unexpected request call with no queued response")
        result = self._request_queue.pop(0)
        if isinstance(result, Exception):
            raise result
        return result
