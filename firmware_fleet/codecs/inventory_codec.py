"""Decode inventory service payloads into domain objects."""

from __future__ import annotations

from collections.abc import Iterable
import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ..domain.ids import normalize_severity
from ..domain.inventory import (
    FirmwareComponent,
    FirmwareEntry,
    FirmwareInventory,
    InventorySummary,
    Server,
)
from .inventory_models import (
    DashboardStats,
    EventsResponse,
    FirmwareComponentPayload,
    FirmwareEntryPayload,
    FirmwareResponse,
    HealthEvent,
    NamespacesResponse,
    NodePayload,
    NodesResponse,
    ScheduleRequestPayload,
    ScheduleResponse,
    TasksResponse,
    UpdateSummaryPayload,
    UpdatesResponse,
    UpdateTask,
)

_LOGGER = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)


def _validate_items(
    model_cls: type[_ModelT], items: Iterable[Any], label: str
) -> list[_ModelT]:
    """Validate ``items`` one by one, skipping invalid entries."""

    validated: list[_ModelT] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            validated.append(model_cls.model_validate(item))
        except ValidationError as err:
            _LOGGER.debug(
                "Skipping invalid %s item: %s", label, err.errors(include_url=False)
            )
    return validated


def _list_section(raw: Any, key: str, response_cls: type[BaseModel]) -> list[Any]:
    """Return the list stored under ``key`` in ``raw`` (or ``raw`` itself)."""

    if isinstance(raw, list):
        return raw
    if not isinstance(raw, dict):
        return []
    try:
        model = response_cls.model_validate(raw)
    except ValidationError:
        return []
    return list(getattr(model, key) or [])


def _component_from_payload(payload: FirmwareComponentPayload) -> FirmwareComponent:
    return FirmwareComponent(
        id=payload.id,
        name=payload.name,
        component_type=payload.component_type,
        current_version=payload.current_version,
        available_version=payload.available_version,
        updateable=payload.updateable,
        severity=normalize_severity(payload.severity),
    )


def _server_from_payload(payload: NodePayload) -> Server:
    firmware = tuple(_component_from_payload(fw) for fw in payload.firmware or ())
    return Server(
        name=payload.name,
        namespace=payload.namespace,
        model=payload.model,
        manufacturer=payload.manufacturer,
        service_tag=payload.service_tag,
        bmc_address=payload.bmc_address,
        power_state=payload.power_state,
        health=payload.health,
        status=payload.status,
        firmware_count=payload.firmware_count or len(firmware),
        updates_available=payload.updates_available,
        last_scanned=payload.last_scanned,
        firmware=firmware,
    )


def decode_servers(raw: Any) -> list[Server]:
    """Validate a ``{"nodes": [...]}`` payload into servers."""

    items = _list_section(raw, "nodes", NodesResponse)
    return [
        _server_from_payload(payload)
        for payload in _validate_items(NodePayload, items, "node")
    ]


def decode_server_firmware(raw: Any) -> list[FirmwareComponent]:
    """Validate a single server's firmware payload."""

    if isinstance(raw, dict):
        items = raw.get("firmware") or []
    elif isinstance(raw, list):
        items = raw
    else:
        items = []
    return [
        _component_from_payload(payload)
        for payload in _validate_items(FirmwareComponentPayload, items, "firmware")
    ]


def decode_firmware_inventory(raw: Any) -> FirmwareInventory:
    """Validate a ``{"summary": ..., "firmware": [...]}`` payload."""

    summary_payload = None
    items: list[Any] = []
    if isinstance(raw, dict):
        try:
            model = FirmwareResponse.model_validate(raw)
        except ValidationError as err:
            _LOGGER.debug(
                "Invalid firmware payload: %s", err.errors(include_url=False)
            )
        else:
            summary_payload = model.summary
            items = list(model.firmware or [])

    entries = tuple(
        FirmwareEntry(
            server=payload.node,
            namespace=payload.namespace,
            firmware=_component_from_payload(payload.firmware),
        )
        for payload in _validate_items(FirmwareEntryPayload, items, "firmware entry")
    )

    if summary_payload is None:
        summary = InventorySummary.from_entries(entries)
    else:
        summary = InventorySummary(
            total=summary_payload.total,
            updates_available=summary_payload.updates_available,
            critical=summary_payload.critical,
            recommended=summary_payload.recommended,
            optional=summary_payload.optional,
        )
    return FirmwareInventory(summary=summary, entries=entries)


def decode_namespaces(raw: Any) -> list[str]:
    """Return the namespace names, dropping blanks and duplicates."""

    names = _list_section(raw, "namespaces", NamespacesResponse)
    cleaned = (str(name).strip() for name in names if name is not None)
    return list(dict.fromkeys(name for name in cleaned if name))


def decode_dashboard(raw: Any) -> DashboardStats:
    """Validate the dashboard aggregates payload."""

    if not isinstance(raw, dict):
        return DashboardStats()
    try:
        return DashboardStats.model_validate(raw)
    except ValidationError as err:
        _LOGGER.debug("Invalid dashboard payload: %s", err.errors(include_url=False))
        return DashboardStats()


def decode_events(raw: Any) -> list[HealthEvent]:
    """Validate an event log payload."""

    items = _list_section(raw, "events", EventsResponse)
    return _validate_items(HealthEvent, items, "event")


def decode_tasks(raw: Any) -> list[UpdateTask]:
    """Validate a BMC task list payload."""

    items = _list_section(raw, "tasks", TasksResponse)
    return _validate_items(UpdateTask, items, "task")


def decode_updates(raw: Any) -> list[UpdateSummaryPayload]:
    """Validate the grouped updates payload."""

    items = _list_section(raw, "updates", UpdatesResponse)
    return _validate_items(UpdateSummaryPayload, items, "update")


def encode_schedule_request(
    servers: Iterable[str], components: Iterable[str] | None, mode: str
) -> dict[str, Any]:
    """Return the JSON body for a batch schedule request."""

    payload = ScheduleRequestPayload(
        servers=list(servers),
        components=list(components) if components is not None else None,
        mode=mode,
    )
    return payload.model_dump(exclude_none=True)


def decode_schedule_response(raw: Any) -> ScheduleResponse:
    """Validate the scheduling acknowledgement.

    An empty body is treated as success since the service answered 2xx.
    """

    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return ScheduleResponse(success=True)
    if not isinstance(raw, dict):
        return ScheduleResponse(success=False, message=str(raw))
    try:
        return ScheduleResponse.model_validate(raw)
    except ValidationError as err:
        _LOGGER.debug("Invalid schedule response: %s", err.errors(include_url=False))
        return ScheduleResponse(success=False, message="Invalid schedule response")
