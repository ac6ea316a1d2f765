"""Pydantic models for inventory service payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _stringify(value: Any) -> Any:
    """Convert numeric identifiers to strings for consistency."""

    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)
    return value


class FirmwareComponentPayload(BaseModel):
    """Firmware component as reported for a server."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    name: str = ""
    current_version: str = Field(default="", alias="currentVersion")
    available_version: str | None = Field(default=None, alias="availableVersion")
    updateable: bool = False
    component_type: str = Field(default="", alias="componentType")
    severity: str | None = None

    @field_validator("id", "current_version", "available_version", mode="before")
    @classmethod
    def _stringify_versions(cls, value: Any) -> Any:
        """Accept numeric ids and versions."""

        return _stringify(value)

    @field_validator("available_version", "severity", mode="after")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        """Treat empty strings as missing."""

        if value is None:
            return None
        trimmed = value.strip()
        return trimmed or None


class NodePayload(BaseModel):
    """Server (node) descriptor returned by ``/api/v1/nodes``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str
    namespace: str = ""
    bmc_address: str = Field(default="", alias="bmcAddress")
    model: str = ""
    manufacturer: str = ""
    service_tag: str = Field(default="", alias="serviceTag")
    last_scanned: datetime | None = Field(default=None, alias="lastScanned")
    status: str = ""
    power_state: str = Field(default="", alias="powerState")
    health: str = ""
    firmware_count: int = Field(default=0, alias="firmwareCount")
    updates_available: int = Field(default=0, alias="updatesAvailable")
    firmware: list[FirmwareComponentPayload] | None = None

    @field_validator("last_scanned", mode="before")
    @classmethod
    def _blank_timestamp(cls, value: Any) -> Any:
        """Treat empty timestamps as missing."""

        if isinstance(value, str) and not value.strip():
            return None
        return value


class NodesResponse(BaseModel):
    """Server list payload."""

    model_config = ConfigDict(extra="ignore")

    nodes: list[dict[str, Any]] | None = None


class FirmwareEntryPayload(BaseModel):
    """One (server, component) row of the firmware listing."""

    model_config = ConfigDict(extra="ignore")

    node: str
    namespace: str = ""
    firmware: FirmwareComponentPayload


class FirmwareSummaryPayload(BaseModel):
    """Update counters attached to the firmware listing."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    total: int = 0
    updates_available: int = Field(default=0, alias="updatesAvailable")
    critical: int = 0
    recommended: int = 0
    optional: int = 0


class FirmwareResponse(BaseModel):
    """Firmware listing payload returned by ``/api/v1/firmware``."""

    model_config = ConfigDict(extra="ignore")

    summary: FirmwareSummaryPayload | None = None
    firmware: list[dict[str, Any]] | None = None


class NamespacesResponse(BaseModel):
    """Namespace list payload."""

    model_config = ConfigDict(extra="ignore")

    namespaces: list[str] | None = None


class HealthSummaryPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    healthy: int = 0
    warning: int = 0
    critical: int = 0


class PowerSummaryPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    on: int = 0
    off: int = 0


class UpdatesSummaryPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    total: int = 0
    critical: int = 0
    recommended: int = 0
    optional: int = 0
    nodes_with_updates: int = Field(default=0, alias="nodesWithUpdates")


class DashboardStats(BaseModel):
    """Fleet-wide aggregates returned by ``/api/v1/dashboard``."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    total_nodes: int = Field(default=0, alias="totalNodes")
    health_summary: HealthSummaryPayload = Field(
        default_factory=HealthSummaryPayload, alias="healthSummary"
    )
    power_summary: PowerSummaryPayload = Field(
        default_factory=PowerSummaryPayload, alias="powerSummary"
    )
    updates_summary: UpdatesSummaryPayload = Field(
        default_factory=UpdatesSummaryPayload, alias="updatesSummary"
    )
    last_refresh: datetime | None = Field(default=None, alias="lastRefresh")
    next_refresh: datetime | None = Field(default=None, alias="nextRefresh")


class HealthEvent(BaseModel):
    """Event log entry."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = ""
    timestamp: datetime | None = None
    severity: str = ""
    message: str = ""
    node_name: str = Field(default="", alias="nodeName")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return _stringify(value)


class EventsResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    events: list[dict[str, Any]] | None = None


class UpdateTask(BaseModel):
    """Firmware job reported by a server's BMC."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    task_id: str = Field(default="", alias="taskId")
    node: str = ""
    namespace: str = ""
    task_type: str = Field(default="", alias="taskType")
    task_state: str = Field(default="", alias="taskState")
    percent_complete: int = Field(default=0, alias="percentComplete")
    message: str = ""


class TasksResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tasks: list[dict[str, Any]] | None = None


class UpdateSummaryPayload(BaseModel):
    """Pending update grouped by component type and version."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    component_type: str = Field(default="", alias="componentType")
    available_version: str = Field(default="", alias="availableVersion")
    affected_nodes: list[str] = Field(default_factory=list, alias="affectedNodes")
    node_count: int = Field(default=0, alias="nodeCount")


class UpdatesResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    updates: list[dict[str, Any]] | None = None


class ScheduleRequestPayload(BaseModel):
    """Batch job body sent to the scheduling service."""

    model_config = ConfigDict(extra="forbid")

    servers: list[str]
    components: list[str] | None = None
    mode: str


class ScheduleResponse(BaseModel):
    """Acknowledgement returned by the scheduling service."""

    model_config = ConfigDict(extra="allow")

    success: bool = False
    message: str | None = None
