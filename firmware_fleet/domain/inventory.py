"""Domain inventory models."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType

from .ids import Severity, component_key


@dataclass(frozen=True, slots=True)
class FirmwareComponent:
    """A single firmware component installed on a server."""

    id: str
    name: str
    component_type: str
    current_version: str
    available_version: str | None = None
    updateable: bool = False
    severity: Severity | None = None

    @property
    def has_update(self) -> bool:
        """Return True when the catalog offers a version for this component."""

        return bool(self.available_version)


@dataclass(frozen=True, slots=True)
class Server:
    """A discovered bare-metal server and its firmware."""

    name: str
    namespace: str = ""
    model: str = ""
    manufacturer: str = ""
    service_tag: str = ""
    bmc_address: str = ""
    power_state: str = ""
    health: str = ""
    status: str = ""
    firmware_count: int = 0
    updates_available: int = 0
    last_scanned: datetime | None = None
    firmware: tuple[FirmwareComponent, ...] = ()

    @property
    def key(self) -> str:
        """Return the server-view selection key."""

        return self.name

    @property
    def has_update(self) -> bool:
        """Return True when the server is selectable for updates."""

        return self.updates_available > 0

    def pending_components(self) -> tuple[FirmwareComponent, ...]:
        """Return the components with an available update."""

        return tuple(fw for fw in self.firmware if fw.has_update)


@dataclass(frozen=True, slots=True)
class FirmwareEntry:
    """Denormalized (server, component) pair for the component view."""

    server: str
    namespace: str
    firmware: FirmwareComponent

    @property
    def key(self) -> str:
        """Return the component-view selection key."""

        return component_key(self.server, self.firmware.id)

    @property
    def has_update(self) -> bool:
        """Return True when the component has an available update."""

        return self.firmware.has_update


@dataclass(frozen=True, slots=True)
class InventorySummary:
    """Update counters shown above the firmware tables."""

    total: int = 0
    updates_available: int = 0
    critical: int = 0
    recommended: int = 0
    optional: int = 0

    @classmethod
    def from_entries(cls, entries: Iterable[FirmwareEntry]) -> InventorySummary:
        """Compute the summary from firmware entries."""

        total = updates = critical = recommended = optional = 0
        for entry in entries:
            total += 1
            if not entry.has_update:
                continue
            updates += 1
            severity = entry.firmware.severity
            if severity is Severity.CRITICAL:
                critical += 1
            elif severity is Severity.RECOMMENDED:
                recommended += 1
            elif severity is Severity.OPTIONAL:
                optional += 1
        return cls(
            total=total,
            updates_available=updates,
            critical=critical,
            recommended=recommended,
            optional=optional,
        )


@dataclass(frozen=True, slots=True)
class FirmwareInventory:
    """Firmware listing returned by the inventory service."""

    summary: InventorySummary
    entries: tuple[FirmwareEntry, ...] = ()


def entries_from_servers(servers: Iterable[Server]) -> tuple[FirmwareEntry, ...]:
    """Project embedded server firmware into component-view entries."""

    return tuple(
        FirmwareEntry(server=server.name, namespace=server.namespace, firmware=fw)
        for server in servers
        for fw in server.firmware
    )


@dataclass(frozen=True, slots=True)
class InventorySnapshot:
    """Immutable inventory for one namespace scope, replaced on every fetch."""

    namespace: str | None
    servers: tuple[Server, ...] = ()
    entries: tuple[FirmwareEntry, ...] = ()
    summary: InventorySummary = field(default_factory=InventorySummary)
    fetched_at: datetime | None = None
    _by_name: Mapping[str, Server] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Freeze the sequences and index servers by name."""

        object.__setattr__(self, "servers", tuple(self.servers))
        object.__setattr__(self, "entries", tuple(self.entries))
        object.__setattr__(
            self,
            "_by_name",
            MappingProxyType({server.name: server for server in self.servers}),
        )

    @classmethod
    def build(
        cls,
        namespace: str | None,
        servers: Iterable[Server],
        firmware: FirmwareInventory | None = None,
        *,
        fetched_at: datetime | None = None,
    ) -> InventorySnapshot:
        """Assemble a snapshot, deriving entries from servers when absent."""

        server_tuple = tuple(servers)
        if firmware is not None and firmware.entries:
            entries = firmware.entries
            summary = firmware.summary
        else:
            entries = entries_from_servers(server_tuple)
            summary = (
                firmware.summary
                if firmware is not None and firmware.summary.total
                else InventorySummary.from_entries(entries)
            )
        return cls(
            namespace=namespace,
            servers=server_tuple,
            entries=entries,
            summary=summary,
            fetched_at=fetched_at,
        )

    @property
    def server_models(self) -> Mapping[str, str]:
        """Return a read-only server name to model mapping."""

        return MappingProxyType(
            {server.name: server.model for server in self.servers}
        )

    def get_server(self, name: str) -> Server | None:
        """Return the server called ``name`` when present."""

        return self._by_name.get(name)

    def entry_keys_with_update(self) -> frozenset[str]:
        """Return component keys that currently have an available update."""

        return frozenset(entry.key for entry in self.entries if entry.has_update)

    def server_keys_with_update(self) -> frozenset[str]:
        """Return server keys that currently have updates available."""

        return frozenset(server.key for server in self.servers if server.has_update)


EMPTY_SNAPSHOT = InventorySnapshot(namespace=None)
