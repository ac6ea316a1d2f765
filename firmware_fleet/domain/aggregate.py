"""Aggregate the active selection into update figures."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ..const import CONFIRM_TEXT_FMT
from .ids import Severity, split_component_key
from .inventory import InventorySnapshot, Server
from .selection import ComponentSelection, Selection, ServerSelection


@dataclass(frozen=True, slots=True)
class UpdateAggregate:
    """Figures shown in the confirmation dialog."""

    update_count: int
    affected_servers: tuple[str, ...]
    selection_count: int

    @property
    def server_count(self) -> int:
        """Return the number of distinct affected servers."""

        return len(self.affected_servers)

    @property
    def confirm_text(self) -> str:
        """Return the ``"N updates on M servers"`` confirmation line."""

        return CONFIRM_TEXT_FMT.format(
            updates=self.update_count, servers=self.server_count
        )


@dataclass(frozen=True, slots=True)
class UpdateSummary:
    """Servers sharing one pending component update."""

    component_type: str
    available_version: str
    affected_servers: tuple[str, ...]

    @property
    def server_count(self) -> int:
        return len(self.affected_servers)


def compute_update_count(selection: Selection, snapshot: InventorySnapshot) -> int:
    """Return the number of updates covered by ``selection``.

    Server selections sum each server's pending count; servers missing from
    the snapshot count as zero. Component selections count one update per key.
    """

    match selection:
        case ServerSelection():
            total = 0
            for name in selection:
                server = snapshot.get_server(name)
                if server is not None:
                    total += server.updates_available
            return total
        case ComponentSelection():
            return len(selection)
    raise TypeError(f"Unsupported selection: {selection!r}")


def compute_affected_servers(selection: Selection) -> list[str]:
    """Return the servers touched by ``selection`` in first-appearance order."""

    match selection:
        case ServerSelection():
            return list(selection.keys)
        case ComponentSelection():
            servers = (split_component_key(key)[0] for key in selection)
            return list(dict.fromkeys(servers))
    raise TypeError(f"Unsupported selection: {selection!r}")


def compute_aggregate(
    selection: Selection, snapshot: InventorySnapshot
) -> UpdateAggregate:
    """Bundle the update count and affected servers for ``selection``."""

    return UpdateAggregate(
        update_count=compute_update_count(selection, snapshot),
        affected_servers=tuple(compute_affected_servers(selection)),
        selection_count=len(selection),
    )


def highest_severity(server: Server) -> Severity | None:
    """Return the most severe pending update on ``server``."""

    severities = [
        fw.severity
        for fw in server.firmware
        if fw.available_version and fw.severity is not None
    ]
    if not severities:
        return None
    return min(severities, key=lambda severity: severity.rank)


def summarize_updates(servers: Iterable[Server]) -> list[UpdateSummary]:
    """Group pending updates by component type and available version."""

    grouped: dict[tuple[str, str], list[str]] = {}
    for server in servers:
        for fw in server.firmware:
            if not fw.has_update:
                continue
            key = (fw.component_type, fw.available_version or "")
            grouped.setdefault(key, []).append(server.name)
    return [
        UpdateSummary(
            component_type=component_type,
            available_version=version,
            affected_servers=tuple(names),
        )
        for (component_type, version), names in grouped.items()
    ]
