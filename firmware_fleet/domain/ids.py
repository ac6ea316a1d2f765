"""Identifiers for domain objects."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from ..const import (
    SEVERITY_CRITICAL,
    SEVERITY_OPTIONAL,
    SEVERITY_RECOMMENDED,
    VIEW_COMPONENTS,
    VIEW_SERVERS,
)

COMPONENT_KEY_SEPARATOR = ":"


class ViewMode(str, Enum):
    """Interpretation of selection keys."""

    SERVERS = VIEW_SERVERS
    COMPONENTS = VIEW_COMPONENTS


ViewModeLiteral = Literal["servers", "components"]


class Severity(str, Enum):
    """Catalog criticality of an available update."""

    CRITICAL = SEVERITY_CRITICAL
    RECOMMENDED = SEVERITY_RECOMMENDED
    OPTIONAL = SEVERITY_OPTIONAL

    @property
    def rank(self) -> int:
        """Return the ordering rank, lower is more severe."""

        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.RECOMMENDED: 1,
    Severity.OPTIONAL: 2,
}


def normalize_view_mode(view_mode: ViewMode | ViewModeLiteral | str) -> ViewMode:
    """Normalize assorted view mode inputs to ``ViewMode``."""

    try:
        return ViewMode(view_mode)
    except ValueError as err:
        raise ValueError(f"Unknown view mode: {view_mode}") from err


def normalize_severity(value: Severity | str | None) -> Severity | None:
    """Return a ``Severity`` for known labels, ``None`` otherwise."""

    if value is None or isinstance(value, Severity):
        return value
    text = str(value).strip()
    if not text:
        return None
    for severity in Severity:
        if severity.value.lower() == text.lower():
            return severity
    return None


def component_key(server: str, component_id: str) -> str:
    """Return the composite selection key for a server's component."""

    return f"{server}{COMPONENT_KEY_SEPARATOR}{component_id}"


def split_component_key(key: str) -> tuple[str, str]:
    """Split a composite key into ``(server, component_id)``.

    The server name never contains the separator, so the first one wins and
    component ids may carry their own colons.
    """

    server, sep, component_id = key.partition(COMPONENT_KEY_SEPARATOR)
    if not sep or not server or not component_id:
        raise ValueError(f"Invalid component key: {key!r}")
    return server, component_id
