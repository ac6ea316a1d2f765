"""Filter pipeline deriving visible rows from an inventory snapshot.

Both filters are pure and stable: they never reorder their input and
re-applying the same filter to its own output returns the same rows.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from .inventory import FirmwareEntry, Server


def _normalize_search(search_term: str | None) -> str:
    """Return the lowercase search needle, empty when no search applies."""

    if not search_term:
        return ""
    return str(search_term).lower()


def _matches(needle: str, *haystacks: str | None) -> bool:
    """Return True when ``needle`` occurs in any of ``haystacks``."""

    return any(needle in (value or "").lower() for value in haystacks)


def filter_servers(
    servers: Iterable[Server],
    search_term: str | None = "",
    updates_only: bool = False,
) -> list[Server]:
    """Return servers matching the search on name or model."""

    needle = _normalize_search(search_term)
    result = list(servers)
    if needle:
        result = [
            server for server in result if _matches(needle, server.name, server.model)
        ]
    if updates_only:
        result = [server for server in result if server.has_update]
    return result


def filter_components(
    entries: Iterable[FirmwareEntry],
    server_models: Mapping[str, str] | None = None,
    search_term: str | None = "",
    updates_only: bool = False,
) -> list[FirmwareEntry]:
    """Return firmware entries matching the search.

    The search covers the server name, the server model looked up through
    ``server_models``, the component name and the component type.
    """

    models = server_models or {}
    needle = _normalize_search(search_term)
    result = list(entries)
    if needle:
        result = [
            entry
            for entry in result
            if _matches(
                needle,
                entry.server,
                models.get(entry.server),
                entry.firmware.name,
                entry.firmware.component_type,
            )
        ]
    if updates_only:
        result = [entry for entry in result if entry.has_update]
    return result
