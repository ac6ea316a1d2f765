"""Domain-layer primitives for the firmware fleet dashboard."""

from .aggregate import (
    UpdateAggregate,
    UpdateSummary,
    compute_affected_servers,
    compute_aggregate,
    compute_update_count,
    highest_severity,
    summarize_updates,
)
from .filters import filter_components, filter_servers
from .ids import (
    Severity,
    ViewMode,
    component_key,
    normalize_severity,
    normalize_view_mode,
    split_component_key,
)
from .inventory import (
    EMPTY_SNAPSHOT,
    FirmwareComponent,
    FirmwareEntry,
    FirmwareInventory,
    InventorySnapshot,
    InventorySummary,
    Server,
    entries_from_servers,
)
from .selection import (
    ComponentSelection,
    Selection,
    ServerSelection,
    all_selected,
    clear_selection,
    empty_selection,
    retain_keys,
    select_all_visible,
    selectable_keys,
    toggle_one,
)

__all__ = [
    "EMPTY_SNAPSHOT",
    "ComponentSelection",
    "FirmwareComponent",
    "FirmwareEntry",
    "FirmwareInventory",
    "InventorySnapshot",
    "InventorySummary",
    "Selection",
    "Server",
    "ServerSelection",
    "Severity",
    "UpdateAggregate",
    "UpdateSummary",
    "ViewMode",
    "all_selected",
    "clear_selection",
    "component_key",
    "compute_affected_servers",
    "compute_aggregate",
    "compute_update_count",
    "empty_selection",
    "entries_from_servers",
    "filter_components",
    "filter_servers",
    "highest_severity",
    "normalize_severity",
    "normalize_view_mode",
    "retain_keys",
    "select_all_visible",
    "selectable_keys",
    "split_component_key",
    "summarize_updates",
    "toggle_one",
]
