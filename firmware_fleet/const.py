"""Constants for the firmware fleet dashboard."""

from __future__ import annotations

from typing import Final

# HTTP base & paths
API_BASE: Final = (
    "/api/proxy/plugin/openshift-baremetal-insights-plugin/baremetal-insights"
)
NODES_PATH: Final = "/api/v1/nodes"
NODE_FIRMWARE_PATH_FMT: Final = "/api/v1/nodes/{name}/firmware"
FIRMWARE_PATH: Final = "/api/v1/firmware"
NAMESPACES_PATH: Final = "/api/v1/namespaces"
DASHBOARD_PATH: Final = "/api/v1/dashboard"
EVENTS_PATH: Final = "/api/v1/events"
TASKS_PATH: Final = "/api/v1/tasks"
UPDATES_PATH: Final = "/api/v1/updates"
SCHEDULE_PATH: Final = "/api/v1/updates/schedule"

USER_AGENT: Final = "firmware-fleet/1.0"

# Deferred-apply mode: staged and applied at the next reboot
MODE_ON_REBOOT: Final = "OnReboot"

# View modes
VIEW_SERVERS: Final = "servers"
VIEW_COMPONENTS: Final = "components"

# Namespace dropdown sentinel
ALL_NAMESPACES: Final = "All Namespaces"

# Notification variants
VARIANT_SUCCESS: Final = "success"
VARIANT_DANGER: Final = "danger"
VARIANT_INFO: Final = "info"

# Severity labels, highest first
SEVERITY_CRITICAL: Final = "Critical"
SEVERITY_RECOMMENDED: Final = "Recommended"
SEVERITY_OPTIONAL: Final = "Optional"

# Timing (seconds)
DEFAULT_REFRESH_INTERVAL: Final = 1800  # backend rescans every 30 minutes
MIN_REFRESH_INTERVAL: Final = 30
COUNTDOWN_TICK: Final = 1.0
DEFAULT_NOTIFICATION_LIFETIME: Final = 8.0
DEFAULT_REQUEST_TIMEOUT: Final = 25

# Environment variables read by FleetConfig.from_env
ENV_PREFIX: Final = "FIRMWARE_FLEET_"

# Confirmation / notification texts
CONFIRM_TEXT_FMT: Final = "{updates} updates on {servers} servers"
SCHEDULE_SUCCESS_FMT: Final = (
    "Successfully scheduled {updates} updates on {servers} servers"
)
SCHEDULE_FAILURE_FMT: Final = "Failed to schedule updates: {message}"
UNKNOWN_ERROR: Final = "Unknown error"
FETCH_ERROR_FALLBACK: Final = "Failed to fetch data"
