"""Selection, filtering and update scheduling for a bare-metal firmware fleet."""

from __future__ import annotations

from .api import (
    FetchError,
    FleetApiError,
    InventoryClient,
    RateLimitError,
    ScheduleError,
)
from .config import FleetConfig
from .notifications import Notification, NotificationQueue
from .scheduler import ScheduleCoordinator, ScheduleRequest, ScheduleState
from .session import DashboardSession

__version__ = "1.0.0"

__all__ = [
    "DashboardSession",
    "FetchError",
    "FleetApiError",
    "FleetConfig",
    "InventoryClient",
    "Notification",
    "NotificationQueue",
    "RateLimitError",
    "ScheduleCoordinator",
    "ScheduleError",
    "ScheduleRequest",
    "ScheduleState",
    "__version__",
]
