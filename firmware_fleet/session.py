"""Per-page dashboard session owning snapshot, filters and selection."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from contextlib import suppress
from datetime import UTC, datetime
import logging
from typing import Any

from .api import FleetApiError, InventoryClient
from .config import FleetConfig
from .const import ALL_NAMESPACES, FETCH_ERROR_FALLBACK
from .domain.aggregate import UpdateAggregate, compute_aggregate, highest_severity
from .domain.filters import filter_components, filter_servers
from .domain.ids import Severity, ViewMode, normalize_view_mode
from .domain.inventory import (
    EMPTY_SNAPSHOT,
    FirmwareEntry,
    InventorySnapshot,
    Server,
)
from .domain.selection import (
    Selection,
    all_selected,
    empty_selection,
    retain_keys,
    select_all_visible,
    toggle_one,
)
from .notifications import NotificationQueue
from .refresh import RefreshCountdown
from .scheduler import ScheduleCoordinator, ScheduleResult, ScheduleState

_LOGGER = logging.getLogger(__name__)

Listener = Callable[[], None]


def normalize_namespace(namespace: str | None) -> str | None:
    """Map the dropdown value to a namespace scope (``None`` = all)."""

    if namespace is None:
        return None
    text = str(namespace).strip()
    if not text or text == ALL_NAMESPACES:
        return None
    return text


class DashboardSession:
    """State and operations behind one firmware dashboard page.

    The page creates one session per mount and calls ``async_shutdown`` on
    unmount. Filtering, selecting and aggregating are synchronous; fetching
    and scheduling are the only awaited operations.
    """

    def __init__(
        self,
        client: InventoryClient,
        config: FleetConfig | None = None,
        *,
        notifications: NotificationQueue | None = None,
    ) -> None:
        """Initialise an empty session bound to ``client``."""

        self._client = client
        self._config = config or FleetConfig()
        self.notifications = notifications or NotificationQueue(
            default_lifetime=self._config.notification_lifetime
        )
        self.namespace: str | None = normalize_namespace(self._config.namespace)
        self.namespaces: list[str] = []
        self.search_term = ""
        self.updates_only = False
        self._view_mode = ViewMode.SERVERS
        self._selection: Selection = empty_selection(self._view_mode)
        self._snapshot: InventorySnapshot = EMPTY_SNAPSHOT
        self.error: str | None = None
        self.loading = False
        self._generation = 0
        self._closed = False
        self._background: set[asyncio.Task[Any]] = set()
        self._listeners: list[Listener] = []
        self._countdown: RefreshCountdown | None = None
        self.scheduler = ScheduleCoordinator(
            self,
            client,
            self.notifications,
            submit_timeout=self._config.submit_timeout,
        )

    # ----------------- Observers -----------------

    def async_add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener and return its remover."""

        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    # ----------------- Read accessors -----------------

    @property
    def snapshot(self) -> InventorySnapshot:
        return self._snapshot

    @property
    def view_mode(self) -> ViewMode:
        return self._view_mode

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def selection_count(self) -> int:
        return len(self._selection)

    @property
    def namespace_options(self) -> list[str]:
        """Return the dropdown entries, "All Namespaces" first."""

        return [ALL_NAMESPACES, *self.namespaces]

    @property
    def schedule_state(self) -> ScheduleState:
        return self.scheduler.state

    def visible_rows(
        self, view_mode: ViewMode | str | None = None
    ) -> list[Server] | list[FirmwareEntry]:
        """Return the filtered rows for ``view_mode`` (default: active view)."""

        mode = self._view_mode if view_mode is None else normalize_view_mode(view_mode)
        if mode is ViewMode.SERVERS:
            return filter_servers(
                self._snapshot.servers, self.search_term, self.updates_only
            )
        return filter_components(
            self._snapshot.entries,
            self._snapshot.server_models,
            self.search_term,
            self.updates_only,
        )

    def all_visible_selected(self) -> bool:
        """Return the header checkbox state for the active view."""

        return all_selected(self._selection, self.visible_rows())

    def aggregate(self) -> UpdateAggregate:
        """Return the update count and affected servers of the selection."""

        return compute_aggregate(self._selection, self._snapshot)

    def server_detail(self, name: str) -> Server | None:
        return self._snapshot.get_server(name)

    def server_severity(self, name: str) -> Severity | None:
        server = self._snapshot.get_server(name)
        return highest_severity(server) if server is not None else None

    # ----------------- Filters & view -----------------

    def set_search(self, search_term: str | None) -> None:
        self.search_term = search_term or ""
        self._notify()

    def set_updates_only(self, updates_only: bool) -> None:
        self.updates_only = bool(updates_only)
        self._notify()

    def set_view_mode(self, view_mode: ViewMode | str) -> None:
        """Switch views; the two key spaces never share a selection."""

        mode = normalize_view_mode(view_mode)
        if mode is self._view_mode:
            return
        self._view_mode = mode
        self._selection = empty_selection(mode)
        self._notify()

    # ----------------- Selection -----------------

    def _selectable_keys(self) -> frozenset[str]:
        if self._view_mode is ViewMode.SERVERS:
            return self._snapshot.server_keys_with_update()
        return self._snapshot.entry_keys_with_update()

    def toggle_selection(self, key: str) -> Selection:
        """Flip ``key``; keys without an available update are refused."""

        if key not in self._selection and key not in self._selectable_keys():
            _LOGGER.debug("Ignoring selection of non-selectable row %s", key)
            return self._selection
        self._selection = toggle_one(self._selection, key)
        self._notify()
        return self._selection

    def select_all_visible(self) -> Selection:
        """Toggle every selectable visible row as a block."""

        self._selection = select_all_visible(self._selection, self.visible_rows())
        self._notify()
        return self._selection

    def clear_selection(self) -> None:
        self._selection = empty_selection(self._view_mode)
        self._notify()

    # ----------------- Scheduling -----------------

    def request_schedule(self) -> bool:
        return self.scheduler.request_schedule()

    def cancel_schedule(self) -> bool:
        return self.scheduler.cancel_schedule()

    async def async_confirm_schedule(self) -> ScheduleResult | None:
        return await self.scheduler.async_confirm_schedule()

    def dismiss(self, key: int) -> bool:
        return self.notifications.dismiss(key)

    # ----------------- Fetching -----------------

    async def async_refresh(self) -> bool:
        """Fetch a new snapshot for the current namespace.

        Returns True when the snapshot was replaced. Fetch errors become the
        page-level ``error``; results of superseded requests are discarded.
        """

        if self._closed:
            return False
        self._generation += 1
        generation = self._generation
        namespace = self.namespace
        self.loading = True
        try:
            firmware, servers = await asyncio.gather(
                self._client.async_list_firmware_inventory(namespace),
                self._client.async_list_servers(namespace),
            )
        except FleetApiError as err:
            if generation != self._generation or self._closed:
                _LOGGER.debug("Discarding stale fetch error for %s", namespace)
                return False
            self.error = str(err) or FETCH_ERROR_FALLBACK
            self.loading = False
            self._notify()
            return False

        if generation != self._generation or self._closed:
            _LOGGER.debug("Discarding stale inventory for namespace %s", namespace)
            return False

        self._snapshot = InventorySnapshot.build(
            namespace, servers, firmware, fetched_at=datetime.now(UTC)
        )
        self._selection = retain_keys(self._selection, self._selectable_keys())
        self.error = None
        self.loading = False
        _LOGGER.debug(
            "Inventory refreshed: namespace=%s servers=%d entries=%d",
            namespace or "<all>",
            len(self._snapshot.servers),
            len(self._snapshot.entries),
        )
        self._notify()
        return True

    def schedule_refresh(self) -> asyncio.Task[bool] | None:
        """Start a refresh in the background without waiting for it."""

        if self._closed:
            return None
        task = asyncio.create_task(self.async_refresh())
        self._background.add(task)

        def _finalise(finished: asyncio.Task[bool]) -> None:
            self._background.discard(finished)
            if finished.cancelled():
                return
            exception = finished.exception()
            if exception is not None:
                _LOGGER.error("Background refresh failed", exc_info=exception)

        task.add_done_callback(_finalise)
        return task

    async def async_set_namespace(self, namespace: str | None) -> bool:
        """Switch the namespace scope, clear the selection and refetch."""

        scope = normalize_namespace(namespace)
        if scope == self.namespace and self._snapshot is not EMPTY_SNAPSHOT:
            return False
        self.namespace = scope
        self._selection = empty_selection(self._view_mode)
        self._notify()
        return await self.async_refresh()

    async def async_load_namespaces(self) -> list[str]:
        """Load the namespace dropdown; failures leave it empty."""

        try:
            names = await self._client.async_list_namespaces()
        except FleetApiError as err:
            _LOGGER.warning("Failed to load namespaces: %s", err)
            names = []
        if not self._closed:
            self.namespaces = names
            self._notify()
        return names

    # ----------------- Lifecycle -----------------

    def start_auto_refresh(
        self, *, on_tick: Callable[[str], None] | None = None
    ) -> RefreshCountdown:
        """Start the periodic refresh countdown for this session."""

        if self._countdown is None:
            self._countdown = RefreshCountdown(
                self._config.refresh_interval, self.async_refresh, on_tick=on_tick
            )
        self._countdown.start()
        return self._countdown

    @property
    def countdown(self) -> RefreshCountdown | None:
        return self._countdown

    async def async_shutdown(self) -> None:
        """Tear down timers and background work; late results are dropped."""

        self._closed = True
        self._generation += 1
        if self._countdown is not None:
            await self._countdown.stop()
        tasks = list(self._background)
        self._background.clear()
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task
        self._listeners.clear()
