"""Scheduling coordinator driving the confirm / submit / refresh cycle."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
import logging
from typing import Any, Protocol

from .api import InventoryClient
from .const import (
    MODE_ON_REBOOT,
    SCHEDULE_FAILURE_FMT,
    SCHEDULE_SUCCESS_FMT,
    UNKNOWN_ERROR,
)
from .domain.aggregate import UpdateAggregate, compute_aggregate
from .domain.ids import split_component_key
from .domain.inventory import InventorySnapshot
from .domain.selection import ComponentSelection, Selection, ServerSelection
from .notifications import Notification, NotificationQueue

_LOGGER = logging.getLogger(__name__)


class ScheduleState(str, Enum):
    """Lifecycle of one schedule submission."""

    IDLE = "idle"
    CONFIRM_PENDING = "confirm_pending"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ScheduleRequest:
    """Batch job sent to the scheduling service."""

    servers: tuple[str, ...]
    components: tuple[str, ...] | None = None
    mode: str = MODE_ON_REBOOT

    @classmethod
    def from_selection(cls, selection: Selection) -> ScheduleRequest:
        """Build the request for ``selection``.

        Component ids are only sent for component selections; a server
        selection schedules every pending update on the chosen servers.
        """

        match selection:
            case ServerSelection():
                return cls(servers=tuple(selection.keys))
            case ComponentSelection():
                pairs = [split_component_key(key) for key in selection]
                return cls(
                    servers=tuple(dict.fromkeys(server for server, _ in pairs)),
                    components=tuple(dict.fromkeys(comp for _, comp in pairs)),
                )
        raise TypeError(f"Unsupported selection: {selection!r}")


@dataclass(frozen=True, slots=True)
class ScheduleResult:
    """Outcome of a confirmed submission."""

    success: bool
    request: ScheduleRequest
    aggregate: UpdateAggregate
    notification: Notification
    message: str | None = None


class ScheduleHost(Protocol):
    """Session state the coordinator reads and resets."""

    @property
    def selection(self) -> Selection: ...

    @property
    def snapshot(self) -> InventorySnapshot: ...

    def clear_selection(self) -> None: ...

    def schedule_refresh(self) -> Any: ...


StateListener = Callable[[ScheduleState], None]


class ScheduleCoordinator:
    """Open the confirmation step, submit the batch job and report outcomes."""

    def __init__(
        self,
        host: ScheduleHost,
        client: InventoryClient,
        notifications: NotificationQueue,
        *,
        submit_timeout: float | None = None,
    ) -> None:
        """Initialise the coordinator for one session."""

        self._host = host
        self._client = client
        self._notifications = notifications
        self._submit_timeout = submit_timeout
        self._state = ScheduleState.IDLE
        self._dialog_open = False
        self._listeners: list[StateListener] = []
        self.last_result: ScheduleResult | None = None

    @property
    def state(self) -> ScheduleState:
        return self._state

    @property
    def dialog_open(self) -> bool:
        """Return True while the confirmation dialog is shown."""

        return self._dialog_open

    @property
    def submitting(self) -> bool:
        return self._state is ScheduleState.SUBMITTING

    @property
    def can_request(self) -> bool:
        """Return True when the schedule action is enabled."""

        return len(self._host.selection) > 0 and not self.submitting

    @property
    def can_confirm(self) -> bool:
        """Return True when the confirm action is enabled."""

        return self._dialog_open and not self.submitting

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener and return its remover."""

        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def _set_state(self, state: ScheduleState) -> None:
        if state is self._state:
            return
        _LOGGER.debug("Schedule state %s -> %s", self._state.value, state.value)
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def preview(self) -> UpdateAggregate:
        """Return the figures the confirmation dialog shows."""

        return compute_aggregate(self._host.selection, self._host.snapshot)

    def request_schedule(self) -> bool:
        """Open the confirmation step; a no-op without a selection."""

        if not self.can_request:
            _LOGGER.debug("Schedule request ignored: nothing selected or busy")
            return False
        self._dialog_open = True
        self._set_state(ScheduleState.CONFIRM_PENDING)
        return True

    def cancel_schedule(self) -> bool:
        """Close the confirmation step unless a submission is in flight."""

        if self.submitting:
            _LOGGER.debug("Cancel ignored while submitting")
            return False
        self._dialog_open = False
        self._set_state(ScheduleState.IDLE)
        return True

    async def _submit(self, request: ScheduleRequest) -> None:
        call = self._client.async_schedule_updates(
            request.servers, request.components, mode=request.mode
        )
        if self._submit_timeout is None:
            await call
            return
        async with asyncio.timeout(self._submit_timeout):
            await call

    async def async_confirm_schedule(self) -> ScheduleResult | None:
        """Submit the batch job for the current selection.

        Returns ``None`` when confirming is not possible (dialog closed,
        already submitting or the selection emptied meanwhile).
        """

        if not self.can_confirm:
            _LOGGER.debug(
                "Confirm ignored: dialog_open=%s state=%s",
                self._dialog_open,
                self._state.value,
            )
            return None

        selection = self._host.selection
        if not selection:
            self.cancel_schedule()
            return None

        # Figures are frozen before sending so the refresh cannot change them.
        aggregate = compute_aggregate(selection, self._host.snapshot)
        request = ScheduleRequest.from_selection(selection)
        self._set_state(ScheduleState.SUBMITTING)

        try:
            await self._submit(request)
        except asyncio.CancelledError:
            self._set_state(
                ScheduleState.CONFIRM_PENDING
                if self._dialog_open
                else ScheduleState.IDLE
            )
            raise
        except TimeoutError:
            return self._fail(request, aggregate, "Request timed out")
        except Exception as err:  # noqa: BLE001 - reported as a notification
            return self._fail(request, aggregate, str(err) or UNKNOWN_ERROR)

        notification = self._notifications.success(
            SCHEDULE_SUCCESS_FMT.format(
                updates=aggregate.update_count, servers=aggregate.server_count
            )
        )
        _LOGGER.info(
            "Scheduled %d updates on %d servers (%s)",
            aggregate.update_count,
            aggregate.server_count,
            request.mode,
        )
        self._host.clear_selection()
        self._dialog_open = False
        self._set_state(ScheduleState.SUCCESS)
        self._host.schedule_refresh()
        self._set_state(ScheduleState.IDLE)
        self.last_result = ScheduleResult(
            success=True,
            request=request,
            aggregate=aggregate,
            notification=notification,
        )
        return self.last_result

    def _fail(
        self, request: ScheduleRequest, aggregate: UpdateAggregate, message: str
    ) -> ScheduleResult:
        """Report a failed submission; selection and dialog stay as they were."""

        _LOGGER.debug("Schedule submission failed: %s", message)
        notification = self._notifications.danger(
            SCHEDULE_FAILURE_FMT.format(message=message)
        )
        self._set_state(ScheduleState.FAILED)
        self._set_state(ScheduleState.IDLE)
        self.last_result = ScheduleResult(
            success=False,
            request=request,
            aggregate=aggregate,
            notification=notification,
            message=message,
        )
        return self.last_result
