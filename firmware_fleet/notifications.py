"""Queue of user-visible outcome notifications."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import itertools
import logging
import time

from .const import VARIANT_DANGER, VARIANT_INFO, VARIANT_SUCCESS

_LOGGER = logging.getLogger(__name__)

Listener = Callable[[tuple["Notification", ...]], None]


@dataclass(frozen=True, slots=True)
class Notification:
    """A dismissible toast record."""

    key: int
    variant: str
    title: str
    created_at: float
    lifetime: float | None = None

    def expired(self, now: float) -> bool:
        """Return True once the display lifetime has elapsed."""

        return self.lifetime is not None and now - self.created_at >= self.lifetime


class NotificationQueue:
    """Append-only notification list with subscription and dismissal."""

    def __init__(
        self,
        *,
        default_lifetime: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialise an empty queue."""

        self._items: tuple[Notification, ...] = ()
        self._keys = itertools.count()
        self._listeners: list[Listener] = []
        self._default_lifetime = default_lifetime
        self._clock = clock

    @property
    def items(self) -> tuple[Notification, ...]:
        """Return the queued notifications, oldest first."""

        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self) -> None:
        snapshot = self._items
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:  # noqa: BLE001 - a listener must not break the queue
                _LOGGER.exception("Notification listener raised")

    def push(
        self, variant: str, title: str, *, lifetime: float | None = None
    ) -> Notification:
        """Append a notification and notify subscribers."""

        notification = Notification(
            key=next(self._keys),
            variant=variant,
            title=title,
            created_at=self._clock(),
            lifetime=self._default_lifetime if lifetime is None else lifetime,
        )
        self._items = (*self._items, notification)
        _LOGGER.debug("Notification %s queued: %s", notification.key, title)
        self._publish()
        return notification

    def success(self, title: str) -> Notification:
        return self.push(VARIANT_SUCCESS, title)

    def danger(self, title: str) -> Notification:
        return self.push(VARIANT_DANGER, title)

    def info(self, title: str) -> Notification:
        return self.push(VARIANT_INFO, title)

    def dismiss(self, key: int) -> bool:
        """Remove the notification ``key``; return False when unknown."""

        remaining = tuple(item for item in self._items if item.key != key)
        if len(remaining) == len(self._items):
            return False
        self._items = remaining
        self._publish()
        return True

    def expire(self, now: float | None = None) -> list[Notification]:
        """Drop notifications whose lifetime has elapsed and return them."""

        current = self._clock() if now is None else now
        expired = [item for item in self._items if item.expired(current)]
        if expired:
            self._items = tuple(
                item for item in self._items if not item.expired(current)
            )
            self._publish()
        return expired

    def clear(self) -> None:
        if self._items:
            self._items = ()
            self._publish()
