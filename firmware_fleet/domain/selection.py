"""Selection set manager for the server and component views.

A selection is a tagged union: ``ServerSelection`` holds server names and
``ComponentSelection`` holds ``server:component`` keys. Both keep keys in
insertion order and are never edited in place; every operation returns a new
selection.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Protocol

from .ids import ViewMode, normalize_view_mode


class SelectableRow(Protocol):
    """Row shape understood by the selection helpers."""

    @property
    def key(self) -> str: ...

    @property
    def has_update(self) -> bool: ...


@dataclass(frozen=True, slots=True)
class _KeySelection:
    """Ordered, duplicate-free set of selection keys."""

    keys: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Drop duplicate keys while keeping first appearance order."""

        object.__setattr__(self, "keys", tuple(dict.fromkeys(self.keys)))

    def __contains__(self, key: object) -> bool:
        return key in self.keys

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys)

    def __len__(self) -> int:
        return len(self.keys)

    def _with_keys(self, keys: Iterable[str]) -> Selection:
        return type(self)(tuple(keys))  # type: ignore[return-value]


@dataclass(frozen=True, slots=True)
class ServerSelection(_KeySelection):
    """Selection of whole servers keyed by server name."""

    @property
    def view_mode(self) -> ViewMode:
        return ViewMode.SERVERS


@dataclass(frozen=True, slots=True)
class ComponentSelection(_KeySelection):
    """Selection of individual components keyed by ``server:component``."""

    @property
    def view_mode(self) -> ViewMode:
        return ViewMode.COMPONENTS


Selection = ServerSelection | ComponentSelection


def empty_selection(view_mode: ViewMode | str) -> Selection:
    """Return an empty selection for ``view_mode``."""

    if normalize_view_mode(view_mode) is ViewMode.SERVERS:
        return ServerSelection()
    return ComponentSelection()


def selectable_keys(rows: Iterable[SelectableRow]) -> tuple[str, ...]:
    """Return keys of rows with an available update, in row order."""

    return tuple(dict.fromkeys(row.key for row in rows if row.has_update))


def toggle_one(selection: Selection, key: str) -> Selection:
    """Flip membership of ``key`` without touching other keys."""

    if key in selection:
        return selection._with_keys(k for k in selection.keys if k != key)
    return selection._with_keys((*selection.keys, key))


def all_selected(selection: Selection, rows: Iterable[SelectableRow]) -> bool:
    """Return True when every selectable visible key is selected."""

    visible = selectable_keys(rows)
    return bool(visible) and all(key in selection for key in visible)


def select_all_visible(
    selection: Selection, rows: Iterable[SelectableRow]
) -> Selection:
    """Toggle the selectable visible keys as a block.

    When all of them are already selected they are removed; otherwise they are
    added. Keys outside the visible rows are always kept.
    """

    visible = selectable_keys(rows)
    if visible and all(key in selection for key in visible):
        hidden = set(visible)
        return selection._with_keys(k for k in selection.keys if k not in hidden)
    return selection._with_keys((*selection.keys, *visible))


def clear_selection(selection: Selection) -> Selection:
    """Return an empty selection of the same view mode."""

    return selection._with_keys(())


def retain_keys(selection: Selection, allowed: Iterable[str]) -> Selection:
    """Return ``selection`` restricted to keys in ``allowed``."""

    permitted = frozenset(allowed)
    return selection._with_keys(k for k in selection.keys if k in permitted)
