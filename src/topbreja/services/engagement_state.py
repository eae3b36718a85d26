"""State machine for vote and favorite records.

A record for a (user, beer) pair is ``absent`` until the first toggle, then
moves between ``active`` and ``inactive``; it never returns to ``absent``.
The reducer here is pure so clients and services share one definition of the
allowed transitions.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from topbreja.core.errors import InvalidTransition

__all__ = [
    "EngagementAction",
    "EngagementState",
    "OptimisticToggle",
    "next_state",
    "state_from_flags",
]


class EngagementState(StrEnum):
    """Lifecycle of a single engagement record."""

    ABSENT = "absent"
    ACTIVE = "active"
    INACTIVE = "inactive"


class EngagementAction(StrEnum):
    """Requests that move a record between states."""

    TOGGLE = "toggle"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"


_TRANSITIONS: dict[tuple[EngagementState, EngagementAction], EngagementState] = {
    (EngagementState.ABSENT, EngagementAction.TOGGLE): EngagementState.ACTIVE,
    (EngagementState.ABSENT, EngagementAction.ACTIVATE): EngagementState.ACTIVE,
    (EngagementState.ACTIVE, EngagementAction.TOGGLE): EngagementState.INACTIVE,
    (EngagementState.ACTIVE, EngagementAction.DEACTIVATE): EngagementState.INACTIVE,
    (EngagementState.INACTIVE, EngagementAction.TOGGLE): EngagementState.ACTIVE,
    (EngagementState.INACTIVE, EngagementAction.ACTIVATE): EngagementState.ACTIVE,
}


def next_state(state: EngagementState, action: EngagementAction) -> EngagementState:
    """Return the state reached by applying ``action`` to ``state``.

    Raises:
        InvalidTransition: For requests with no defined transition, such as
            deactivating a record that does not exist or activating one that
            is already active.
    """
    try:
        return _TRANSITIONS[(state, action)]
    except KeyError as err:
        raise InvalidTransition(f"Cannot {action.value} a record that is {state.value}") from err


def state_from_flags(*, exists: bool, status: bool = True, deletado: bool = False) -> EngagementState:
    """Map stored ``status``/``deletado`` flags onto an engagement state."""
    if not exists:
        return EngagementState.ABSENT
    if status and not deletado:
        return EngagementState.ACTIVE
    return EngagementState.INACTIVE


@dataclass
class OptimisticToggle:
    """Client-side view of a toggle button with optimistic updates.

    ``begin`` flips the displayed state before the server answers; ``commit``
    adopts the server's state and ``rollback`` restores the previous one.
    """

    state: EngagementState = EngagementState.ABSENT
    _previous: EngagementState | None = field(default=None, repr=False)

    @property
    def pending(self) -> bool:
        return self._previous is not None

    @property
    def active(self) -> bool:
        return self.state is EngagementState.ACTIVE

    def begin(self) -> EngagementState:
        if self.pending:
            raise InvalidTransition("A toggle is already in flight")
        self._previous = self.state
        self.state = next_state(self.state, EngagementAction.TOGGLE)
        return self.state

    def commit(self, server_state: EngagementState | None = None) -> EngagementState:
        if server_state is not None:
            self.state = server_state
        self._previous = None
        return self.state

    def rollback(self) -> EngagementState:
        if self._previous is not None:
            self.state = self._previous
        self._previous = None
        return self.state
