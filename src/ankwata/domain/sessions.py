"""Domain models for payment sessions."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from ankwata.domain.errors import InvalidTransition


class SessionState(str, Enum):
    """Lifecycle states of a payment session."""

    PENDING = "pending"
    SUCCESSFUL = "successful"
    FAILED = "failed"


ALLOWED_TRANSITIONS: dict[SessionState, set[SessionState]] = {
    SessionState.PENDING: {SessionState.SUCCESSFUL, SessionState.FAILED},
    SessionState.SUCCESSFUL: set(),
    SessionState.FAILED: set(),
}

TERMINAL_STATES = frozenset({SessionState.SUCCESSFUL, SessionState.FAILED})


def assert_transition(old: SessionState, new: SessionState) -> None:
    """Raise when ``old -> new`` is not an edge of the state graph."""
    if new not in ALLOWED_TRANSITIONS.get(old, set()):
        raise InvalidTransition(
            f"Illegal session transition: {old.value} -> {new.value}"
        )


@dataclass(frozen=True)
class Session:
    """A single pay-to-play attempt.

    Instances are immutable; the store replaces the whole snapshot on every
    transition so state and winner are always observed together.
    """

    reference: str
    state: SessionState
    created_at: datetime
    winner: str | None = None
    gateway_meta: dict[str, object] | None = None

    @property
    def is_terminal(self) -> bool:
        """Return true once the session can no longer change."""
        return self.state in TERMINAL_STATES

    def check_invariants(self) -> None:
        """Raise if the winner does not match the state."""
        has_winner = self.winner is not None
        if has_winner != (self.state is SessionState.SUCCESSFUL):
            raise InvalidTransition(
                f"Session {self.reference} is {self.state.value} "
                f"with winner={self.winner!r}"
            )
