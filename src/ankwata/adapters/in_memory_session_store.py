"""Process-local session store."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from ankwata.domain.errors import (
    DuplicateReference,
    InvalidTransition,
    SessionNotFound,
    StaleState,
)
from ankwata.domain.sessions import Session, SessionState, assert_transition
from ankwata.services.sessions import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class InMemorySessionStore(SessionStore):
    """Session store backed by a dict with one lock per reference.

    Writers for the same reference are serialized; unrelated references never
    contend. Readers take no lock and see the last committed snapshot.
    """

    _sessions: dict[str, Session]
    _locks: dict[str, threading.Lock]

    def __init__(self) -> None:
        self._sessions = {}
        self._locks = {}

    def create(
        self, reference: str, gateway_meta: dict[str, object] | None = None
    ) -> Session:
        """Insert a pending session under a new reference."""
        session = Session(
            reference=reference,
            state=SessionState.PENDING,
            created_at=datetime.now(tz=UTC),
            gateway_meta=gateway_meta,
        )
        lock = self._locks.setdefault(reference, threading.Lock())
        with lock:
            existing = self._sessions.setdefault(reference, session)
        if existing is not session:
            raise DuplicateReference(reference)
        logger.info("Session created", extra={"reference": reference})
        return session

    def get(self, reference: str) -> Session:
        """Return the committed session for a reference."""
        session = self._sessions.get(reference)
        if session is None:
            raise SessionNotFound(reference)
        return session

    def compare_and_transition(
        self,
        reference: str,
        expected_state: SessionState,
        mutate: Callable[[Session], Session],
    ) -> Session:
        """Apply ``mutate`` while holding the reference lock."""
        lock = self._locks.get(reference)
        if lock is None:
            raise SessionNotFound(reference)
        with lock:
            current = self.get(reference)
            if current.state is not expected_state:
                raise StaleState(current, expected_state.value)
            updated = mutate(current)
            _check_update(current, updated)
            self._sessions[reference] = updated
        return updated

    def list_sessions(self, limit: int) -> list[Session]:
        """Return the newest sessions first."""
        if limit < 1:
            raise ValueError("limit must be positive")
        sessions = sorted(
            list(self._sessions.values()),
            key=lambda session: session.created_at,
            reverse=True,
        )
        return sessions[:limit]


def _check_update(current: Session, updated: Session) -> None:
    if updated.reference != current.reference:
        raise InvalidTransition("Session reference is immutable")
    if updated.created_at != current.created_at:
        raise InvalidTransition("Session creation time is immutable")
    if updated.state is not current.state:
        assert_transition(current.state, updated.state)
    if current.winner is not None and updated.winner != current.winner:
        raise InvalidTransition("Session winner is write-once")
    updated.check_invariants()
