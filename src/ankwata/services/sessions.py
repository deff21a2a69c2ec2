"""Session state machine for payment confirmations."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Protocol

from ankwata.domain.confirmations import Outcome
from ankwata.domain.errors import StaleState
from ankwata.domain.sessions import Session, SessionState
from ankwata.services.random_source import RandomNumberSource

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    """Storage interface for payment sessions."""

    def create(
        self, reference: str, gateway_meta: dict[str, object] | None = None
    ) -> Session:
        """Insert a new pending session, failing on duplicate references."""

    def get(self, reference: str) -> Session:
        """Return a session by reference or raise ``SessionNotFound``."""

    def compare_and_transition(
        self,
        reference: str,
        expected_state: SessionState,
        mutate: Callable[[Session], Session],
    ) -> Session:
        """Atomically apply ``mutate`` if the session is in ``expected_state``.

        Raises ``StaleState`` without applying anything when the state differs.
        """

    def list_sessions(self, limit: int) -> list[Session]:
        """Return the most recently created sessions."""


@dataclass
class SessionStateMachine:
    """Applies confirmation outcomes to sessions exactly once."""

    store: SessionStore
    random_source: RandomNumberSource

    def apply_outcome(self, reference: str, outcome: Outcome) -> Session:
        """Move a pending session to its terminal state.

        Redelivered or racing confirmations return the already-terminal
        session unchanged.
        """
        session = self.store.get(reference)
        if session.is_terminal:
            logger.debug(
                "Ignoring confirmation for terminal session",
                extra={"reference": reference, "state": session.state.value},
            )
            return session

        try:
            if outcome is Outcome.SUCCESS:
                updated = self.store.compare_and_transition(
                    reference, SessionState.PENDING, self._assign_winner
                )
                logger.info("Winner assigned", extra={"reference": reference})
            else:
                updated = self.store.compare_and_transition(
                    reference, SessionState.PENDING, _mark_failed
                )
                logger.info("Payment failed", extra={"reference": reference})
        except StaleState:
            # Another confirmation won the race; the session is terminal now.
            return self.store.get(reference)
        return updated

    def _assign_winner(self, session: Session) -> Session:
        return replace(
            session,
            state=SessionState.SUCCESSFUL,
            winner=self.random_source.next(),
        )


def _mark_failed(session: Session) -> Session:
    return replace(session, state=SessionState.FAILED)
