"""Tests for the session state machine."""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

import pytest

from ankwata.adapters.in_memory_session_store import InMemorySessionStore
from ankwata.domain.confirmations import Outcome
from ankwata.domain.errors import EntropyUnavailable, SessionNotFound
from ankwata.domain.sessions import Session, SessionState
from ankwata.services.sessions import SessionStateMachine


class BrokenRandomNumberSource:
    def next(self) -> str:
        raise EntropyUnavailable("no entropy")


class StaleFirstReadStore(InMemorySessionStore):
    """Store whose first read returns an outdated pending snapshot."""

    def __init__(self, stale: Session | None = None) -> None:
        super().__init__()
        self.stale = stale

    def get(self, reference: str) -> Session:
        if self.stale is not None:
            stale, self.stale = self.stale, None
            return stale
        return super().get(reference)


def _assert_winner_iff_successful(session: Session) -> None:
    assert (session.winner is not None) == (session.state is SessionState.SUCCESSFUL)


def test_success_assigns_a_winner(
    session_store: InMemorySessionStore, state_machine: SessionStateMachine
) -> None:
    session_store.create("R1")

    session = state_machine.apply_outcome("R1", Outcome.SUCCESS)

    assert session.state is SessionState.SUCCESSFUL
    assert session.winner == "0123456789"
    _assert_winner_iff_successful(session)
    assert session_store.get("R1") == session


def test_failure_has_no_winner(
    session_store: InMemorySessionStore, state_machine: SessionStateMachine
) -> None:
    session_store.create("R1")

    session = state_machine.apply_outcome("R1", Outcome.FAILURE)

    assert session.state is SessionState.FAILED
    assert session.winner is None


def test_redelivered_success_keeps_original_winner(
    session_store: InMemorySessionStore,
    state_machine: SessionStateMachine,
    random_source,
) -> None:
    session_store.create("R1")

    first = state_machine.apply_outcome("R1", Outcome.SUCCESS)
    second = state_machine.apply_outcome("R1", Outcome.SUCCESS)

    assert second == first
    assert random_source.calls == 1


def test_failure_after_success_is_a_no_op(
    session_store: InMemorySessionStore, state_machine: SessionStateMachine
) -> None:
    session_store.create("R1")
    confirmed = state_machine.apply_outcome("R1", Outcome.SUCCESS)

    session = state_machine.apply_outcome("R1", Outcome.FAILURE)

    assert session.state is SessionState.SUCCESSFUL
    assert session.winner == confirmed.winner


def test_success_after_failure_draws_nothing(
    session_store: InMemorySessionStore,
    state_machine: SessionStateMachine,
    random_source,
) -> None:
    session_store.create("R1")
    state_machine.apply_outcome("R1", Outcome.FAILURE)

    session = state_machine.apply_outcome("R1", Outcome.SUCCESS)

    assert session.state is SessionState.FAILED
    assert session.winner is None
    assert random_source.calls == 0


def test_unknown_reference_is_reported(state_machine: SessionStateMachine) -> None:
    with pytest.raises(SessionNotFound):
        state_machine.apply_outcome("missing", Outcome.SUCCESS)


def test_concurrent_successes_assign_one_winner(
    session_store: InMemorySessionStore,
    state_machine: SessionStateMachine,
    random_source,
) -> None:
    session_store.create("R1")
    workers = 16
    barrier = threading.Barrier(workers)

    def confirm() -> Session:
        barrier.wait(timeout=5)
        return state_machine.apply_outcome("R1", Outcome.SUCCESS)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(lambda _i: confirm(), range(workers)))

    winners = {session.winner for session in results}
    assert random_source.calls == 1
    assert winners == {"0123456789"}
    assert all(session.state is SessionState.SUCCESSFUL for session in results)


def test_concurrent_mixed_outcomes_settle_once(
    session_store: InMemorySessionStore, state_machine: SessionStateMachine
) -> None:
    session_store.create("R1")
    outcomes = [Outcome.SUCCESS, Outcome.FAILURE] * 8
    barrier = threading.Barrier(len(outcomes))

    def confirm(outcome: Outcome) -> Session:
        barrier.wait(timeout=5)
        return state_machine.apply_outcome("R1", outcome)

    with ThreadPoolExecutor(max_workers=len(outcomes)) as pool:
        results = list(pool.map(confirm, outcomes))

    final = session_store.get("R1")
    _assert_winner_iff_successful(final)
    assert all(session == final for session in results)


def test_entropy_failure_leaves_session_pending(
    session_store: InMemorySessionStore, random_source
) -> None:
    session_store.create("R1")
    broken = SessionStateMachine(
        store=session_store, random_source=BrokenRandomNumberSource()
    )

    with pytest.raises(EntropyUnavailable):
        broken.apply_outcome("R1", Outcome.SUCCESS)

    pending = session_store.get("R1")
    assert pending.state is SessionState.PENDING
    assert pending.winner is None

    retried = SessionStateMachine(
        store=session_store, random_source=random_source
    ).apply_outcome("R1", Outcome.SUCCESS)
    assert retried.state is SessionState.SUCCESSFUL
    assert retried.winner == "0123456789"


def test_lost_race_returns_committed_session(random_source) -> None:
    store = StaleFirstReadStore()
    pending = store.create("R1")
    winner_session = store.compare_and_transition(
        "R1",
        SessionState.PENDING,
        lambda session: replace(
            session, state=SessionState.SUCCESSFUL, winner="4444444444"
        ),
    )
    store.stale = pending
    machine = SessionStateMachine(store=store, random_source=random_source)

    session = machine.apply_outcome("R1", Outcome.FAILURE)

    assert session == winner_session
    assert random_source.calls == 0
