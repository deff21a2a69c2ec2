"""Error taxonomy for lottery sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ankwata.domain.sessions import Session


class LotteryError(Exception):
    """Base class for lottery errors."""


class DuplicateReference(LotteryError):
    """A session already exists under the reference."""

    def __init__(self, reference: str) -> None:
        super().__init__(f"Session already exists: {reference}")
        self.reference = reference


class SessionNotFound(LotteryError):
    """No session exists under the reference."""

    def __init__(self, reference: str) -> None:
        super().__init__(f"Session not found: {reference}")
        self.reference = reference


class StaleState(LotteryError):
    """The session moved on before a conditional update could apply."""

    def __init__(self, current: Session, expected: str) -> None:
        super().__init__(
            f"Session {current.reference} is {current.state.value}, "
            f"expected {expected}"
        )
        self.current = current


class InvalidTransition(LotteryError):
    """A state change outside the transition graph was attempted."""


class MalformedConfirmation(LotteryError):
    """A confirmation payload could not be normalized."""


class EntropyUnavailable(LotteryError):
    """The secure random source could not produce a value."""


class InvalidAmount(LotteryError):
    """The requested amount does not match the play price."""

    def __init__(self, amount: int, expected: int, currency: str) -> None:
        super().__init__(
            f"Invalid amount {amount}. Server enforces {currency} {expected}"
        )
        self.amount = amount
        self.expected = expected


class PaymentNotConfirmed(LotteryError):
    """The session has not reached a successful state."""

    def __init__(self, reference: str) -> None:
        super().__init__(f"Payment not confirmed: {reference}")
        self.reference = reference


class GatewayError(LotteryError):
    """The payment gateway call failed."""
