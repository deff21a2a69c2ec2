"""Payment session operations exposed to the HTTP layer."""

import logging
from dataclasses import dataclass
from uuid import uuid4

import httpx

from ankwata.adapters.flutterwave_client import PaymentGateway
from ankwata.domain.confirmations import Confirmation
from ankwata.domain.errors import GatewayError, InvalidAmount, PaymentNotConfirmed
from ankwata.domain.sessions import Session, SessionState
from ankwata.services.confirmations import ConfirmationIngestor
from ankwata.services.sessions import SessionStateMachine, SessionStore

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = "ankwata_"


@dataclass
class PaymentService:
    """Creates sessions, applies confirmations and discloses winners."""

    store: SessionStore
    state_machine: SessionStateMachine
    ingestor: ConfirmationIngestor
    play_amount: int
    currency: str
    gateway: PaymentGateway | None = None

    async def create_session(
        self, amount: int | None = None, phone_number: str | None = None
    ) -> Session:
        """Validate the price, start the charge and record a pending session.

        Without a configured gateway the session is created directly, which
        leaves confirmation to the webhook or admin override paths. A missing
        or zero amount means the play price.
        """
        resolved_amount = amount or self.play_amount
        if resolved_amount != self.play_amount:
            raise InvalidAmount(resolved_amount, self.play_amount, self.currency)

        reference = new_reference()
        gateway_meta: dict[str, object] | None = None
        if self.gateway is not None:
            try:
                gateway_meta = await self.gateway.initiate_charge(
                    reference=reference,
                    amount=resolved_amount,
                    currency=self.currency,
                    phone_number=phone_number,
                )
            except httpx.HTTPError as exc:
                logger.exception(
                    "Payment initiation failed", extra={"reference": reference}
                )
                raise GatewayError("payment init error") from exc
        return self.store.create(reference, gateway_meta=gateway_meta)

    async def report_confirmation(self, payload: object) -> Session:
        """Handle a gateway webhook.

        Only the nested gateway shape is accepted. With a gateway configured
        the webhook is a notification only: the outcome is taken from the
        gateway's own record of the transaction, so a forged body cannot
        confirm a payment.
        """
        confirmation = self.ingestor.normalize_webhook(payload)
        if self.gateway is None:
            return self._apply(confirmation)
        return await self.refresh_session(confirmation.reference)

    def apply_manual_override(self, payload: object) -> Session:
        """Apply a trusted admin override.

        A missing or ``"successful"`` status confirms the session and draws
        its winner; any other status fails it.
        """
        confirmation = self.ingestor.normalize_manual(payload)
        return self._apply(confirmation)

    def get_status(self, reference: str) -> SessionState:
        """Return only the session state."""
        return self.store.get(reference).state

    def get_winner(self, reference: str) -> str:
        """Return the winner of a successful session."""
        session = self.store.get(reference)
        if session.state is not SessionState.SUCCESSFUL or session.winner is None:
            raise PaymentNotConfirmed(reference)
        return session.winner

    async def refresh_session(self, reference: str) -> Session:
        """Return the session, first asking the gateway about pending ones."""
        session = self.store.get(reference)
        if self.gateway is None or session.is_terminal:
            return session
        try:
            payload = await self.gateway.verify_by_reference(reference)
        except httpx.HTTPError as exc:
            raise GatewayError(f"Status lookup failed for {reference}") from exc
        confirmation = self.ingestor.normalize_poll(reference, payload)
        if confirmation is None:
            return session
        return self._apply(confirmation)

    def _apply(self, confirmation: Confirmation) -> Session:
        logger.info(
            "Applying confirmation",
            extra={
                "reference": confirmation.reference,
                "outcome": confirmation.outcome.value,
                "source": confirmation.source.value,
            },
        )
        return self.state_machine.apply_outcome(
            confirmation.reference, confirmation.outcome
        )


def new_reference() -> str:
    """Build a unique session reference."""
    return f"{REFERENCE_PREFIX}{uuid4().hex}"
