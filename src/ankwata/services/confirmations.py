"""Normalization of external confirmation signals."""

import logging
from dataclasses import dataclass
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from ankwata.domain.confirmations import (
    POLL_FAILURE_STATUSES,
    SUCCESS_STATUS,
    Confirmation,
    ConfirmationSource,
    ManualConfirmationPayload,
    Outcome,
    PollResponse,
    WebhookPayload,
)
from ankwata.domain.errors import MalformedConfirmation

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class ConfirmationIngestor:
    """Turns webhook, manual and poll payloads into confirmations.

    Each shape has its own entry point so that callers decide which sources
    they trust; there is no shape sniffing.
    """

    def normalize_webhook(self, payload: object) -> Confirmation:
        """Normalize a gateway webhook; unknown statuses count as failure.

        The reference is read from ``data`` only. A flat ``tx_ref`` beside a
        ``data`` object is ignored.
        """
        parsed = _parse(WebhookPayload, payload, ConfirmationSource.WEBHOOK)
        outcome = (
            Outcome.SUCCESS
            if parsed.data.status == SUCCESS_STATUS
            else Outcome.FAILURE
        )
        return Confirmation(
            reference=parsed.data.reference,
            outcome=outcome,
            source=ConfirmationSource.WEBHOOK,
        )

    def normalize_manual(self, payload: object) -> Confirmation:
        """Normalize an admin override; a missing status means success."""
        parsed = _parse(ManualConfirmationPayload, payload, ConfirmationSource.MANUAL)
        if parsed.status is None or parsed.status == SUCCESS_STATUS:
            outcome = Outcome.SUCCESS
        else:
            outcome = Outcome.FAILURE
        return Confirmation(
            reference=parsed.reference,
            outcome=outcome,
            source=ConfirmationSource.MANUAL,
        )

    def normalize_poll(self, reference: str, payload: object) -> Confirmation | None:
        """Normalize a gateway status lookup.

        Returns None while the gateway still reports a non-terminal status.
        """
        if not reference:
            raise MalformedConfirmation("Poll response without reference")
        parsed = _parse(PollResponse, payload, ConfirmationSource.POLL)
        if parsed.data is None:
            return None
        if parsed.data.reference is not None and parsed.data.reference != reference:
            logger.warning(
                "Poll response reference mismatch",
                extra={"reference": reference, "reported": parsed.data.reference},
            )
            raise MalformedConfirmation(
                f"Poll response for {parsed.data.reference}, expected {reference}"
            )
        status = parsed.data.status
        if status == SUCCESS_STATUS:
            outcome = Outcome.SUCCESS
        elif status in POLL_FAILURE_STATUSES:
            outcome = Outcome.FAILURE
        else:
            return None
        return Confirmation(
            reference=reference, outcome=outcome, source=ConfirmationSource.POLL
        )


def _parse(
    model: type[ModelT], payload: object, source: ConfirmationSource
) -> ModelT:
    """Validate a payload, mapping validation errors to MalformedConfirmation."""
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        logger.warning(
            "Rejected malformed confirmation",
            extra={"source": source.value, "errors": exc.error_count()},
        )
        raise MalformedConfirmation(
            f"Malformed {source.value} confirmation: missing or invalid reference"
        ) from exc
