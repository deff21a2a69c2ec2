"""Models for confirmation signals."""

from dataclasses import dataclass
from enum import Enum

from pydantic import AliasChoices, BaseModel, Field

SUCCESS_STATUS = "successful"
POLL_FAILURE_STATUSES = frozenset({"failed", "cancelled"})


class Outcome(str, Enum):
    """Normalized terminal result of a confirmation signal."""

    SUCCESS = "success"
    FAILURE = "failure"


class ConfirmationSource(str, Enum):
    """Where a confirmation signal came from."""

    WEBHOOK = "webhook"
    MANUAL = "manual"
    POLL = "poll"


@dataclass(frozen=True)
class Confirmation:
    """A normalized ``(reference, outcome)`` pair."""

    reference: str
    outcome: Outcome
    source: ConfirmationSource


class WebhookData(BaseModel):
    """Nested ``data`` object of a gateway webhook."""

    reference: str = Field(
        min_length=1, validation_alias=AliasChoices("reference", "tx_ref")
    )
    status: str | None = None


class WebhookPayload(BaseModel):
    """Gateway webhook body."""

    event: str | None = None
    data: WebhookData


class ManualConfirmationPayload(BaseModel):
    """Flat admin/simulation payload."""

    reference: str = Field(
        min_length=1, validation_alias=AliasChoices("reference", "tx_ref")
    )
    status: str | None = None


class PollData(BaseModel):
    """Transaction data from a gateway verify call."""

    reference: str | None = Field(
        default=None, validation_alias=AliasChoices("reference", "tx_ref")
    )
    status: str | None = None


class PollResponse(BaseModel):
    """Gateway verify-by-reference response."""

    status: str | None = None
    message: str | None = None
    data: PollData | None = None
