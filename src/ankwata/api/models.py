"""Pydantic models for the payment API."""

from pydantic import AliasChoices, BaseModel, Field


class CreatePaymentRequest(BaseModel):
    """Body of a create-payment call."""

    amount: int | None = None
    phone_number: str | None = Field(
        default=None, validation_alias=AliasChoices("phone_number", "phonenumber")
    )


class SimulateSuccessRequest(BaseModel):
    """Body of an admin simulate-success call."""

    tx_ref: str = Field(
        min_length=1, validation_alias=AliasChoices("tx_ref", "reference")
    )
    status: str | None = None
