"""Flutterwave payment gateway client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class PaymentGateway(Protocol):
    """Interface for payment gateway interactions."""

    async def initiate_charge(
        self,
        reference: str,
        amount: int,
        currency: str,
        phone_number: str | None = None,
    ) -> dict[str, object]:
        """Start a charge and return the raw gateway response."""

    async def verify_by_reference(self, reference: str) -> dict[str, object]:
        """Look up a transaction by reference and return raw gateway data."""


@dataclass
class HttpxFlutterwaveClient(PaymentGateway):
    """HTTPX-backed Flutterwave client for mobile money charges."""

    secret_key: str
    base_url: str
    payment_type: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, secret_key: str, base_url: str, payment_type: str
    ) -> "HttpxFlutterwaveClient":
        """Create a Flutterwave client with a managed httpx session."""
        return cls(
            secret_key=secret_key,
            base_url=base_url,
            payment_type=payment_type,
            http_client=httpx.AsyncClient(),
        )

    async def initiate_charge(
        self,
        reference: str,
        amount: int,
        currency: str,
        phone_number: str | None = None,
    ) -> dict[str, object]:
        """Create a mobile money charge."""
        url = f"{self.base_url}/charges"
        payload: dict[str, object] = {
            "tx_ref": reference,
            "amount": str(amount),
            "currency": currency,
            "email": "anonymous@ankwata.local",
            "fullname": "ANKWATA Player",
            "meta": {"platform": "ankwata_web"},
        }
        if phone_number is not None:
            payload["phone_number"] = phone_number
        response = await self.http_client.post(
            url,
            params={"type": self.payment_type},
            json=payload,
            headers=self._headers(),
            timeout=15,
        )
        response.raise_for_status()
        return response.json()

    async def verify_by_reference(self, reference: str) -> dict[str, object]:
        """Fetch the transaction status for a reference."""
        url = f"{self.base_url}/transactions/verify_by_reference"
        response = await self.http_client.get(
            url,
            params={"tx_ref": reference},
            headers=self._headers(),
            timeout=15,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.secret_key}"}
