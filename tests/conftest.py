"""Shared test fixtures."""

import threading
from dataclasses import dataclass, field

import httpx
import pytest

from ankwata.adapters.flutterwave_client import PaymentGateway
from ankwata.adapters.in_memory_session_store import InMemorySessionStore
from ankwata.config import Settings
from ankwata.containers import AppContainer
from ankwata.services.confirmations import ConfirmationIngestor
from ankwata.services.payments import PaymentService
from ankwata.services.polling import PollingCoordinator
from ankwata.services.random_source import RandomNumberSource
from ankwata.services.sessions import SessionStateMachine

PENDING_VERIFY_RESPONSE: dict[str, object] = {
    "status": "success",
    "message": "Transaction fetched successfully",
    "data": {"status": "pending"},
}


@dataclass
class CountingRandomNumberSource(RandomNumberSource):
    """Random source returning fixed values and counting draws."""

    values: list[str] = field(
        default_factory=lambda: ["0123456789", "9876543210", "5555555555"]
    )
    calls: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def next(self) -> str:
        with self._lock:
            value = self.values[self.calls % len(self.values)]
            self.calls += 1
            return value


@dataclass
class FakePaymentGateway(PaymentGateway):
    """Fake gateway that records charges and replays verify responses."""

    charge_response: dict[str, object] = field(
        default_factory=lambda: {
            "status": "success",
            "message": "Charge initiated",
            "meta": {"authorization": {"mode": "callback"}},
        }
    )
    verify_responses: list[dict[str, object]] = field(default_factory=list)
    charges: list[dict[str, object]] = field(default_factory=list)
    verified: list[str] = field(default_factory=list)
    fail_charge: bool = False
    fail_verify: bool = False

    async def initiate_charge(
        self,
        reference: str,
        amount: int,
        currency: str,
        phone_number: str | None = None,
    ) -> dict[str, object]:
        if self.fail_charge:
            raise httpx.ConnectError("gateway unreachable")
        self.charges.append(
            {
                "reference": reference,
                "amount": amount,
                "currency": currency,
                "phone_number": phone_number,
            }
        )
        return self.charge_response

    async def verify_by_reference(self, reference: str) -> dict[str, object]:
        if self.fail_verify:
            raise httpx.ReadTimeout("gateway timeout")
        self.verified.append(reference)
        if self.verify_responses:
            return self.verify_responses.pop(0)
        return PENDING_VERIFY_RESPONSE


def build_test_container(
    settings: Settings,
    random_source: RandomNumberSource,
    gateway: PaymentGateway | None = None,
) -> AppContainer:
    """Wire a container with in-memory collaborators."""
    session_store = InMemorySessionStore()
    state_machine = SessionStateMachine(
        store=session_store, random_source=random_source
    )
    payment_service = PaymentService(
        store=session_store,
        state_machine=state_machine,
        ingestor=ConfirmationIngestor(),
        play_amount=settings.play_amount,
        currency=settings.currency,
        gateway=gateway,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        session_store=session_store,
        state_machine=state_machine,
        payment_service=payment_service,
        polling_coordinator=PollingCoordinator(fetch=payment_service.refresh_session),
        gateway=gateway,
        close_resources=close_resources,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        admin_token="admin-token",
        poll_interval_seconds=0.01,
        poll_timeout_seconds=0.5,
    )


@pytest.fixture
def random_source() -> CountingRandomNumberSource:
    return CountingRandomNumberSource()


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def state_machine(
    session_store: InMemorySessionStore, random_source: CountingRandomNumberSource
) -> SessionStateMachine:
    return SessionStateMachine(store=session_store, random_source=random_source)


@pytest.fixture
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def container(
    settings: Settings, random_source: CountingRandomNumberSource
) -> AppContainer:
    return build_test_container(settings, random_source)


@pytest.fixture
def gateway_container(
    settings: Settings,
    random_source: CountingRandomNumberSource,
    gateway: FakePaymentGateway,
) -> AppContainer:
    return build_test_container(settings, random_source, gateway)


@pytest.fixture
def make_container():
    return build_test_container
