"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from ankwata.adapters.flutterwave_client import HttpxFlutterwaveClient, PaymentGateway
from ankwata.adapters.in_memory_session_store import InMemorySessionStore
from ankwata.config import Settings, resolve_gateway_secret
from ankwata.services.confirmations import ConfirmationIngestor
from ankwata.services.payments import PaymentService
from ankwata.services.polling import PollingCoordinator
from ankwata.services.random_source import SecretsRandomNumberSource
from ankwata.services.sessions import SessionStateMachine, SessionStore


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session_store: SessionStore
    state_machine: SessionStateMachine
    payment_service: PaymentService
    polling_coordinator: PollingCoordinator
    gateway: PaymentGateway | None
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    session_store = InMemorySessionStore()
    state_machine = SessionStateMachine(
        store=session_store,
        random_source=SecretsRandomNumberSource(),
    )
    gateway: HttpxFlutterwaveClient | None = None
    secret_key = resolve_gateway_secret(resolved_settings.flutterwave_secret_key)
    if secret_key is not None:
        gateway = HttpxFlutterwaveClient.create(
            secret_key=secret_key,
            base_url=resolved_settings.flutterwave_base_url,
            payment_type=resolved_settings.payment_type,
        )
    payment_service = PaymentService(
        store=session_store,
        state_machine=state_machine,
        ingestor=ConfirmationIngestor(),
        play_amount=resolved_settings.play_amount,
        currency=resolved_settings.currency,
        gateway=gateway,
    )
    polling_coordinator = PollingCoordinator(fetch=payment_service.refresh_session)

    async def close_resources() -> None:
        if gateway is not None:
            await gateway.close()

    return AppContainer(
        settings=resolved_settings,
        session_store=session_store,
        state_machine=state_machine,
        payment_service=payment_service,
        polling_coordinator=polling_coordinator,
        gateway=gateway,
        close_resources=close_resources,
    )
