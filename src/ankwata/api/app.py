"""FastAPI application factory."""

import hmac
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, FastAPI, Header, HTTPException, Request, status

from ankwata.api.admin import router as admin_router
from ankwata.api.models import CreatePaymentRequest
from ankwata.app_logging import configure_logging
from ankwata.containers import AppContainer
from ankwata.domain.errors import (
    DuplicateReference,
    EntropyUnavailable,
    GatewayError,
    InvalidAmount,
    MalformedConfirmation,
    PaymentNotConfirmed,
    SessionNotFound,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/api/create-payment")
    async def create_payment(
        request: Request, body: CreatePaymentRequest | None = None
    ) -> dict[str, object]:
        """Start a paid play and return its reference."""
        state_container: AppContainer = request.app.state.container
        payment_service = state_container.payment_service
        amount = body.amount if body else None
        phone_number = body.phone_number if body else None
        try:
            session = await payment_service.create_session(
                amount=amount, phone_number=phone_number
            )
        except InvalidAmount as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
        except GatewayError as exc:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
            ) from exc
        except DuplicateReference as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail=str(exc)
            ) from exc

        if session.gateway_meta is None:
            return {
                "tx_ref": session.reference,
                "message": "demo: payment initiated (no gateway key configured)",
                "payment_instructions": None,
            }
        return {
            "tx_ref": session.reference,
            "message": "payment initiated",
            "payment_instructions": session.gateway_meta.get("meta"),
        }

    @app.get("/api/check-payment")
    async def check_payment(tx_ref: str, request: Request) -> dict[str, object]:
        """Return the current state of a session."""
        state_container: AppContainer = request.app.state.container
        try:
            session_state = state_container.payment_service.get_status(tx_ref)
        except SessionNotFound as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="not found"
            ) from exc
        return {"ok": True, "status": session_state.value}

    @app.get("/api/await-payment")
    async def await_payment(
        tx_ref: str, request: Request, timeout: float | None = None
    ) -> dict[str, object]:
        """Wait until the session is confirmed or the timeout passes."""
        state_container: AppContainer = request.app.state.container
        settings = state_container.settings
        try:
            state_container.session_store.get(tx_ref)
        except SessionNotFound as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="not found"
            ) from exc
        deadline = settings.poll_timeout_seconds
        if timeout is not None:
            deadline = max(0.0, min(timeout, settings.poll_timeout_seconds))
        session = await state_container.polling_coordinator.await_confirmation(
            tx_ref,
            poll_interval=settings.poll_interval_seconds,
            deadline=deadline,
        )
        return {
            "ok": True,
            "status": session.state.value,
            "confirmed": session.is_terminal,
        }

    @app.post("/api/webhook")
    async def webhook(
        request: Request,
        payload: dict[str, Any] = Body(...),
        verif_hash: str | None = Header(default=None),
    ) -> dict[str, object]:
        """Apply a gateway notification for a session."""
        state_container: AppContainer = request.app.state.container
        expected_hash = state_container.settings.flutterwave_webhook_hash
        if expected_hash and not hmac.compare_digest(
            (verif_hash or "").strip(), expected_hash.strip()
        ):
            logger.warning("Rejected webhook with invalid verif-hash")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
        try:
            session = await state_container.payment_service.report_confirmation(
                payload
            )
        except MalformedConfirmation as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="no tx_ref"
            ) from exc
        except SessionNotFound as exc:
            logger.warning(
                "Confirmation for unknown session",
                extra={"reference": exc.reference},
            )
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="session not found"
            ) from exc
        except GatewayError as exc:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
            ) from exc
        except EntropyUnavailable as exc:
            logger.exception("Winner draw failed")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="winner could not be drawn, retry later",
            ) from exc
        return {"received": True, "status": session.state.value}

    @app.get("/api/get-winner")
    async def get_winner(tx_ref: str, request: Request) -> dict[str, object]:
        """Disclose the winning number of a confirmed session."""
        state_container: AppContainer = request.app.state.container
        try:
            winner = state_container.payment_service.get_winner(tx_ref)
        except SessionNotFound as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="not found"
            ) from exc
        except PaymentNotConfirmed as exc:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="payment not confirmed",
            ) from exc
        return {"ok": True, "winner": winner}

    return app
