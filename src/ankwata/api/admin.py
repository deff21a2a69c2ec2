"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status

from ankwata.api.models import SimulateSuccessRequest  # noqa: TC001
from ankwata.domain.errors import EntropyUnavailable, SessionNotFound

if TYPE_CHECKING:
    from ankwata.containers import AppContainer

router = APIRouter(prefix="/api/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.post("/simulate-success", dependencies=[Depends(require_admin)])
async def simulate_success(
    body: SimulateSuccessRequest, request: Request
) -> dict[str, object]:
    """Force an outcome for a session, for test and demo payments.

    Without a status the session is confirmed; any status other than
    ``"successful"`` fails it.
    """
    container: AppContainer = request.app.state.container
    payload: dict[str, object] = {"reference": body.tx_ref}
    if body.status is not None:
        payload["status"] = body.status
    try:
        session = container.payment_service.apply_manual_override(payload)
    except SessionNotFound as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="session not found"
        ) from exc
    except EntropyUnavailable as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="winner could not be drawn, retry later",
        ) from exc
    return {
        "ok": True,
        "tx_ref": session.reference,
        "status": session.state.value,
        "winner": session.winner,
    }


@router.get("/sessions", dependencies=[Depends(require_admin)])
async def list_sessions(
    request: Request, limit: int = Query(20, ge=1)
) -> dict[str, object]:
    """Return recent sessions without their winning numbers."""
    container: AppContainer = request.app.state.container
    sessions = container.session_store.list_sessions(limit)
    return {
        "sessions": [
            {
                "tx_ref": session.reference,
                "status": session.state.value,
                "created_at": session.created_at.isoformat(),
            }
            for session in sessions
        ]
    }
