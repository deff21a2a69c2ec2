"""Caller-facing wait for payment confirmation."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from ankwata.domain.sessions import Session

logger = logging.getLogger(__name__)

SessionFetcher = Callable[[str], Awaitable[Session]]


@dataclass
class PollingCoordinator:
    """Polls a session until it is terminal or a deadline passes."""

    fetch: SessionFetcher

    async def await_confirmation(
        self, reference: str, poll_interval: float, deadline: float
    ) -> Session:
        """Return the last observed session once terminal or out of time.

        ``poll_interval`` and ``deadline`` are in seconds, the deadline being
        relative to the call. A session still pending at the deadline is
        returned as-is; the payment may yet complete through a late webhook.
        Fetch errors are retried until the deadline; if no fetch ever
        succeeded, the last error is raised.
        """
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        started = time.monotonic()
        last_seen: Session | None = None
        last_error: Exception | None = None

        while True:
            try:
                last_seen = await self.fetch(reference)
            except Exception as exc:
                last_error = exc
                logger.exception(
                    "Session poll failed", extra={"reference": reference}
                )
            else:
                if last_seen.is_terminal:
                    return last_seen

            remaining = deadline - (time.monotonic() - started)
            if remaining <= 0:
                break
            await asyncio.sleep(min(poll_interval, remaining))

        if last_seen is None and last_error is not None:
            raise last_error
        logger.info("Session still unconfirmed", extra={"reference": reference})
        return last_seen
