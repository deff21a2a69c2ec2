"""Winning number generation."""

import secrets
from dataclasses import dataclass
from typing import Protocol

from ankwata.domain.errors import EntropyUnavailable

WINNER_DIGITS = 10
_UPPER_BOUND = 10**WINNER_DIGITS


class RandomNumberSource(Protocol):
    """Source of winning numbers."""

    def next(self) -> str:
        """Return a zero-padded 10-digit string."""


@dataclass
class SecretsRandomNumberSource(RandomNumberSource):
    """Draws winners from the operating system CSPRNG."""

    def next(self) -> str:
        """Draw a number uniformly from [0, 10**10)."""
        try:
            value = secrets.randbelow(_UPPER_BOUND)
        except (OSError, NotImplementedError) as exc:
            raise EntropyUnavailable("Secure random source unavailable") from exc
        return f"{value:0{WINNER_DIGITS}d}"
