"""Session token generation."""

import logging
import secrets
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from ble_attendance.domain.tokens import CollisionReport
from ble_attendance.errors import InvalidInput, TokenGenerationFailed

# A-Z without I and O, plus 2-9: no 0/O or 1/I look-alikes.
TOKEN_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
TOKEN_LENGTH = 12
DEFAULT_MAX_RETRIES = 10
MAX_COLLISION_SAMPLE = 100_000

_logger = logging.getLogger(__name__)


class TokenLookup(Protocol):
    """Answers whether a token is held by a live session."""

    def has_live_token(self, token: str, now: datetime) -> bool:
        """Return True if a non-expired, non-terminated session holds the token."""


def sanitize_token(raw: str | None) -> str:
    """Strip whitespace and upper-case a token received from a client."""
    if raw is None:
        return ""
    return raw.strip().upper()


def is_valid_token_format(
    token: str, alphabet: str = TOKEN_ALPHABET, length: int = TOKEN_LENGTH
) -> bool:
    """Return True if the token has the expected length and symbols."""
    return len(token) == length and all(char in alphabet for char in token)


def mask_token(token: str) -> str:
    """Return a log-safe form of a token."""
    return f"{token[:4]}********"


@dataclass
class TokenGenerator:
    """Generates unique session tokens from a CSPRNG."""

    lookup: TokenLookup
    alphabet: str = TOKEN_ALPHABET
    length: int = TOKEN_LENGTH
    max_retries: int = DEFAULT_MAX_RETRIES

    def generate(self, now: datetime | None = None) -> str:
        """Return a token that no live session currently holds."""
        return next(self.candidates(now))

    def candidates(self, now: datetime | None = None) -> Iterator[str]:
        """Yield tokens no live session holds, drawing at most max_retries times.

        Callers that reject a yielded token (entropy, insert races) resume the
        iterator, so every draw counts against one shared budget.
        """
        current = now or datetime.now(tz=UTC)
        for attempt in range(1, self.max_retries + 1):
            token = self._draw()
            if not self.lookup.has_live_token(token, current):
                yield token
                continue
            _logger.warning(
                "Token collision on attempt %s/%s: token=%s",
                attempt,
                self.max_retries,
                mask_token(token),
            )
        _logger.error(
            "Token generation failed after %s attempts; check the session store",
            self.max_retries,
        )
        raise TokenGenerationFailed(
            f"Failed to generate a unique token after {self.max_retries} attempts"
        )

    def keyspace_size(self) -> int:
        """Return the number of distinct tokens the generator can produce."""
        return len(self.alphabet) ** self.length

    def collision_report(self, sample_size: int = 1000) -> CollisionReport:
        """Generate a sample and compare its collisions to the birthday bound."""
        if sample_size <= 0 or sample_size > MAX_COLLISION_SAMPLE:
            raise InvalidInput(
                f"Sample size must be between 1 and {MAX_COLLISION_SAMPLE}"
            )
        tokens = [self._draw() for _ in range(sample_size)]
        unique_count = len(set(tokens))
        collisions = sample_size - unique_count
        keyspace = self.keyspace_size()
        theoretical = (sample_size * sample_size) / (2 * keyspace)
        actual_rate = collisions / sample_size
        return CollisionReport(
            sample_size=sample_size,
            unique_tokens=unique_count,
            collisions=collisions,
            actual_collision_rate=actual_rate,
            theoretical_collision_probability=theoretical,
            keyspace_size=keyspace,
            collision_resistance=_rate_resistance(actual_rate, theoretical),
        )

    def _draw(self) -> str:
        return "".join(secrets.choice(self.alphabet) for _ in range(self.length))


def _rate_resistance(actual_rate: float, theoretical: float) -> str:
    """Rate an observed collision rate against the birthday-bound estimate."""
    if actual_rate == 0 or actual_rate < theoretical * 2:
        return "excellent"
    if actual_rate < theoretical * 5:
        return "good"
    return "poor"
