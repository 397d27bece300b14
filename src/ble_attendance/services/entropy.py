"""Token entropy scoring and validation.

Two measurements are reported for every token:

* ``entropy_bits`` is the entropy of the source the token is drawn from,
  ``length * log2(len(alphabet))``. It is what the security floor compares
  against and what sessions store for audit.
* ``shannon_bits`` is the Shannon entropy of the token's own symbol
  frequencies multiplied by its length. A 12-symbol sample can never exceed
  ``12 * log2(12)`` (about 43 bits) on this measure, so it only guards against
  degenerate, highly repetitive tokens.
"""

import math
from collections import Counter
from dataclasses import dataclass, field

from ble_attendance.domain.tokens import PRODUCTION_POLICY, EntropyPolicy, EntropyScore
from ble_attendance.errors import InvalidToken, LowEntropyToken
from ble_attendance.services.tokens import TOKEN_ALPHABET, TOKEN_LENGTH

STRONG_BITS = 80.0
MODERATE_BITS = 60.0
ACCEPTABLE_BITS = 40.0


def shannon_entropy(token: str) -> float:
    """Return the per-symbol Shannon entropy of a token's symbol frequencies."""
    if not token:
        return 0.0
    total = len(token)
    entropy = 0.0
    for count in Counter(token).values():
        probability = count / total
        entropy -= probability * math.log2(probability)
    return entropy


def classify(entropy_bits: float) -> str:
    """Map entropy bits to a security level."""
    if entropy_bits >= STRONG_BITS:
        return "strong"
    if entropy_bits >= MODERATE_BITS:
        return "moderate"
    if entropy_bits >= ACCEPTABLE_BITS:
        return "acceptable"
    return "weak"


@dataclass
class EntropyValidator:
    """Scores and validates tokens against an entropy policy."""

    policy: EntropyPolicy = field(default=PRODUCTION_POLICY)
    alphabet: str = TOKEN_ALPHABET
    length: int = TOKEN_LENGTH

    def score(self, token: str) -> EntropyScore:
        """Return entropy measurements for a token."""
        source_bits = len(token) * math.log2(len(self.alphabet)) if token else 0.0
        return EntropyScore(
            entropy_bits=source_bits,
            shannon_bits=shannon_entropy(token) * len(token),
            security_level=classify(source_bits),
            character_frequencies=dict(Counter(token)),
        )

    def validate(self, token: str) -> EntropyScore:
        """Return the score of a valid token or raise on failure."""
        if len(token) != self.length:
            raise InvalidToken(f"Token must be exactly {self.length} characters")
        if any(char not in self.alphabet for char in token):
            raise InvalidToken("Token contains invalid characters")

        score = self.score(token)
        if score.entropy_bits < self.policy.min_entropy_bits:
            raise LowEntropyToken(
                f"Token entropy too low: {score.entropy_bits:.2f} bits "
                f"(minimum: {self.policy.min_entropy_bits:.2f})",
                entropy_bits=score.entropy_bits,
                minimum=self.policy.min_entropy_bits,
            )
        if score.shannon_bits < self.policy.min_shannon_bits:
            raise LowEntropyToken(
                f"Token is too repetitive: {score.shannon_bits:.2f} bits "
                f"(minimum: {self.policy.min_shannon_bits:.2f})",
                entropy_bits=score.shannon_bits,
                minimum=self.policy.min_shannon_bits,
            )
        return score
