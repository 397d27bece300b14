"""Domain models for token scoring."""

from dataclasses import dataclass


@dataclass(frozen=True)
class EntropyPolicy:
    """Entropy floors applied by the validator."""

    name: str
    min_entropy_bits: float
    min_shannon_bits: float


PRODUCTION_POLICY = EntropyPolicy(
    name="production", min_entropy_bits=60.0, min_shannon_bits=20.0
)
DEVELOPMENT_POLICY = EntropyPolicy(
    name="development", min_entropy_bits=25.0, min_shannon_bits=12.0
)


@dataclass(frozen=True)
class EntropyScore:
    """Entropy measurements for a single token."""

    entropy_bits: float
    shannon_bits: float
    security_level: str
    character_frequencies: dict[str, int]


@dataclass(frozen=True)
class CollisionReport:
    """Empirical collision statistics for a generated token sample."""

    sample_size: int
    unique_tokens: int
    collisions: int
    actual_collision_rate: float
    theoretical_collision_probability: float
    keyspace_size: int
    collision_resistance: str
