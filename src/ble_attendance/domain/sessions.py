"""Domain models for attendance sessions."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class Session:
    """Represents one time-bounded attendance window."""

    id: UUID
    org_id: UUID
    event_id: UUID
    title: str
    token: str
    starts_at: datetime
    ends_at: datetime
    terminated_at: datetime | None
    entropy_bits: float
    created_at: datetime


@dataclass(frozen=True)
class ActiveSession:
    """A currently valid session with its live attendee count."""

    session: Session
    attendee_count: int


@dataclass(frozen=True)
class SessionStatus:
    """Point-in-time status of a session."""

    session: Session
    status: str
    is_active: bool
    seconds_remaining: int
    session_age_seconds: int
    attendee_count: int


@dataclass(frozen=True)
class BeaconPayload:
    """Two 16-bit fields advertised by the broadcasting device."""

    major: int
    minor: int


@dataclass(frozen=True)
class CreatedSession:
    """Result of creating a session."""

    session_id: UUID
    event_id: UUID
    token: str
    starts_at: datetime
    expires_at: datetime
    entropy_bits: float
    security_level: str
    beacon: BeaconPayload


@dataclass(frozen=True)
class SessionSummary:
    """Active session view for scanners and officer tooling."""

    session_id: UUID
    event_id: UUID
    title: str
    token: str
    starts_at: datetime
    ends_at: datetime
    attendee_count: int
    org_code: int
    token_hash: int
