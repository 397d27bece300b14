"""Domain models for organizations, memberships and attendance."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

OFFICER_ROLES = frozenset({"officer", "president", "vice_president", "admin"})


@dataclass(frozen=True)
class Organization:
    """Represents an organization stored in the database."""

    id: UUID
    slug: str
    is_active: bool


@dataclass(frozen=True)
class Membership:
    """A user's standing in an organization."""

    user_id: UUID
    org_id: UUID
    role: str
    is_active: bool


@dataclass(frozen=True)
class AttendanceRecord:
    """One check-in for a session."""

    id: UUID
    session_id: UUID
    member_id: UUID
    org_id: UUID
    method: str
    recorded_at: datetime
