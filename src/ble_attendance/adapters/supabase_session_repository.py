"""Supabase-backed session repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from ble_attendance.domain.sessions import Session
from ble_attendance.errors import DuplicateActiveToken
from ble_attendance.services.sessions import SessionRepository

_COLUMNS = (
    "id, org_id, event_id, title, token, starts_at, ends_at, "
    "terminated_at, entropy_bits, created_at"
)
_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for attendance sessions."""

    client: Client

    def insert_session(  # noqa: PLR0913
        self,
        org_id: UUID,
        event_id: UUID,
        title: str,
        token: str,
        starts_at: datetime,
        ends_at: datetime,
        entropy_bits: float,
    ) -> Session:
        """Insert a session row and return it."""
        try:
            response = (
                self.client.table("ble_sessions")
                .insert(
                    {
                        "org_id": str(org_id),
                        "event_id": str(event_id),
                        "title": title,
                        "token": token,
                        "starts_at": starts_at.isoformat(),
                        "ends_at": ends_at.isoformat(),
                        "entropy_bits": entropy_bits,
                    }
                )
                .execute()
            )
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise DuplicateActiveToken(
                    "A live session already holds this token"
                ) from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create session")
        return _parse_session(response.data[0])

    def get_session(self, session_id: UUID) -> Session | None:
        """Return a session by id, if present."""
        response = (
            self.client.table("ble_sessions")
            .select(_COLUMNS)
            .eq("id", str(session_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def get_latest_by_token(self, token: str) -> Session | None:
        """Return the most recently created session holding the token."""
        response = (
            self.client.table("ble_sessions")
            .select(_COLUMNS)
            .eq("token", token)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def find_live_by_token(self, token: str, now: datetime) -> Session | None:
        """Return a non-terminated, unexpired session holding the token."""
        response = (
            self.client.table("ble_sessions")
            .select(_COLUMNS)
            .eq("token", token)
            .is_("terminated_at", "null")
            .gt("ends_at", now.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def mark_terminated(self, session_id: UUID, terminated_at: datetime) -> None:
        """Set terminated_at once; later calls match no rows."""
        self.client.table("ble_sessions").update(
            {"terminated_at": terminated_at.isoformat()}
        ).eq("id", str(session_id)).is_("terminated_at", "null").execute()

    def list_valid_sessions(self, org_id: UUID, now: datetime) -> list[Session]:
        """Return the organization's sessions valid at now."""
        timestamp = now.isoformat()
        response = (
            self.client.table("ble_sessions")
            .select(_COLUMNS)
            .eq("org_id", str(org_id))
            .is_("terminated_at", "null")
            .lte("starts_at", timestamp)
            .gt("ends_at", timestamp)
            .order("starts_at", desc=True)
            .execute()
        )
        return [_parse_session(row) for row in response.data or []]

    def list_live_by_tokens(self, tokens: list[str], now: datetime) -> list[Session]:
        """Return sessions holding any of the tokens that are valid at now."""
        if not tokens:
            return []
        timestamp = now.isoformat()
        response = (
            self.client.table("ble_sessions")
            .select(_COLUMNS)
            .in_("token", tokens)
            .is_("terminated_at", "null")
            .lte("starts_at", timestamp)
            .gt("ends_at", timestamp)
            .execute()
        )
        return [_parse_session(row) for row in response.data or []]

    def count_attendees(self, session_id: UUID) -> int:
        """Return the number of attendance records for a session."""
        response = (
            self.client.table("attendance")
            .select("id", count="exact")
            .eq("session_id", str(session_id))
            .execute()
        )
        if response.count is not None:
            return response.count
        return len(response.data or [])


def _parse_timestamp(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None


def _parse_session(row: dict[str, object]) -> Session:
    starts_at = _parse_timestamp(row.get("starts_at"))
    ends_at = _parse_timestamp(row.get("ends_at"))
    if starts_at is None or ends_at is None:
        raise RuntimeError(f"Session row {row.get('id')} is missing its window")
    return Session(
        id=UUID(str(row["id"])),
        org_id=UUID(str(row["org_id"])),
        event_id=UUID(str(row["event_id"])),
        title=str(row.get("title") or ""),
        token=str(row["token"]),
        starts_at=starts_at,
        ends_at=ends_at,
        terminated_at=_parse_timestamp(row.get("terminated_at")),
        entropy_bits=float(row.get("entropy_bits") or 0.0),
        created_at=_parse_timestamp(row.get("created_at")) or starts_at,
    )
