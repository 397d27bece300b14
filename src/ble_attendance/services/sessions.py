"""Session persistence and validity rules."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from ble_attendance.domain.sessions import ActiveSession, Session, SessionStatus
from ble_attendance.errors import DuplicateActiveToken, SessionNotFound
from ble_attendance.services.tokens import mask_token

_logger = logging.getLogger(__name__)

SESSION_NOT_FOUND_MESSAGE = "Session not found or invalid token"


class SessionRepository(Protocol):
    """Persistence interface for attendance sessions."""

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

    def get_session(self, session_id: UUID) -> Session | None:
        """Return a session by id, if present."""

    def get_latest_by_token(self, token: str) -> Session | None:
        """Return the most recently created session holding the token."""

    def find_live_by_token(self, token: str, now: datetime) -> Session | None:
        """Return a non-terminated session holding the token that has not ended."""

    def mark_terminated(self, session_id: UUID, terminated_at: datetime) -> None:
        """Set terminated_at if it is not already set."""

    def list_valid_sessions(self, org_id: UUID, now: datetime) -> list[Session]:
        """Return the organization's sessions that are valid at now."""

    def list_live_by_tokens(self, tokens: list[str], now: datetime) -> list[Session]:
        """Return sessions holding any of the tokens that are valid at now."""

    def count_attendees(self, session_id: UUID) -> int:
        """Return the number of attendance records for a session."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class SessionStore:
    """Creates, resolves and terminates sessions."""

    repository: SessionRepository

    def create(  # noqa: PLR0913
        self,
        org_id: UUID,
        event_id: UUID,
        title: str,
        token: str,
        starts_at: datetime,
        ends_at: datetime,
        entropy_bits: float,
        now: datetime | None = None,
    ) -> Session:
        """Persist a new session; a live session may not share the token."""
        current = now or _utcnow()
        if self.repository.find_live_by_token(token, current) is not None:
            _logger.error(
                "Refusing duplicate live token: token=%s org_id=%s",
                mask_token(token),
                org_id,
            )
            raise DuplicateActiveToken("A live session already holds this token")
        session = self.repository.insert_session(
            org_id=org_id,
            event_id=event_id,
            title=title,
            token=token,
            starts_at=starts_at,
            ends_at=ends_at,
            entropy_bits=entropy_bits,
        )
        _logger.info(
            "Session created: id=%s org_id=%s token=%s ends_at=%s",
            session.id,
            org_id,
            mask_token(token),
            ends_at.isoformat(),
        )
        return session

    def has_live_token(self, token: str, now: datetime) -> bool:
        """Return True if a live session holds the token."""
        return self.repository.find_live_by_token(token, now) is not None

    def get(self, session_id: UUID) -> Session:
        """Return a session by id."""
        session = self.repository.get_session(session_id)
        if session is None:
            raise SessionNotFound("Session not found")
        return session

    def resolve(self, token: str) -> Session:
        """Return the latest session for a token, whether or not it is valid."""
        session = self.repository.get_latest_by_token(token)
        if session is None:
            raise SessionNotFound(SESSION_NOT_FOUND_MESSAGE)
        return session

    def is_valid(self, session: Session, now: datetime | None = None) -> bool:
        """Return True if the session accepts check-ins at now."""
        current = now or _utcnow()
        return (
            session.terminated_at is None
            and session.starts_at <= current < session.ends_at
        )

    def terminate(self, session_id: UUID, now: datetime | None = None) -> Session:
        """End a session early; terminating twice is a no-op."""
        session = self.get(session_id)
        if session.terminated_at is not None:
            return session
        current = now or _utcnow()
        self.repository.mark_terminated(session_id, current)
        _logger.info(
            "Session terminated: id=%s org_id=%s seconds_saved=%s",
            session_id,
            session.org_id,
            max(0, int((session.ends_at - current).total_seconds())),
        )
        return self.get(session_id)

    def list_active(
        self, org_id: UUID, now: datetime | None = None
    ) -> list[ActiveSession]:
        """Return valid sessions for an organization, newest start first."""
        current = now or _utcnow()
        sessions = [
            session
            for session in self.repository.list_valid_sessions(org_id, current)
            if session.org_id == org_id and self.is_valid(session, current)
        ]
        sessions.sort(key=lambda session: session.starts_at, reverse=True)
        return [
            ActiveSession(
                session=session,
                attendee_count=self.repository.count_attendees(session.id),
            )
            for session in sessions
        ]

    def live_sessions(
        self, tokens: list[str], now: datetime | None = None
    ) -> list[Session]:
        """Return the valid sessions for the given tokens, in token order."""
        unique_tokens = list(dict.fromkeys(tokens))
        if not unique_tokens:
            return []
        current = now or _utcnow()
        by_token = {
            session.token: session
            for session in self.repository.list_live_by_tokens(unique_tokens, current)
            if self.is_valid(session, current)
        }
        return [by_token[token] for token in unique_tokens if token in by_token]

    def status(self, token: str, now: datetime | None = None) -> SessionStatus:
        """Return the lifecycle status of the session holding a token."""
        current = now or _utcnow()
        session = self.resolve(token)
        if session.terminated_at is not None:
            label = "terminated"
        elif current >= session.ends_at:
            label = "expired"
        elif current < session.starts_at:
            label = "scheduled"
        else:
            label = "active"
        return SessionStatus(
            session=session,
            status=label,
            is_active=label == "active",
            seconds_remaining=seconds_remaining(session, current),
            session_age_seconds=int((current - session.starts_at).total_seconds()),
            attendee_count=self.repository.count_attendees(session.id),
        )


def seconds_remaining(session: Session, now: datetime) -> int:
    """Return whole seconds until the session stops accepting check-ins."""
    if session.terminated_at is not None:
        return 0
    return max(0, int((session.ends_at - now).total_seconds()))
