"""Attendance check-in service."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from ble_attendance.domain.models import AttendanceRecord
from ble_attendance.errors import InvalidToken, OrganizationMismatch, SessionExpired
from ble_attendance.services.memberships import MembershipAuthorizer
from ble_attendance.services.sessions import SessionStore, seconds_remaining
from ble_attendance.services.tokens import (
    is_valid_token_format,
    mask_token,
    sanitize_token,
)

_logger = logging.getLogger(__name__)


class AttendanceRepository(Protocol):
    """Persistence interface for the attendance ledger."""

    def upsert_attendance(  # noqa: PLR0913
        self,
        session_id: UUID,
        member_id: UUID,
        org_id: UUID,
        method: str,
        recorded_at: datetime,
    ) -> AttendanceRecord:
        """Insert or update the record keyed by (session_id, member_id)."""


@dataclass
class AttendanceRecorder:
    """Records check-ins after token, expiry and membership checks."""

    session_store: SessionStore
    authorizer: MembershipAuthorizer
    repository: AttendanceRepository

    def check_in(
        self,
        token: str,
        user_id: UUID,
        now: datetime | None = None,
        method: str = "ble",
    ) -> AttendanceRecord:
        """Record attendance for the session holding the token."""
        current = now or datetime.now(tz=UTC)
        cleaned = sanitize_token(token)
        if not is_valid_token_format(cleaned):
            raise InvalidToken("Invalid session token format")

        session = self.session_store.resolve(cleaned)
        if not self.session_store.is_valid(session, current):
            _logger.info(
                "Check-in rejected, session not valid: session_id=%s user_id=%s",
                session.id,
                user_id,
            )
            raise SessionExpired(
                "Session has expired",
                expires_at=session.terminated_at or session.ends_at,
                seconds_remaining=seconds_remaining(session, current),
            )

        if not self.authorizer.is_member(user_id, session.org_id):
            _logger.warning(
                "Check-in rejected, organization mismatch: session_id=%s user_id=%s",
                session.id,
                user_id,
            )
            raise OrganizationMismatch(
                "User is not an active member of this organization"
            )

        record = self.repository.upsert_attendance(
            session_id=session.id,
            member_id=user_id,
            org_id=session.org_id,
            method=method,
            recorded_at=current,
        )
        _logger.info(
            "Attendance recorded: session_id=%s user_id=%s token=%s",
            session.id,
            user_id,
            mask_token(cleaned),
        )
        return record
