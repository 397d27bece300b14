"""Session lifecycle orchestration."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID, uuid4

from ble_attendance.domain.models import Organization
from ble_attendance.domain.sessions import (
    ActiveSession,
    CreatedSession,
    Session,
    SessionStatus,
    SessionSummary,
)
from ble_attendance.domain.tokens import EntropyScore
from ble_attendance.errors import (
    DuplicateActiveToken,
    InvalidInput,
    InvalidToken,
    LowEntropyToken,
    TokenGenerationFailed,
)
from ble_attendance.services.audit import AuditService
from ble_attendance.services.beacon import UNKNOWN_ORG_CODE, BeaconEncoder
from ble_attendance.services.entropy import EntropyValidator
from ble_attendance.services.sessions import SessionStore
from ble_attendance.services.tokens import (
    TokenGenerator,
    is_valid_token_format,
    mask_token,
    sanitize_token,
)

MAX_TTL_SECONDS = 86400
SESSION_ENTITY = "ble_session"

_logger = logging.getLogger(__name__)


class OrganizationRepository(Protocol):
    """Read interface for organizations."""

    def get_organization(self, org_id: UUID) -> Organization | None:
        """Return an organization by id, if present."""


@dataclass
class SessionLifecycleManager:
    """Creates, ends and lists attendance sessions."""

    session_store: SessionStore
    token_generator: TokenGenerator
    entropy_validator: EntropyValidator
    beacon_encoder: BeaconEncoder
    organization_repository: OrganizationRepository
    audit_service: AuditService
    max_ttl_seconds: int = MAX_TTL_SECONDS

    def create_session(  # noqa: PLR0913
        self,
        org_id: UUID,
        title: str,
        ttl_seconds: int,
        starts_at: datetime | None = None,
        event_id: UUID | None = None,
        actor_id: UUID | None = None,
        now: datetime | None = None,
    ) -> CreatedSession:
        """Create a session and return its token and beacon payload."""
        cleaned_title = (title or "").strip()
        if not cleaned_title:
            raise InvalidInput("Session title cannot be empty")
        if ttl_seconds <= 0 or ttl_seconds > self.max_ttl_seconds:
            raise InvalidInput(
                f"TTL must be between 1 and {self.max_ttl_seconds} seconds"
            )
        organization = self._active_organization(org_id)
        if self.beacon_encoder.org_code(organization.slug) == UNKNOWN_ORG_CODE:
            raise InvalidInput(f"No beacon code assigned to {organization.slug}")

        current = now or datetime.now(tz=UTC)
        start = starts_at or current
        ends_at = start + timedelta(seconds=ttl_seconds)
        resolved_event_id = event_id or uuid4()

        session, score = self._store_with_fresh_token(
            org_id=org_id,
            event_id=resolved_event_id,
            title=cleaned_title,
            starts_at=start,
            ends_at=ends_at,
            now=current,
        )

        beacon = self.beacon_encoder.payload(session.token, organization.slug)
        self.audit_service.record_event(
            actor_id=actor_id,
            entity_type=SESSION_ENTITY,
            entity_id=session.id,
            event_type="created",
            payload={
                "org_id": str(org_id),
                "event_id": str(session.event_id),
                "ttl_seconds": ttl_seconds,
                "entropy_bits": round(score.entropy_bits, 2),
            },
        )
        return CreatedSession(
            session_id=session.id,
            event_id=session.event_id,
            token=session.token,
            starts_at=session.starts_at,
            expires_at=session.ends_at,
            entropy_bits=score.entropy_bits,
            security_level=score.security_level,
            beacon=beacon,
        )

    def end_session_early(
        self,
        session_id: UUID,
        actor_id: UUID | None = None,
        now: datetime | None = None,
    ) -> Session:
        """Terminate a session so scanners can no longer use it."""
        before = self.session_store.get(session_id)
        session = self.session_store.terminate(session_id, now=now)
        if before.terminated_at is None:
            self.audit_service.record_event(
                actor_id=actor_id,
                entity_type=SESSION_ENTITY,
                entity_id=session_id,
                event_type="terminated",
                payload={
                    "original_ends_at": before.ends_at.isoformat(),
                    "terminated_at": session.terminated_at.isoformat()
                    if session.terminated_at
                    else None,
                },
            )
        return session

    def get_session(self, session_id: UUID) -> Session:
        """Return a session by id."""
        return self.session_store.get(session_id)

    def active_sessions(
        self, org_id: UUID, now: datetime | None = None
    ) -> list[SessionSummary]:
        """Return summaries of the organization's valid sessions."""
        organization = self.organization_repository.get_organization(org_id)
        org_code = (
            self.beacon_encoder.org_code(organization.slug)
            if organization
            else UNKNOWN_ORG_CODE
        )
        return [
            self._summarize(active, org_code)
            for active in self.session_store.list_active(org_id, now)
        ]

    def session_status(self, token: str, now: datetime | None = None) -> SessionStatus:
        """Return the status of the session holding a token."""
        cleaned = sanitize_token(token)
        if not is_valid_token_format(cleaned):
            raise InvalidToken("Invalid session token format")
        return self.session_store.status(cleaned, now)

    def validate_sessions(
        self, tokens: list[str], now: datetime | None = None
    ) -> list[Session]:
        """Return sessions still accepting check-ins for a batch of scanned tokens.

        Malformed tokens are dropped rather than rejected so scanners can prune
        stale beacons in one call.
        """
        cleaned = [sanitize_token(token) for token in tokens]
        return self.session_store.live_sessions(
            [token for token in cleaned if is_valid_token_format(token)], now
        )

    def find_session_by_beacon(
        self,
        org_id: UUID,
        major: int,
        minor: int,
        now: datetime | None = None,
    ) -> SessionSummary | None:
        """Return the active session a scanned beacon most likely advertises."""
        organization = self.organization_repository.get_organization(org_id)
        if organization is None:
            return None
        if not self.beacon_encoder.matches(major, minor, organization.slug):
            return None
        return self.beacon_encoder.find_session(
            minor, self.active_sessions(org_id, now)
        )

    def _store_with_fresh_token(  # noqa: PLR0913
        self,
        org_id: UUID,
        event_id: UUID,
        title: str,
        starts_at: datetime,
        ends_at: datetime,
        now: datetime,
    ) -> tuple[Session, EntropyScore]:
        for token in self.token_generator.candidates(now):
            try:
                score = self.entropy_validator.validate(token)
            except LowEntropyToken as exc:
                _logger.warning(
                    "Discarding low-entropy draw, regenerating: token=%s reason=%s",
                    mask_token(token),
                    exc.message,
                )
                continue
            try:
                session = self.session_store.create(
                    org_id=org_id,
                    event_id=event_id,
                    title=title,
                    token=token,
                    starts_at=starts_at,
                    ends_at=ends_at,
                    entropy_bits=score.entropy_bits,
                    now=now,
                )
            except DuplicateActiveToken:
                _logger.warning(
                    "Token claimed concurrently, regenerating: token=%s",
                    mask_token(token),
                )
                continue
            return session, score
        raise TokenGenerationFailed(
            "Failed to persist a unique token after maximum retries"
        )

    def _active_organization(self, org_id: UUID) -> Organization:
        organization = self.organization_repository.get_organization(org_id)
        if organization is None or not organization.is_active:
            raise InvalidInput("Organization not found or inactive")
        return organization

    def _summarize(self, active: ActiveSession, org_code: int) -> SessionSummary:
        session = active.session
        return SessionSummary(
            session_id=session.id,
            event_id=session.event_id,
            title=session.title,
            token=session.token,
            starts_at=session.starts_at,
            ends_at=session.ends_at,
            attendee_count=active.attendee_count,
            org_code=org_code,
            token_hash=self.beacon_encoder.token_hash(session.token),
        )
