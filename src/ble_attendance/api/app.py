"""FastAPI application factory."""

import logging
from datetime import UTC, datetime
from uuid import UUID

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse

from ble_attendance.api.admin import router as admin_router
from ble_attendance.api.models import (
    CheckInRequest,
    CreateSessionRequest,
    ValidateSessionsRequest,
)
from ble_attendance.app_logging import configure_logging
from ble_attendance.containers import AppContainer
from ble_attendance.domain.models import AttendanceRecord
from ble_attendance.domain.sessions import CreatedSession, SessionStatus, SessionSummary
from ble_attendance.domain.tokens import PRODUCTION_POLICY
from ble_attendance.errors import (
    AttendanceError,
    InvalidInput,
    InvalidToken,
    LowEntropyToken,
    OrganizationMismatch,
    PermissionDenied,
    SessionExpired,
    SessionNotFound,
)
from ble_attendance.services.sessions import SESSION_NOT_FOUND_MESSAGE

_STATUS_BY_ERROR: dict[type[AttendanceError], int] = {
    InvalidInput: status.HTTP_400_BAD_REQUEST,
    InvalidToken: status.HTTP_400_BAD_REQUEST,
    LowEntropyToken: status.HTTP_400_BAD_REQUEST,
    PermissionDenied: status.HTTP_403_FORBIDDEN,
    OrganizationMismatch: status.HTTP_403_FORBIDDEN,
    SessionNotFound: status.HTTP_404_NOT_FOUND,
    SessionExpired: status.HTTP_410_GONE,
}


async def current_user_id(x_user_id: str | None = Header(default=None)) -> UUID:
    """Return the caller id supplied by the upstream identity layer."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    try:
        return UUID(x_user_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED) from exc


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)
    policy = container.lifecycle_manager.entropy_validator.policy
    if policy != PRODUCTION_POLICY:
        logger.warning(
            "Entropy policy %s is active (floor %.0f bits); not for production use",
            policy.name,
            policy.min_entropy_bits,
        )

    app = FastAPI(title="BLE Attendance")
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(AttendanceError)
    async def attendance_error_handler(
        request: Request, exc: AttendanceError
    ) -> JSONResponse:
        if exc.operator_alert:
            logger.error(
                "Operator alert on %s %s: %s",
                request.method,
                request.url.path,
                exc.message,
                exc_info=exc,
            )
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={
                    "error": exc.code,
                    "message": "Attendance sessions are temporarily unavailable.",
                },
            )
        return JSONResponse(
            status_code=_STATUS_BY_ERROR.get(
                type(exc), status.HTTP_400_BAD_REQUEST
            ),
            content={"error": exc.code, "message": exc.message, **exc.details()},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/sessions", status_code=status.HTTP_201_CREATED)
    async def create_session(
        body: CreateSessionRequest,
        request: Request,
        user_id: UUID = Depends(current_user_id),
    ) -> dict[str, object]:
        """Open an attendance session for an organization."""
        state_container: AppContainer = request.app.state.container
        _require_officer(state_container, user_id, body.org_id)
        created = state_container.lifecycle_manager.create_session(
            org_id=body.org_id,
            title=body.title,
            ttl_seconds=body.ttl_seconds,
            starts_at=_as_utc(body.starts_at),
            event_id=body.event_id,
            actor_id=user_id,
        )
        return _serialize_created(created)

    @app.post("/sessions/{session_id}/end")
    async def end_session(
        session_id: UUID,
        request: Request,
        user_id: UUID = Depends(current_user_id),
    ) -> dict[str, object]:
        """End a session before its TTL elapses."""
        state_container: AppContainer = request.app.state.container
        manager = state_container.lifecycle_manager
        session = manager.get_session(session_id)
        _require_officer(state_container, user_id, session.org_id)
        ended = manager.end_session_early(session_id, actor_id=user_id)
        return {
            "session_id": str(ended.id),
            "terminated_at": ended.terminated_at.isoformat()
            if ended.terminated_at
            else None,
        }

    @app.get("/orgs/{org_id}/sessions/active")
    async def active_sessions(
        org_id: UUID,
        request: Request,
        user_id: UUID = Depends(current_user_id),
    ) -> dict[str, object]:
        """List sessions currently accepting check-ins."""
        state_container: AppContainer = request.app.state.container
        _require_member(state_container, user_id, org_id)
        summaries = state_container.lifecycle_manager.active_sessions(org_id)
        return {"sessions": [_serialize_summary(summary) for summary in summaries]}

    @app.get("/orgs/{org_id}/sessions/beacon")
    async def session_by_beacon(
        org_id: UUID,
        major: int,
        minor: int,
        request: Request,
        user_id: UUID = Depends(current_user_id),
    ) -> dict[str, object]:
        """Match a scanned beacon against the organization's active sessions."""
        state_container: AppContainer = request.app.state.container
        _require_member(state_container, user_id, org_id)
        summary = state_container.lifecycle_manager.find_session_by_beacon(
            org_id, major, minor
        )
        if summary is None:
            raise SessionNotFound("No active session matches this beacon")
        return _serialize_summary(summary)

    @app.get("/sessions/status/{token}")
    async def session_status(
        token: str,
        request: Request,
        user_id: UUID = Depends(current_user_id),
    ) -> dict[str, object]:
        """Return the lifecycle status for a session token."""
        state_container: AppContainer = request.app.state.container
        current = state_container.lifecycle_manager.session_status(token)
        if not state_container.authorizer.is_member(user_id, current.session.org_id):
            raise SessionNotFound(SESSION_NOT_FOUND_MESSAGE)
        return _serialize_status(current)

    @app.post("/sessions/validate")
    async def validate_sessions(
        body: ValidateSessionsRequest,
        request: Request,
        user_id: UUID = Depends(current_user_id),
    ) -> dict[str, list[str]]:
        """Return which scanned tokens still belong to active sessions."""
        state_container: AppContainer = request.app.state.container
        sessions = state_container.lifecycle_manager.validate_sessions(body.tokens)
        membership: dict[UUID, bool] = {}
        active_tokens = []
        for session in sessions:
            if session.org_id not in membership:
                membership[session.org_id] = state_container.authorizer.is_member(
                    user_id, session.org_id
                )
            if membership[session.org_id]:
                active_tokens.append(session.token)
        return {"active_tokens": active_tokens}

    @app.post("/attendance/check-in")
    async def check_in(
        body: CheckInRequest,
        request: Request,
        user_id: UUID = Depends(current_user_id),
    ) -> dict[str, object]:
        """Record attendance for the caller."""
        state_container: AppContainer = request.app.state.container
        record = state_container.attendance_recorder.check_in(
            body.token, user_id, method=body.method
        )
        return _serialize_record(record)

    return app


def _require_officer(container: AppContainer, user_id: UUID, org_id: UUID) -> None:
    if not container.authorizer.is_officer(user_id, org_id):
        raise PermissionDenied("Officer role required for this organization")


def _require_member(container: AppContainer, user_id: UUID, org_id: UUID) -> None:
    if not container.authorizer.is_member(user_id, org_id):
        raise PermissionDenied("Membership required for this organization")


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def _serialize_created(created: CreatedSession) -> dict[str, object]:
    return {
        "session_id": str(created.session_id),
        "event_id": str(created.event_id),
        "token": created.token,
        "starts_at": created.starts_at.isoformat(),
        "expires_at": created.expires_at.isoformat(),
        "entropy_bits": round(created.entropy_bits, 2),
        "security_level": created.security_level,
        "beacon": {"major": created.beacon.major, "minor": created.beacon.minor},
    }


def _serialize_summary(summary: SessionSummary) -> dict[str, object]:
    return {
        "session_id": str(summary.session_id),
        "event_id": str(summary.event_id),
        "title": summary.title,
        "token": summary.token,
        "starts_at": summary.starts_at.isoformat(),
        "ends_at": summary.ends_at.isoformat(),
        "attendee_count": summary.attendee_count,
        "org_code": summary.org_code,
        "token_hash": summary.token_hash,
    }


def _serialize_status(session_status: SessionStatus) -> dict[str, object]:
    session = session_status.session
    return {
        "session_id": str(session.id),
        "title": session.title,
        "status": session_status.status,
        "is_active": session_status.is_active,
        "starts_at": session.starts_at.isoformat(),
        "ends_at": session.ends_at.isoformat(),
        "terminated_at": session.terminated_at.isoformat()
        if session.terminated_at
        else None,
        "seconds_remaining": session_status.seconds_remaining,
        "session_age_seconds": session_status.session_age_seconds,
        "attendee_count": session_status.attendee_count,
    }


def _serialize_record(record: AttendanceRecord) -> dict[str, object]:
    return {
        "attendance_id": str(record.id),
        "session_id": str(record.session_id),
        "member_id": str(record.member_id),
        "org_id": str(record.org_id),
        "method": record.method,
        "recorded_at": record.recorded_at.isoformat(),
    }
