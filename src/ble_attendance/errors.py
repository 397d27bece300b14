"""Error taxonomy for attendance sessions and check-ins."""

from datetime import datetime


class AttendanceError(Exception):
    """Base class for errors raised by the attendance core."""

    code = "attendance_error"
    operator_alert = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def details(self) -> dict[str, object]:
        """Return extra payload fields for API responses."""
        return {}


class InvalidInput(AttendanceError):
    """Malformed organization, title or TTL."""

    code = "invalid_input"


class InvalidToken(AttendanceError):
    """Token has the wrong length or symbols outside the alphabet."""

    code = "invalid_token"


class PermissionDenied(AttendanceError):
    """Caller lacks the role required for the action."""

    code = "permission_denied"


class SessionNotFound(AttendanceError):
    """No session matches the token or id."""

    code = "session_not_found"


class SessionExpired(AttendanceError):
    """Session exists but is outside its validity window or was ended early."""

    code = "session_expired"

    def __init__(
        self, message: str, expires_at: datetime, seconds_remaining: int
    ) -> None:
        super().__init__(message)
        self.expires_at = expires_at
        self.seconds_remaining = seconds_remaining

    def details(self) -> dict[str, object]:
        return {
            "expires_at": self.expires_at.isoformat(),
            "seconds_remaining": self.seconds_remaining,
        }


class OrganizationMismatch(AttendanceError):
    """User is not an active member of the organization owning the session."""

    code = "organization_mismatch"


class LowEntropyToken(AttendanceError):
    """Token entropy is below the configured floor."""

    code = "low_entropy"

    def __init__(self, message: str, entropy_bits: float, minimum: float) -> None:
        super().__init__(message)
        self.entropy_bits = entropy_bits
        self.minimum = minimum

    def details(self) -> dict[str, object]:
        return {
            "entropy_bits": round(self.entropy_bits, 2),
            "minimum_required": self.minimum,
        }


class TokenGenerationFailed(AttendanceError):
    """Collision retries were exhausted; usually a store fault."""

    code = "token_generation_failed"
    operator_alert = True


class DuplicateActiveToken(AttendanceError):
    """A live session already holds the token."""

    code = "duplicate_active_token"
    operator_alert = True
