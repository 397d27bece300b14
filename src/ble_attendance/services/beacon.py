"""Beacon major/minor encoding for attendance sessions."""

from collections.abc import Iterable
from dataclasses import dataclass, field

from ble_attendance.domain.sessions import BeaconPayload, SessionSummary
from ble_attendance.errors import InvalidInput, InvalidToken
from ble_attendance.services.tokens import is_valid_token_format

UINT16_MAX = 0xFFFF
UNKNOWN_ORG_CODE = 0
DEFAULT_ORG_CODES = {"nhs": 1, "nhsa": 2}


@dataclass
class BeaconEncoder:
    """Maps organizations and tokens into the beacon's 16-bit fields."""

    org_codes: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_ORG_CODES))

    def org_code(self, org_slug: str) -> int:
        """Return the major value for an organization, or 0 when unknown."""
        return self.org_codes.get(org_slug.strip().lower(), UNKNOWN_ORG_CODE)

    def token_hash(self, token: str) -> int:
        """Fold a token into the 16-bit minor value.

        The hash is one-way: scanners use it to spot a session, then must
        present the full token to check in.
        """
        value = 0
        for char in token:
            value = (value * 31 + ord(char)) & UINT16_MAX
        return value

    def payload(self, token: str, org_slug: str) -> BeaconPayload:
        """Build the major/minor pair to advertise for a session."""
        if not is_valid_token_format(token):
            raise InvalidToken("Invalid session token format")
        major = self.org_code(org_slug)
        if major == UNKNOWN_ORG_CODE:
            raise InvalidInput(f"Unknown organization: {org_slug}")
        return BeaconPayload(major=major, minor=self.token_hash(token))

    def matches(self, major: int, minor: int, org_slug: str) -> bool:
        """Return True if a scanned payload belongs to the given organization."""
        expected = self.org_code(org_slug)
        return (
            expected != UNKNOWN_ORG_CODE
            and major == expected
            and 0 <= minor <= UINT16_MAX
        )

    def find_session(
        self, minor: int, sessions: Iterable[SessionSummary]
    ) -> SessionSummary | None:
        """Return the first session whose token hash equals the scanned minor."""
        for summary in sessions:
            if summary.token_hash == minor:
                return summary
        return None
