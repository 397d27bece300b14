"""Organization membership checks."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from ble_attendance.domain.models import OFFICER_ROLES, Membership


class MembershipRepository(Protocol):
    """Read interface for the user directory."""

    def get_active_membership(self, user_id: UUID, org_id: UUID) -> Membership | None:
        """Return the user's active membership in an organization, if any."""


@dataclass
class MembershipAuthorizer:
    """Single source of truth for who may act in which organization."""

    repository: MembershipRepository

    def is_member(self, user_id: UUID, org_id: UUID) -> bool:
        """Return True if the user holds an active membership in the org."""
        return self._active_membership(user_id, org_id) is not None

    def is_officer(self, user_id: UUID, org_id: UUID) -> bool:
        """Return True if the user is an active officer-class member of the org."""
        membership = self._active_membership(user_id, org_id)
        return membership is not None and membership.role in OFFICER_ROLES

    def _active_membership(self, user_id: UUID, org_id: UUID) -> Membership | None:
        membership = self.repository.get_active_membership(user_id, org_id)
        if membership is None or not membership.is_active:
            return None
        if membership.user_id != user_id or membership.org_id != org_id:
            return None
        return membership
