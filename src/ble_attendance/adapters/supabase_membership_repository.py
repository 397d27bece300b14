"""Supabase-backed membership lookups."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from ble_attendance.domain.models import Membership
from ble_attendance.services.memberships import MembershipRepository


@dataclass
class SupabaseMembershipRepository(MembershipRepository):
    """Supabase implementation of the user directory."""

    client: Client

    def get_active_membership(self, user_id: UUID, org_id: UUID) -> Membership | None:
        """Return the user's active membership in an organization, if any."""
        response = (
            self.client.table("memberships")
            .select("user_id, org_id, role, is_active")
            .eq("user_id", str(user_id))
            .eq("org_id", str(org_id))
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return Membership(
            user_id=UUID(str(row["user_id"])),
            org_id=UUID(str(row["org_id"])),
            role=str(row.get("role") or "member"),
            is_active=bool(row.get("is_active")),
        )
