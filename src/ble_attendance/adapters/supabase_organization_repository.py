"""Supabase-backed organization lookups."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from ble_attendance.domain.models import Organization
from ble_attendance.services.lifecycle import OrganizationRepository


@dataclass
class SupabaseOrganizationRepository(OrganizationRepository):
    """Supabase implementation for organization lookups."""

    client: Client

    def get_organization(self, org_id: UUID) -> Organization | None:
        """Return an organization by id, if present."""
        response = (
            self.client.table("organizations")
            .select("id, slug, is_active")
            .eq("id", str(org_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return Organization(
            id=UUID(str(row["id"])),
            slug=str(row["slug"]),
            is_active=bool(row.get("is_active", True)),
        )
