"""Supabase repository for audit events."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from ble_attendance.services.audit import AuditRepository


@dataclass
class SupabaseAuditRepository(AuditRepository):
    """Supabase-backed audit repository."""

    client: Client

    def create_event(
        self,
        actor_id: UUID | None,
        entity_type: str,
        entity_id: UUID,
        event_type: str,
        payload: dict[str, object] | None,
    ) -> None:
        """Create an audit event row."""
        self.client.table("audit_events").insert(
            {
                "actor_id": str(actor_id) if actor_id else None,
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "event_type": event_type,
                "payload_json": payload,
            }
        ).execute()
