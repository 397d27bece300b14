"""Audit logging service."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID


class AuditRepository(Protocol):
    """Persistence interface for audit events."""

    def create_event(
        self,
        actor_id: UUID | None,
        entity_type: str,
        entity_id: UUID,
        event_type: str,
        payload: dict[str, object] | None,
    ) -> None:
        """Create an audit event row."""


@dataclass
class AuditService:
    """Service for recording session lifecycle events."""

    repository: AuditRepository

    def record_event(
        self,
        actor_id: UUID | None,
        entity_type: str,
        entity_id: UUID,
        event_type: str,
        payload: dict[str, object] | None = None,
    ) -> None:
        """Persist an audit event."""
        self.repository.create_event(
            actor_id=actor_id,
            entity_type=entity_type,
            entity_id=entity_id,
            event_type=event_type,
            payload=payload,
        )
