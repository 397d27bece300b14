"""Supabase-backed attendance ledger."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from ble_attendance.domain.models import AttendanceRecord
from ble_attendance.services.attendance import AttendanceRepository


@dataclass
class SupabaseAttendanceRepository(AttendanceRepository):
    """Supabase implementation for attendance records."""

    client: Client

    def upsert_attendance(  # noqa: PLR0913
        self,
        session_id: UUID,
        member_id: UUID,
        org_id: UUID,
        method: str,
        recorded_at: datetime,
    ) -> AttendanceRecord:
        """Insert or update the (session_id, member_id) row and return it."""
        response = (
            self.client.table("attendance")
            .upsert(
                {
                    "session_id": str(session_id),
                    "member_id": str(member_id),
                    "org_id": str(org_id),
                    "method": method,
                    "recorded_at": recorded_at.isoformat(),
                },
                on_conflict="session_id,member_id",
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to record attendance")
        row = response.data[0]
        return AttendanceRecord(
            id=UUID(str(row["id"])),
            session_id=UUID(str(row["session_id"])),
            member_id=UUID(str(row["member_id"])),
            org_id=UUID(str(row["org_id"])),
            method=str(row["method"]),
            recorded_at=datetime.fromisoformat(str(row["recorded_at"])),
        )
