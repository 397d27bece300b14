"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from ble_attendance.adapters.supabase_attendance_repository import (
    SupabaseAttendanceRepository,
)
from ble_attendance.adapters.supabase_audit_repository import SupabaseAuditRepository
from ble_attendance.adapters.supabase_membership_repository import (
    SupabaseMembershipRepository,
)
from ble_attendance.adapters.supabase_organization_repository import (
    SupabaseOrganizationRepository,
)
from ble_attendance.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from ble_attendance.config import Settings, parse_org_codes, resolve_entropy_policy
from ble_attendance.services.attendance import AttendanceRecorder
from ble_attendance.services.audit import AuditService
from ble_attendance.services.beacon import BeaconEncoder
from ble_attendance.services.entropy import EntropyValidator
from ble_attendance.services.lifecycle import SessionLifecycleManager
from ble_attendance.services.memberships import MembershipAuthorizer
from ble_attendance.services.sessions import SessionStore
from ble_attendance.services.tokens import TokenGenerator


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session_store: SessionStore
    token_generator: TokenGenerator
    authorizer: MembershipAuthorizer
    attendance_recorder: AttendanceRecorder
    lifecycle_manager: SessionLifecycleManager


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    session_store = SessionStore(SupabaseSessionRepository(supabase_client))
    authorizer = MembershipAuthorizer(SupabaseMembershipRepository(supabase_client))
    token_generator = TokenGenerator(
        lookup=session_store, max_retries=resolved_settings.token_max_retries
    )
    policy = resolve_entropy_policy(resolved_settings.entropy_profile)
    lifecycle_manager = SessionLifecycleManager(
        session_store=session_store,
        token_generator=token_generator,
        entropy_validator=EntropyValidator(policy=policy),
        beacon_encoder=BeaconEncoder(
            org_codes=parse_org_codes(resolved_settings.beacon_org_codes)
        ),
        organization_repository=SupabaseOrganizationRepository(supabase_client),
        audit_service=AuditService(SupabaseAuditRepository(supabase_client)),
        max_ttl_seconds=resolved_settings.max_ttl_seconds,
    )
    attendance_recorder = AttendanceRecorder(
        session_store=session_store,
        authorizer=authorizer,
        repository=SupabaseAttendanceRepository(supabase_client),
    )

    return AppContainer(
        settings=resolved_settings,
        session_store=session_store,
        token_generator=token_generator,
        authorizer=authorizer,
        attendance_recorder=attendance_recorder,
        lifecycle_manager=lifecycle_manager,
    )
