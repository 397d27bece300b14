"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from ble_attendance.domain.tokens import (
    DEVELOPMENT_POLICY,
    PRODUCTION_POLICY,
    EntropyPolicy,
)

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

UINT16_MAX = 0xFFFF


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    log_level: str = "INFO"
    entropy_profile: str = "production"
    token_max_retries: int = 10
    max_ttl_seconds: int = 86400
    beacon_org_codes: str = "nhs=1,nhsa=2"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_org_codes(raw: str | None) -> dict[str, int]:
    """Parse `slug=code` pairs for beacon major values from env."""
    if raw is None:
        return {}
    codes: dict[str, int] = {}
    for chunk in raw.split(","):
        slug, _, value = chunk.partition("=")
        slug = slug.strip().lower()
        value = value.strip()
        if not slug or not value.isdigit():
            continue
        code = int(value)
        if 0 < code <= UINT16_MAX:
            codes[slug] = code
    return codes


def resolve_entropy_policy(profile: str) -> EntropyPolicy:
    """Return the entropy policy for a profile name.

    Anything other than an explicit ``development`` gets the production floor.
    """
    if profile.strip().lower() == DEVELOPMENT_POLICY.name:
        return DEVELOPMENT_POLICY
    return PRODUCTION_POLICY
