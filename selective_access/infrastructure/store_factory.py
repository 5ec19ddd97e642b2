from __future__ import annotations

from selective_access.domain.exceptions import ConfigurationError
from selective_access.infrastructure.db.engine import get_engine
from selective_access.infrastructure.db.repositories.identity_store_repository import (
    SqlIdentityStoreRepository,
)
from selective_access.infrastructure.rest.supabase_rest_store import SupabaseRestIdentityStore
from selective_access.shared.config import Settings


def build_identity_store(settings: Settings) -> SqlIdentityStoreRepository | SupabaseRestIdentityStore:
    """Direct Postgres access wins over the REST API when both are configured."""
    if settings.postgres_dsn:
        return SqlIdentityStoreRepository(get_engine(settings.postgres_dsn))
    if not settings.supabase_url:
        raise ConfigurationError("POSTGRES_DSN or SUPABASE_URL is required.")
    if not settings.supabase_service_role_key:
        raise ConfigurationError("SUPABASE_SERVICE_ROLE_KEY is required.")
    return SupabaseRestIdentityStore(
        supabase_url=settings.supabase_url,
        service_role_key=settings.supabase_service_role_key,
        timeout_seconds=settings.http_timeout_seconds,
    )
