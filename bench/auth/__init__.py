"""Super-admin session mechanism."""

from datetime import timedelta

from bench.stores import DataStore
from bench.utils.clock import Clock, utc_now
from bench.utils.config import AuthSettings

from .credentials import CredentialRegistry
from .service import SuperAdminAuthService


def build_auth_service(settings: AuthSettings, store: DataStore, clock: Clock = utc_now) -> SuperAdminAuthService:
    registry = CredentialRegistry.from_config(settings.credentials, rounds=settings.bcrypt_rounds)
    return SuperAdminAuthService(
        store=store,
        registry=registry,
        ttl=timedelta(hours=settings.session_ttl_hours),
        clock=clock,
    )


__all__ = ["CredentialRegistry", "SuperAdminAuthService", "build_auth_service"]
