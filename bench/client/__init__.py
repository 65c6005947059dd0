"""Client-side counterpart of the super-admin session mechanism."""

from .api_client import SuperAdminClient
from .session_cache import ClientSession, ClientSessionCache

__all__ = ["ClientSession", "ClientSessionCache", "SuperAdminClient"]
