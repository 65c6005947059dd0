"""Data store backends and the factory that picks one from settings."""

from pathlib import Path

from bench.utils.config import StoreSettings
from bench.utils.exceptions import ConfigError

from .base import DataStore, Filter, eq, gt, gte, lt, lte, neq
from .json_store import JsonStore
from .postgrest_store import PostgrestStore


def create_store(settings: StoreSettings) -> DataStore:
    """Build the DataStore configured in ``settings``."""
    backend = (settings.backend or "json").strip().lower()
    if backend == "json":
        return JsonStore(Path(settings.data_dir))
    if backend == "postgrest":
        return PostgrestStore(
            url=settings.url or "",
            service_key=settings.service_key or "",
            timeout=settings.timeout_seconds,
        )
    raise ConfigError(f"Unknown store backend: {settings.backend}")


__all__ = [
    "DataStore",
    "Filter",
    "JsonStore",
    "PostgrestStore",
    "create_store",
    "eq",
    "gt",
    "gte",
    "lt",
    "lte",
    "neq",
]
