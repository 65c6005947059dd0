"""Diagnostics probe."""

from fastapi import APIRouter, Request

from bench.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request):
    """Best-effort store connectivity check. Never fails."""
    store = request.app.state.store
    try:
        store_ok = bool(store.ping())
    except Exception as e:
        logger.warning("Health probe failed", error=str(e))
        store_ok = False
    return {
        "status": "ok" if store_ok else "degraded",
        "store": store_ok,
        "version": request.app.version,
    }
