"""Detached side effects whose failure must not reach the primary response."""

from typing import Any, Callable

from .logger import get_logger

logger = get_logger(__name__)


def run_best_effort(task: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> bool:
    """Run ``func`` and report whether it succeeded.

    Exceptions are logged under ``task`` and never re-raised.
    """
    try:
        func(*args, **kwargs)
        return True
    except Exception as e:
        logger.error("Best-effort task failed", task=task, error=str(e), error_type=type(e).__name__)
        return False
