"""ASGI entry point: ``uvicorn bench_web.main:app``"""

import os

from bench.utils.config import config_manager
from bench.utils.logger import setup_logger

from .app import check_worker_count, create_app

settings = config_manager.settings

setup_logger(
    log_level=settings.logging.level,
    log_format=settings.logging.format,
    file_path=settings.logging.file_path,
    max_bytes=settings.logging.max_bytes,
    backup_count=settings.logging.backup_count,
)

# uvicorn's --workers defaults to WEB_CONCURRENCY; main.py passes WORKERS
check_worker_count(settings, int(os.getenv("WEB_CONCURRENCY") or os.getenv("WORKERS") or "1"))

app = create_app(settings)
