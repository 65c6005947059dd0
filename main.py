import os
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

# .env must be loaded before settings are read
load_dotenv(Path(__file__).resolve().parent / ".env")

from bench.utils.config import config_manager  # noqa: E402
from bench.utils.exceptions import ConfigError  # noqa: E402
from bench_web.app import check_worker_count  # noqa: E402


def main() -> int:
    """Run the Sulphuric Bench API under uvicorn."""
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))
    environment = os.getenv("ENVIRONMENT", "development").lower()
    workers = int(os.getenv("WORKERS", "1"))

    settings = config_manager.settings
    try:
        check_worker_count(settings, workers)
    except ConfigError as e:
        print(f"Refusing to start: {e}", file=sys.stderr)
        return 1

    print(f"Sulphuric Bench API ({environment}, store={settings.store.backend}) on http://{host}:{port}")
    options = {"host": host, "port": port, "log_level": "info" if environment == "production" else "debug"}
    if workers > 1:
        options["workers"] = workers
    else:
        options["reload"] = environment == "development"
    uvicorn.run("bench_web.main:app", **options)
    return 0


if __name__ == "__main__":
    sys.exit(main())
