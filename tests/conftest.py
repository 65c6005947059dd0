from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from bench.auth import build_auth_service
from bench.stores import JsonStore
from bench.utils.config import (
    AuthSettings,
    LoggingSettings,
    ReaperSettings,
    Settings,
    StorageSettings,
    StoreSettings,
)

ADMIN_EMAIL = "stv7168@gmail.com"
ADMIN_PASSWORD = "12345678"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        logging=LoggingSettings(file_path=None),
        auth=AuthSettings(bcrypt_rounds=4),
        store=StoreSettings(backend="json", data_dir=str(tmp_path / "data")),
        reaper=ReaperSettings(enabled=False),
        storage=StorageSettings(
            upload_dir=str(tmp_path / "uploads"),
            public_base_url="http://testserver/uploads",
        ),
    )


@pytest.fixture
def store(settings):
    return JsonStore(Path(settings.store.data_dir))


@pytest.fixture
def auth_service(settings, store, clock):
    return build_auth_service(settings.auth, store, clock=clock)


@pytest.fixture
def app(settings, store, clock):
    from bench_web.app import create_app
    return create_app(settings, store=store, clock=clock)


@pytest.fixture
def client(app):
    return TestClient(app)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def login(client, email=ADMIN_EMAIL, password=ADMIN_PASSWORD):
    res = client.post("/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return res.json()
