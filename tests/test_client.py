from datetime import timedelta
from pathlib import Path

import pytest
import requests

from bench.client import ClientSession, ClientSessionCache, SuperAdminClient
from bench.client.session_cache import FLAG_KEYS, SESSION_KEY
from bench.utils.exceptions import InvalidOrExpiredToken, Unauthorized, UpstreamFailure

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD


@pytest.fixture
def cache(tmp_path: Path, clock):
    return ClientSessionCache(tmp_path / "client" / "session.json", clock=clock)


@pytest.fixture
def admin(client, cache, clock):
    return SuperAdminClient("http://testserver", cache=cache, http=client, clock=clock)


def test_login_populates_cache(admin, cache, clock):
    session = admin.login(ADMIN_EMAIL, ADMIN_PASSWORD)
    assert session.email == ADMIN_EMAIL
    assert session.expires_at == clock.now + timedelta(hours=24)
    assert admin.is_authenticated

    assert cache.get_flag("isSuperAdmin") == "true"
    assert cache.get_flag("superAdminEmail") == ADMIN_EMAIL
    assert cache.get_flag("superAdminLoginTime")
    assert cache.load().token == session.token


def test_new_client_restores_cached_session(admin, client, cache, clock):
    admin.login(ADMIN_EMAIL, ADMIN_PASSWORD)

    restored = SuperAdminClient("http://testserver", cache=cache, http=client, clock=clock)
    assert restored.is_authenticated
    user = restored.require_super_admin()
    assert user["email"] == ADMIN_EMAIL


def test_profile_round_trip(admin):
    admin.login(ADMIN_EMAIL, ADMIN_PASSWORD)
    assert admin.get_profile()["email"] == ADMIN_EMAIL

    user = admin.update_profile(full_name="Bench Admin")
    assert user["full_name"] == "Bench Admin"
    assert admin.cache.load().user["full_name"] == "Bench Admin"


def test_logout_clears_everything(admin, cache):
    admin.login(ADMIN_EMAIL, ADMIN_PASSWORD)
    token = admin.token

    admin.logout()
    assert not admin.is_authenticated
    assert cache.load() is None
    assert not cache.path.exists()
    # Server-side session is gone too
    assert admin.http.get("/verify", headers={"Authorization": f"Bearer {token}"}).status_code == 401


def test_server_rejection_clears_cache(admin, cache, clock):
    admin.login(ADMIN_EMAIL, ADMIN_PASSWORD)
    # Server kills the session behind the client's back
    admin.http.post("/logout", headers={"Authorization": f"Bearer {admin.token}"})

    assert admin.verify() is False
    assert cache.load() is None
    with pytest.raises(Unauthorized):
        admin.require_super_admin()


def test_expired_cache_is_discarded(admin, cache, clock):
    admin.login(ADMIN_EMAIL, ADMIN_PASSWORD)
    clock.advance(hours=24)
    assert cache.load() is None
    assert not cache.is_super_admin_hint()


def test_require_super_admin_when_token_dies(admin, cache, clock, monkeypatch):
    admin.login(ADMIN_EMAIL, ADMIN_PASSWORD)
    monkeypatch.setattr(admin, "verify", lambda: False)
    with pytest.raises(InvalidOrExpiredToken):
        admin.require_super_admin()


def test_login_failure_leaves_cache_empty(admin, cache):
    with pytest.raises(Unauthorized):
        admin.login(ADMIN_EMAIL, "wrong-password")
    assert cache.load() is None
    assert not admin.is_authenticated


class UnreachableHttp:
    def request(self, method, url, **kwargs):
        raise requests.ConnectionError("connection refused")


def test_network_error_keeps_cache(cache, clock):
    cache.save(ClientSession(
        token="cached-token",
        user={"id": "u1", "email": ADMIN_EMAIL, "role": "super_admin"},
        login_time=clock.now,
        expires_at=clock.now + timedelta(hours=1),
    ))
    offline = SuperAdminClient("http://offline", cache=cache, http=UnreachableHttp(), clock=clock)
    with pytest.raises(UpstreamFailure):
        offline.verify()
    assert cache.load() is not None

    # Logout clears locally even when the server is unreachable
    offline.logout()
    assert cache.load() is None


def test_clear_keeps_unrelated_keys(cache, clock):
    cache.save(ClientSession(
        token="t",
        user={"email": ADMIN_EMAIL, "role": "super_admin"},
        login_time=clock.now,
        expires_at=clock.now + timedelta(hours=1),
    ))
    data = cache._read()
    data["theme"] = "dark"
    data["simpleAuthUser"] = "{}"
    cache._write(data)

    cache.clear()
    remaining = cache._read()
    assert remaining == {"theme": "dark"}
    assert SESSION_KEY not in remaining
    assert not any(k in remaining for k in FLAG_KEYS)
