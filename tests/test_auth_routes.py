from datetime import timedelta

from bench.auth.models import SESSIONS_TABLE
from bench.stores import eq
from bench.utils.clock import parse_iso

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, bearer, login


def test_super_admin_session_lifecycle(client, clock):
    # Login
    body = login(client)
    assert body["success"] is True
    token = body["token"]
    assert body["user"]["email"] == ADMIN_EMAIL
    assert body["user"]["role"] == "super_admin"
    assert set(body["user"]) == {"id", "email", "full_name", "role"}
    assert parse_iso(body["expiresAt"]) == clock.now + timedelta(hours=24)

    # Verify
    res = client.get("/verify", headers=bearer(token))
    assert res.status_code == 200, res.text
    verified = res.json()
    assert verified["valid"] is True
    assert verified["user"]["id"] == body["user"]["id"]
    assert "avatar_url" in verified["user"]

    # Profile read and partial update
    res = client.get("/profile", headers=bearer(token))
    assert res.status_code == 200, res.text
    assert res.json()["user"]["bio"] is None

    res = client.put("/profile", headers=bearer(token), json={"full_name": "New Name"})
    assert res.status_code == 200, res.text
    user = res.json()["user"]
    assert user["full_name"] == "New Name"
    assert user["email"] == ADMIN_EMAIL
    assert user["role"] == "super_admin"

    # Logout, then the token is dead
    res = client.post("/logout", headers=bearer(token))
    assert res.status_code == 200
    assert res.json() == {"success": True, "message": "Logged out successfully"}

    res = client.get("/verify", headers=bearer(token))
    assert res.status_code == 401
    assert res.json() == {"valid": False, "error": "Invalid or expired token"}

    # Logging out twice is fine
    res = client.post("/logout", headers=bearer(token))
    assert res.status_code == 200


def test_bad_credentials_are_indistinguishable(client):
    wrong_password = client.post("/login", json={"email": ADMIN_EMAIL, "password": "nope"})
    unknown_email = client.post("/login", json={"email": "ghost@example.com", "password": ADMIN_PASSWORD})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"success": False, "error": "Invalid credentials"}


def test_login_requires_both_fields(client):
    res = client.post("/login", json={"email": ADMIN_EMAIL})
    assert res.status_code == 400
    assert res.json() == {"success": False, "error": "Email and password are required"}

    res = client.post("/login", content=b"not json", headers={"Content-Type": "application/json"})
    assert res.status_code == 400
    assert res.json()["success"] is False


def test_missing_or_malformed_token(client):
    res = client.get("/profile")
    assert res.status_code == 401
    assert res.json() == {"success": False, "error": "No token provided"}

    res = client.get("/profile", headers={"Authorization": "Token abc"})
    assert res.status_code == 401
    assert res.json()["error"] == "No token provided"

    res = client.get("/verify")
    assert res.status_code == 401
    assert res.json() == {"valid": False, "error": "No token provided"}

    res = client.post("/logout")
    assert res.status_code == 401

    res = client.get("/profile", headers=bearer("made-up-token"))
    assert res.status_code == 401
    assert res.json()["error"] == "Invalid or expired token"


def test_token_rejected_after_ttl(client, clock):
    token = login(client)["token"]
    clock.advance(hours=24)
    res = client.get("/verify", headers=bearer(token))
    assert res.status_code == 401
    res = client.get("/profile", headers=bearer(token))
    assert res.status_code == 401


def test_sessions_record_client_and_last_use(client, store, clock):
    res = client.post(
        "/login",
        json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
        headers={"X-Forwarded-For": "203.0.113.5, 10.0.0.1", "User-Agent": "bench-tests"},
    )
    token = res.json()["token"]
    row = store.select_one(SESSIONS_TABLE, [eq("token", token)])
    assert row["ip_address"] == "203.0.113.5"
    assert row["user_agent"] == "bench-tests"
    assert row["last_used_at"] is None

    clock.advance(minutes=10)
    client.get("/profile", headers=bearer(token))
    row = store.select_one(SESSIONS_TABLE, [eq("token", token)])
    assert parse_iso(row["last_used_at"]) == clock.now


def test_two_logins_are_independent(client):
    first = login(client)["token"]
    second = login(client)["token"]
    assert first != second

    client.post("/logout", headers=bearer(first))
    assert client.get("/verify", headers=bearer(first)).status_code == 401
    assert client.get("/verify", headers=bearer(second)).status_code == 200


def test_unknown_route_uses_error_shape(client):
    res = client.get("/does-not-exist")
    assert res.status_code == 404
    assert res.json()["success"] is False


def test_profile_other_methods_not_allowed(client):
    token = login(client)["token"]
    res = client.delete("/profile", headers=bearer(token))
    assert res.status_code == 405
    assert res.json()["success"] is False
