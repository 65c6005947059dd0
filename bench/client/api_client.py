"""
HTTP client for the super-admin endpoints.

Works with a ``requests.Session`` or anything exposing the same
``request(method, url, json=..., headers=...)`` call (FastAPI's
TestClient included).
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from bench.utils.clock import Clock, parse_iso, utc_now
from bench.utils.exceptions import (
    BenchError,
    InvalidOrExpiredToken,
    NotFound,
    Unauthorized,
    UpstreamFailure,
    ValidationError,
)
from bench.utils.logger import get_logger

from .session_cache import ClientSession, ClientSessionCache

logger = get_logger(__name__)

_STATUS_ERRORS = {
    400: ValidationError,
    401: Unauthorized,
    404: NotFound,
}


def _raise_for_response(response) -> None:
    if response.status_code < 400:
        return
    try:
        body = response.json()
    except ValueError:
        body = {}
    message = body.get("error") if isinstance(body, dict) else None
    error_cls = _STATUS_ERRORS.get(response.status_code, UpstreamFailure)
    if response.status_code == 401 and message == InvalidOrExpiredToken.public_message:
        error_cls = InvalidOrExpiredToken
    raise error_cls(message or f"HTTP {response.status_code}", public_message=message)


class SuperAdminClient:
    """Client-side session lifecycle: login, verify, logout, profile."""

    def __init__(
        self,
        base_url: str,
        cache: Optional[ClientSessionCache] = None,
        http: Any = None,
        timeout: Optional[float] = None,
        clock: Clock = utc_now,
    ):
        self.base_url = base_url.rstrip("/")
        self.clock = clock
        self.cache = cache or ClientSessionCache(clock=clock)
        if http is None:
            http = requests.Session()
            timeout = timeout or 10.0
        self.http = http
        self.timeout = timeout
        self.token: Optional[str] = None
        self.user: Optional[Dict[str, Any]] = None
        self._restore()

    def _restore(self) -> None:
        session = self.cache.load()
        if session is not None:
            self.token = session.token
            self.user = session.user

    def _request(self, method: str, path: str, json: Any = None, token: Optional[str] = None):
        headers = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        kwargs: Dict[str, Any] = {"headers": headers}
        if json is not None:
            kwargs["json"] = json
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        try:
            return self.http.request(method, f"{self.base_url}{path}", **kwargs)
        except requests.RequestException as e:
            raise UpstreamFailure(f"{method} {path} failed: {e}", public_message="Server unreachable")

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user and self.token)

    def login(self, email: str, password: str) -> ClientSession:
        """Log in and persist the new session in the cache."""
        response = self._request("POST", "/login", json={"email": email, "password": password})
        _raise_for_response(response)
        body = response.json()
        session = ClientSession(
            token=body["token"],
            user=body["user"],
            login_time=self.clock(),
            expires_at=parse_iso(body["expiresAt"]),
        )
        self.cache.save(session)
        self.token = session.token
        self.user = session.user
        logger.info("Super admin logged in", email=session.email)
        return session

    def verify(self) -> bool:
        """Ask the server whether the current token is live.

        A rejected token clears the cache; only a successful response
        refreshes the cached user.
        """
        if not self.token:
            return False
        response = self._request("GET", "/verify", token=self.token)
        if response.status_code == 401:
            self.clear_all_auth_data()
            return False
        _raise_for_response(response)
        body = response.json()
        if not body.get("valid"):
            self.clear_all_auth_data()
            return False
        self.user = body.get("user")
        self.cache.refresh_user(self.user)
        return True

    def require_super_admin(self) -> Dict[str, Any]:
        """Route guard: cached hint first, then the authoritative server check."""
        if not self.cache.is_super_admin_hint():
            raise Unauthorized("No cached super admin session", public_message="Please log in as super admin")
        if not self.verify():
            raise InvalidOrExpiredToken("Server rejected the cached token")
        return self.user or {}

    def logout(self) -> None:
        """Invalidate the server session, then always clear local state."""
        try:
            if self.token:
                response = self._request("POST", "/logout", token=self.token)
                _raise_for_response(response)
        except BenchError as e:
            logger.warning("Logout request failed", error=str(e))
        finally:
            self.clear_all_auth_data()

    def get_profile(self) -> Dict[str, Any]:
        response = self._request("GET", "/profile", token=self.token)
        _raise_for_response(response)
        return response.json()["user"]

    def update_profile(self, **changes: Any) -> Dict[str, Any]:
        """Send only the given fields (full_name, avatar_url, bio)."""
        response = self._request("PUT", "/profile", json=changes, token=self.token)
        _raise_for_response(response)
        self.user = response.json()["user"]
        self.cache.refresh_user(self.user)
        return self.user

    def clear_all_auth_data(self) -> None:
        """Drop every cached key and reset in-memory state."""
        self.cache.clear()
        self.token = None
        self.user = None
