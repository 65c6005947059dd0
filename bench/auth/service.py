"""
Super-admin authentication service layer.

- Credential check against the static registry (bcrypt hashes)
- Opaque session tokens with a fixed TTL (24 hours by default)
- Sessions persisted in the ``super_admin_sessions`` table of a DataStore

verify() is the single authorization gate for privileged operations;
nothing here trusts client-side state.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from bench.stores import DataStore, eq, gt, lte
from bench.utils.best_effort import run_best_effort
from bench.utils.clock import Clock, to_iso, utc_now
from bench.utils.exceptions import (
    InvalidOrExpiredToken,
    LogoutFailed,
    MissingToken,
    StoreError,
    Unauthorized,
    UpstreamFailure,
    ValidationError,
)
from bench.utils.logger import get_logger

from .credentials import CredentialRegistry
from .models import SESSIONS_TABLE, LoginResult, Profile, Session
from .profiles import ProfileResolver
from .tokens import generate_token

logger = get_logger(__name__)

SESSION_TTL_HOURS = 24


class SuperAdminAuthService:
    """Login, verify, logout and profile access for super admins."""

    def __init__(
        self,
        store: DataStore,
        registry: CredentialRegistry,
        ttl: timedelta = timedelta(hours=SESSION_TTL_HOURS),
        clock: Clock = utc_now,
    ):
        self.store = store
        self.registry = registry
        self.ttl = ttl
        self.clock = clock
        self.profiles = ProfileResolver(store, clock=clock)

    # -- login ---------------------------------------------------------

    def login(
        self,
        email: Optional[str],
        password: Optional[str],
        user_agent: str = "",
        ip_address: str = "",
    ) -> LoginResult:
        """Check credentials and issue a brand-new session token.

        Raises ValidationError when a field is missing, Unauthorized on
        any credential mismatch and UpstreamFailure when the profile
        cannot be resolved. Failing to persist the session row is
        logged and does not fail the login.
        """
        if not email or not password:
            raise ValidationError("Missing email or password", public_message="Email and password are required")

        credential = self.registry.authenticate(email, password)
        if credential is None:
            logger.info("Super admin login rejected")
            raise Unauthorized("Invalid credentials")

        try:
            profile = self.profiles.resolve(credential)
        except StoreError as e:
            logger.error("Profile resolution failed", email=credential.email, error=str(e))
            raise UpstreamFailure(str(e), public_message="Login failed")

        now = self.clock()
        session = Session(
            token=generate_token(),
            user_id=profile.id,
            created_at=now,
            expires_at=now + self.ttl,
            user_agent=user_agent or "",
            ip_address=ip_address or "",
        )
        stored = run_best_effort("session-insert", self.store.insert, SESSIONS_TABLE, session.to_row())
        logger.info(
            "Super admin session issued",
            user_id=profile.id,
            expires_at=to_iso(session.expires_at),
            tracked=stored,
        )
        return LoginResult(token=session.token, user=profile, expires_at=session.expires_at)

    # -- verify --------------------------------------------------------

    def find_active_session(self, token: str) -> Session:
        if not token:
            raise MissingToken("No token provided")
        try:
            row = self.store.select_one(
                SESSIONS_TABLE, [eq("token", token), gt("expires_at", self.clock())]
            )
        except StoreError as e:
            logger.error("Session lookup failed", error=str(e))
            raise UpstreamFailure(str(e), public_message="Verification failed")
        if row is None:
            raise InvalidOrExpiredToken("Invalid or expired token")
        return Session.from_row(row)

    def verify(self, token: str, touch: bool = True) -> Profile:
        """Return the profile owning ``token``.

        Raises MissingToken for an empty token and InvalidOrExpiredToken
        when no unexpired session (or its profile) exists. With
        ``touch=False`` the caller is expected to run touch_session()
        itself, e.g. after the response has been sent.
        """
        session = self.find_active_session(token)
        try:
            profile = self.profiles.find_by_id(session.user_id)
        except StoreError as e:
            logger.error("Profile lookup failed", user_id=session.user_id, error=str(e))
            raise UpstreamFailure(str(e), public_message="Verification failed")
        if profile is None:
            raise InvalidOrExpiredToken("Session owner no longer exists")
        if touch:
            self.touch_session(token)
        return profile

    def touch_session(self, token: str) -> bool:
        """Advance last_used_at. Never raises."""
        return run_best_effort(
            "session-touch",
            self.store.update,
            SESSIONS_TABLE,
            {"last_used_at": to_iso(self.clock())},
            [eq("token", token)],
        )

    # -- logout --------------------------------------------------------

    def logout(self, token: str) -> None:
        """Delete the session for ``token``. Idempotent; no validity check."""
        if not token:
            raise MissingToken("No token provided")
        try:
            removed = self.store.delete(SESSIONS_TABLE, [eq("token", token)])
        except StoreError as e:
            logger.error("Session deletion failed", error=str(e))
            raise LogoutFailed(str(e))
        logger.info("Super admin logout", sessions_removed=removed)

    # -- profile -------------------------------------------------------

    def update_profile(self, user_id: str, changes: dict) -> Profile:
        """Write full_name/avatar_url/bio for an already verified user.

        Only keys present in ``changes`` are written; email and role never
        change here.
        """
        try:
            return self.profiles.update(user_id, changes)
        except StoreError as e:
            logger.error("Profile update failed", user_id=user_id, error=str(e))
            raise UpstreamFailure(str(e))

    # -- maintenance ---------------------------------------------------

    def reap_expired_sessions(self) -> int:
        """Delete every session whose expiry has passed."""
        removed = self.store.delete(SESSIONS_TABLE, [lte("expires_at", self.clock())])
        if removed:
            logger.info("Expired sessions reaped", count=removed)
        return removed
