"""
Client-side super-admin session cache.

Holds an explicit session object whose lifetime mirrors the server
token's expiresAt, plus the flag keys older front-ends read
(isSuperAdmin, superAdminEmail, superAdminLoginTime). Everything here is
a UI hint: the server re-verifies every privileged request.
"""

from __future__ import annotations

import json
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel

from bench.auth.models import SUPER_ADMIN_ROLE
from bench.utils.clock import Clock, to_iso, utc_now
from bench.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CACHE_FILE = Path(os.getenv("BENCH_CLIENT_CACHE", str(Path.home() / ".bench" / "session.json")))

SESSION_KEY = "super_admin_session"
FLAG_KEYS = ("isSuperAdmin", "superAdminEmail", "superAdminLoginTime")
# removed on clear along with the keys above
LEGACY_KEYS = ("super_admin_token", "super-admin-session", "simpleAuthUser")


class ClientSession(BaseModel):
    token: str
    user: Dict[str, Any]
    login_time: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    @property
    def email(self) -> Optional[str]:
        return self.user.get("email")

    @property
    def role(self) -> Optional[str]:
        return self.user.get("role")


class ClientSessionCache:
    """File-backed key/value cache for the client session."""

    def __init__(self, path: Optional[Path] = None, clock: Clock = utc_now):
        self.path = Path(path) if path else DEFAULT_CACHE_FILE
        self.clock = clock

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w", dir=str(self.path.parent), delete=False, encoding="utf-8"
        ) as tf:
            json.dump(data, tf, indent=2, ensure_ascii=False)
            temp_path = Path(tf.name)
        try:
            shutil.move(str(temp_path), str(self.path))
        except Exception:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def save(self, session: ClientSession) -> None:
        data = self._read()
        data[SESSION_KEY] = session.model_dump(mode="json")
        data["isSuperAdmin"] = "true" if session.role == SUPER_ADMIN_ROLE else "false"
        data["superAdminEmail"] = session.email or ""
        data["superAdminLoginTime"] = to_iso(session.login_time)
        self._write(data)

    def load(self) -> Optional[ClientSession]:
        """Return the cached session, discarding it once past its expiry."""
        raw = self._read().get(SESSION_KEY)
        if not raw:
            return None
        try:
            session = ClientSession(**raw)
        except ValueError:
            logger.warning("Discarding unreadable client session", path=str(self.path))
            self.clear()
            return None
        if session.is_expired(self.clock()):
            self.clear()
            return None
        return session

    def refresh_user(self, user: Dict[str, Any]) -> Optional[ClientSession]:
        """Replace the cached user with a verify response's user."""
        session = self.load()
        if session is None:
            return None
        session = session.model_copy(update={"user": user})
        self.save(session)
        return session

    def get_flag(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def is_super_admin_hint(self) -> bool:
        """Fast, non-authoritative check for showing privileged UI."""
        session = self.load()
        return session is not None and session.role == SUPER_ADMIN_ROLE

    def clear(self) -> None:
        """Remove every auth-related key."""
        data = self._read()
        if not data:
            return
        for key in (SESSION_KEY,) + FLAG_KEYS + LEGACY_KEYS:
            data.pop(key, None)
        if data:
            self._write(data)
        else:
            self.path.unlink(missing_ok=True)
