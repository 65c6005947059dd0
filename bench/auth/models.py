"""
Super-admin auth models.

Session and Profile mirror rows in the ``super_admin_sessions`` and
``profiles`` tables; Credential is the in-memory registry entry.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from bench.utils.clock import parse_iso, to_iso

SESSIONS_TABLE = "super_admin_sessions"
PROFILES_TABLE = "profiles"

SUPER_ADMIN_ROLE = "super_admin"


class Credential(BaseModel):
    """Privileged account from the credential registry."""

    model_config = ConfigDict(frozen=True)

    email: str
    display_name: str
    password_hash: str
    role: str = SUPER_ADMIN_ROLE


class Profile(BaseModel):
    """User profile record."""

    id: str
    email: str
    full_name: Optional[str] = None
    role: str = "student"
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    approval_status: Optional[str] = None
    email_verified: Optional[bool] = False

    @classmethod
    def from_row(cls, row: dict) -> "Profile":
        return cls(**{k: v for k, v in row.items() if k in cls.model_fields})

    def summary(self) -> dict:
        """Shape returned by login."""
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
        }

    def public(self) -> dict:
        """Shape returned by verify."""
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "avatar_url": self.avatar_url,
        }

    def detail(self) -> dict:
        """Shape returned by the profile endpoint."""
        return {**self.public(), "bio": self.bio}


class Session(BaseModel):
    """Super-admin session row (opaque token)."""

    id: Optional[str] = None
    token: str
    user_id: str
    created_at: datetime
    expires_at: datetime
    last_used_at: Optional[datetime] = None
    user_agent: str = ""
    ip_address: str = ""

    @classmethod
    def from_row(cls, row: dict) -> "Session":
        return cls(
            id=row.get("id"),
            token=row["token"],
            user_id=row["user_id"],
            created_at=parse_iso(row["created_at"]),
            expires_at=parse_iso(row["expires_at"]),
            last_used_at=parse_iso(row["last_used_at"]) if row.get("last_used_at") else None,
            user_agent=row.get("user_agent") or "",
            ip_address=row.get("ip_address") or "",
        )

    def to_row(self) -> dict:
        row = {
            "token": self.token,
            "user_id": self.user_id,
            "created_at": to_iso(self.created_at),
            "expires_at": to_iso(self.expires_at),
            "last_used_at": to_iso(self.last_used_at) if self.last_used_at else None,
            "user_agent": self.user_agent,
            "ip_address": self.ip_address,
        }
        if self.id:
            row["id"] = self.id
        return row


class LoginResult(BaseModel):
    token: str
    user: Profile
    expires_at: datetime
