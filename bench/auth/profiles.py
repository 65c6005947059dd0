"""Profile lookup and lazy creation for privileged logins."""

from __future__ import annotations

from typing import Optional

from bench.stores import DataStore, eq
from bench.utils.clock import Clock, to_iso, utc_now
from bench.utils.exceptions import NotFound, StoreError, UniqueViolation
from bench.utils.logger import get_logger

from .models import PROFILES_TABLE, SUPER_ADMIN_ROLE, Credential, Profile

logger = get_logger(__name__)

EDITABLE_FIELDS = ("full_name", "avatar_url", "bio")


class ProfileResolver:
    def __init__(self, store: DataStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock

    def find_by_email(self, email: str) -> Optional[Profile]:
        row = self.store.select_one(PROFILES_TABLE, [eq("email", email)])
        return Profile.from_row(row) if row else None

    def find_by_id(self, user_id: str) -> Optional[Profile]:
        row = self.store.select_one(PROFILES_TABLE, [eq("id", user_id)])
        return Profile.from_row(row) if row else None

    def resolve(self, credential: Credential) -> Profile:
        """Return the profile for ``credential``, creating it on first login.

        Two concurrent first logins may both try to insert; the loser's
        UniqueViolation is resolved by reading the winner's row.
        """
        existing = self.find_by_email(credential.email)
        if existing:
            return existing

        now = to_iso(self.clock())
        try:
            row = self.store.insert(PROFILES_TABLE, {
                "email": credential.email,
                "full_name": credential.display_name,
                "role": SUPER_ADMIN_ROLE,
                "email_verified": True,
                "approval_status": "approved",
                "created_at": now,
                "updated_at": now,
            })
        except UniqueViolation:
            winner = self.find_by_email(credential.email)
            if winner is None:
                raise StoreError(f"Profile for {credential.email} vanished after unique violation")
            return winner

        logger.info("Super admin profile created", user_id=row["id"], email=credential.email)
        return Profile.from_row(row)

    def update(self, user_id: str, changes: dict) -> Profile:
        """Apply editable fields from ``changes``; other keys are ignored."""
        values = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
        if not values:
            profile = self.find_by_id(user_id)
            if profile is None:
                raise NotFound(f"Profile {user_id} not found")
            return profile
        values["updated_at"] = to_iso(self.clock())
        rows = self.store.update(PROFILES_TABLE, values, [eq("id", user_id)])
        if not rows:
            raise NotFound(f"Profile {user_id} not found")
        return Profile.from_row(rows[0])
