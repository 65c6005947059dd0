"""
Credential registry: the static list of privileged accounts.

Entries come from the ``auth.credentials`` settings section. Plaintext
passwords are hashed with bcrypt when the registry is built, so only
hashes live in memory; checks use bcrypt's constant-time compare.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

import bcrypt

from bench.utils.config import CredentialConfig
from bench.utils.exceptions import ConfigError
from bench.utils.logger import get_logger

from .models import Credential

logger = get_logger(__name__)


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password with bcrypt."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


class CredentialRegistry:
    """Immutable lookup of privileged credentials by exact email."""

    def __init__(self, credentials: Iterable[Credential], rounds: int = 12):
        self._by_email: Dict[str, Credential] = {}
        for cred in credentials:
            if cred.email in self._by_email:
                raise ConfigError(f"Duplicate privileged email: {cred.email}")
            self._by_email[cred.email] = cred
        # compared against when the email is unknown, so both paths cost one bcrypt check
        self._dummy_hash = hash_password("not-a-real-password", rounds=rounds)

    @classmethod
    def from_config(cls, entries: Iterable[CredentialConfig], rounds: int = 12) -> "CredentialRegistry":
        credentials: List[Credential] = []
        for entry in entries:
            if entry.password_hash:
                password_hash = entry.password_hash
            elif entry.password:
                password_hash = hash_password(entry.password, rounds=rounds)
            else:
                raise ConfigError(f"Credential {entry.email} has neither password nor password_hash")
            credentials.append(
                Credential(email=entry.email, display_name=entry.name, password_hash=password_hash)
            )
        logger.info("Credential registry loaded", accounts=len(credentials))
        return cls(credentials, rounds=rounds)

    def __len__(self) -> int:
        return len(self._by_email)

    def __contains__(self, email: str) -> bool:
        return email in self._by_email

    def get(self, email: str) -> Optional[Credential]:
        return self._by_email.get(email)

    def authenticate(self, email: str, password: str) -> Optional[Credential]:
        """Return the credential when email and password match, else None."""
        credential = self._by_email.get(email)
        if credential is None:
            verify_password(password, self._dummy_hash)
            return None
        if not verify_password(password, credential.password_hash):
            return None
        return credential
