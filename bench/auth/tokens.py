"""Opaque bearer token generation."""

import base64
import secrets

TOKEN_BYTES = 32


def generate_token(nbytes: int = TOKEN_BYTES) -> str:
    """Return ``nbytes`` of CSPRNG output as unpadded base64url.

    32 bytes encode to 43 characters from ``[A-Za-z0-9_-]``.
    """
    raw = secrets.token_bytes(nbytes)
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def parse_bearer(header_value) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` value.

    Returns an empty string when the header is absent or malformed.
    """
    if not header_value or not header_value.startswith("Bearer "):
        return ""
    return header_value[len("Bearer "):].strip()
