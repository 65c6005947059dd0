"""Custom exceptions for the Sulphuric Bench backend"""

from typing import Optional


class BenchError(Exception):
    """Base exception for Sulphuric Bench.

    ``status_code`` and ``public_message`` are what the HTTP layer sends
    back; the exception's own message may carry internal detail and is
    only logged.
    """

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, public_message: Optional[str] = None):
        if public_message is not None:
            self.public_message = public_message
        super().__init__(message or self.public_message)


class ValidationError(BenchError):
    """Malformed or missing input"""

    status_code = 400
    public_message = "Invalid request"


class Unauthorized(BenchError):
    """Bad credentials. Never says which field was wrong."""

    status_code = 401
    public_message = "Invalid credentials"


class MissingToken(Unauthorized):
    """Authorization header absent or not in `Bearer <token>` form"""

    public_message = "No token provided"


class InvalidOrExpiredToken(Unauthorized):
    """Token unknown, deleted or past its expiry"""

    public_message = "Invalid or expired token"


class NotFound(BenchError):
    """Requested resource does not exist"""

    status_code = 404
    public_message = "Not found"


class UpstreamFailure(BenchError):
    """Data store or storage backend failed"""

    status_code = 500
    public_message = "Operation failed"


class LogoutFailed(UpstreamFailure):
    """Session row could not be deleted"""

    public_message = "Logout failed"


class StoreError(BenchError):
    """Error raised by a data store backend"""
    pass


class UniqueViolation(StoreError):
    """Insert collided with a unique column"""

    def __init__(self, table: str, column: str, value: object = None):
        self.table = table
        self.column = column
        self.value = value
        super().__init__(f"Duplicate value for {table}.{column}")


class StorageError(BenchError):
    """Object storage rejected an upload"""

    status_code = 400
    public_message = "Upload failed"


class ConfigError(BenchError):
    """Configuration error"""
    pass
