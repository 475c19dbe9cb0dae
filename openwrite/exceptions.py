"""
Exception types raised below the HTTP layer.

Routes translate these into HTTP status codes; the facade and the security
helpers never raise ``HTTPException`` themselves.
"""


class OpenWriteError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, original_exception: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_exception = original_exception

    def __str__(self):
        base_msg = super().__str__()
        if self.original_exception:
            return f"{base_msg} (caused by: {self.original_exception})"
        return base_msg


class RecordNotFoundError(OpenWriteError):
    """A referenced row does not exist (or is outside the caller's scope)."""


class ConstraintViolationError(OpenWriteError):
    """Input breaks a data-model rule the database alone does not enforce."""


class EncryptionError(OpenWriteError):
    """API key encryption or decryption failed."""
