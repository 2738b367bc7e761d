# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Domain exceptions.

Service modules raise these; ``main.py`` registers one handler that turns
them into JSON responses.  Each class carries the HTTP status and a message
that is safe to show to the caller.  Anything that is not a
``CredentialVaultError`` is an internal fault and is answered with a
generic 500 by the catch-all handler.
"""

from typing import Optional


class CredentialVaultError(Exception):
    status_code = 500
    detail = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


# -- 400 -------------------------------------------------------------------


class ValidationError(CredentialVaultError):
    """Bad input shape or content.  ``errors`` maps field name → message."""

    status_code = 400
    detail = "Validation failed"

    def __init__(self, errors: dict[str, str], detail: Optional[str] = None):
        self.errors = errors
        super().__init__(detail)


class DuplicateIdentity(CredentialVaultError):
    status_code = 400
    detail = "User already exists with this email or username"


class InvalidOperation(CredentialVaultError):
    status_code = 400
    detail = "Operation not allowed"


# -- 401 -------------------------------------------------------------------


class Unauthenticated(CredentialVaultError):
    status_code = 401
    detail = "Not authorized to access this route"


class InvalidCredentials(CredentialVaultError):
    status_code = 401
    detail = "Invalid credentials"


class AccountDeactivated(CredentialVaultError):
    status_code = 401
    detail = "Account is deactivated"


class AccountLocked(CredentialVaultError):
    status_code = 401
    detail = "Account is temporarily locked due to multiple failed login attempts"


class InvalidTokenError(Unauthenticated):
    """Raised by token verification; never shown with more detail than 401."""


# -- 403 -------------------------------------------------------------------


class Forbidden(CredentialVaultError):
    status_code = 403
    detail = "Access denied"


# -- 404 -------------------------------------------------------------------


class NotFound(CredentialVaultError):
    status_code = 404
    detail = "Not found"


class DivisionNotFound(NotFound):
    detail = "Division not found"


class CredentialNotFound(NotFound):
    detail = "Credential not found"


class UserNotFound(NotFound):
    detail = "User not found"


# -- 409 -------------------------------------------------------------------


class ConcurrentModification(CredentialVaultError):
    status_code = 409
    detail = "The repository was modified by another request, please retry"


# -- 500 -------------------------------------------------------------------


class DecryptionError(CredentialVaultError):
    """Stored ciphertext could not be decrypted.  Internal fault."""

    status_code = 500
    detail = "Internal server error"
