"""Error taxonomy shared by the pipeline and the API."""

from __future__ import annotations


class PhoneverseError(Exception):
    """Base class; ``status_code`` is the HTTP status the API maps it to."""

    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PhoneverseError):
    status_code = 400
    default_message = "Missing or invalid fields"


class DuplicateUserError(PhoneverseError):
    status_code = 409
    default_message = "Username or email already exists"


class AuthError(PhoneverseError):
    status_code = 401
    default_message = "Authentication required"


class InvalidCredentialsError(AuthError):
    default_message = "Invalid credentials"


class AccountSuspendedError(AuthError):
    default_message = "Account is suspended"


class InvalidSessionError(AuthError):
    default_message = "Invalid or expired session"


class AuthorizationError(PhoneverseError):
    status_code = 403
    default_message = "Admin access required"


class NotFoundError(PhoneverseError):
    status_code = 404
    default_message = "Not found"


class UpstreamError(PhoneverseError):
    """RSS or AI provider failure; recovered locally, never returned to clients."""

    status_code = 502
    default_message = "Upstream service failed"


class PersistenceError(PhoneverseError):
    status_code = 500
    default_message = "Database error"
