"""Domain exceptions for projecthub.

Every error the core raises derives from ProjectHubError and carries the
HTTP status it maps to. The API layer turns them into the error envelope
(see projecthub.api.errors); services never build responses themselves.
"""

from typing import Optional


class ProjectHubError(Exception):
    """Base class for all errors raised by the core."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ─── Authentication (401) ───────────────────────────────


class AuthenticationError(ProjectHubError):
    status_code = 401
    default_message = "Authentication required"


class InvalidCredentialsError(AuthenticationError):
    """Unknown username or wrong password. Deliberately indistinguishable."""

    default_message = "Invalid username or password"


class UserNotFoundError(AuthenticationError):
    default_message = "User does not exist"


class TokenInvalidError(AuthenticationError):
    default_message = "Invalid token"


class TokenExpiredError(AuthenticationError):
    default_message = "Token has expired"


class UnauthenticatedError(AuthenticationError):
    """Raised by the session gate. Hides which token check failed."""


# ─── Conflicts (409) ────────────────────────────────────


class DuplicateError(ProjectHubError):
    status_code = 409
    default_message = "Resource already exists"


class DuplicateUsernameError(DuplicateError):
    default_message = "Username is already taken"


class DuplicateEmailError(DuplicateError):
    default_message = "Email is already registered"


# ─── Ownership ──────────────────────────────────────────


class ResourceNotFoundError(ProjectHubError):
    status_code = 404
    default_message = "Project not found"


class ResourceForbiddenError(ProjectHubError):
    status_code = 403
    default_message = "You do not have access to this project"


# ─── Validation (400) ───────────────────────────────────


class ValidationFailedError(ProjectHubError):
    """Input failed validation. `errors` holds field-level detail."""

    status_code = 400
    default_message = "Validation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[list[dict]] = None,
    ):
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailedError":
        return cls(message, errors=[{"field": field, "message": message}])


class BatchTooLargeError(ValidationFailedError):
    default_message = "Batch import supports at most 100 projects"
