"""Explicit input validation for the core operations.

Learn: The HTTP layer only checks JSON shape. Length and format rules live
here so the services enforce them no matter who calls them (API, CLI,
tests). Each check raises ValidationFailedError with the offending field.
"""

import re
from typing import Any

from projecthub.errors import ValidationFailedError

USERNAME_MIN, USERNAME_MAX = 4, 20
PASSWORD_MIN = 8
PROJECT_NAME_MIN, PROJECT_NAME_MAX = 1, 50

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_username(username: Any) -> str:
    if not isinstance(username, str):
        raise ValidationFailedError.for_field("username", "Username must be a string")
    if not USERNAME_MIN <= len(username) <= USERNAME_MAX:
        raise ValidationFailedError.for_field(
            "username",
            f"Username must be {USERNAME_MIN}-{USERNAME_MAX} characters",
        )
    return username


def validate_email(email: Any) -> str:
    if not isinstance(email, str) or not _EMAIL_RE.match(email):
        raise ValidationFailedError.for_field("email", "Email address is not valid")
    return email


def validate_password(password: Any) -> str:
    if not isinstance(password, str):
        raise ValidationFailedError.for_field("password", "Password must be a string")
    if len(password) < PASSWORD_MIN:
        raise ValidationFailedError.for_field(
            "password", f"Password must be at least {PASSWORD_MIN} characters"
        )
    return password


def validate_project_name(name: Any) -> str:
    if not isinstance(name, str):
        raise ValidationFailedError.for_field("name", "Project name must be a string")
    if not PROJECT_NAME_MIN <= len(name) <= PROJECT_NAME_MAX:
        raise ValidationFailedError.for_field(
            "name",
            f"Project name must be {PROJECT_NAME_MIN}-{PROJECT_NAME_MAX} characters",
        )
    return name


def validate_components(components: Any) -> list[Any]:
    """Components are opaque, but must arrive as a list. None means empty."""
    if components is None:
        return []
    if not isinstance(components, list):
        raise ValidationFailedError.for_field("components", "Components must be a list")
    return list(components)
