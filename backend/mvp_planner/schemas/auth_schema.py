"""Authentication request/response schemas."""

from __future__ import annotations

import re
from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator

from .common import CamelModel

# ---------------------------------------------------------------------------
# Username / password policy
# ---------------------------------------------------------------------------
_USERNAME_RE = re.compile(r"^[a-zA-Z0-9_.-]{3,32}$")
_PW_MIN_LENGTH = 6


def validate_username(username: str) -> str:
    """Validate username: 3-32 chars, letters, numbers, ``_``, ``.`` or ``-``."""
    if not _USERNAME_RE.match(username):
        raise ValueError(
            "Username must be 3-32 characters and contain only letters, numbers, "
            "underscores, dots, or hyphens."
        )
    return username


def validate_password(password: str) -> str:
    if len(password) < _PW_MIN_LENGTH:
        raise ValueError(f"Password must be at least {_PW_MIN_LENGTH} characters.")
    return password


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------

class RegisterRequest(CamelModel):
    username: str = Field(..., description="Unique username")
    password: str = Field(..., description="Account password")

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str) -> str:
        return validate_username(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return validate_password(v)


class LoginRequest(CamelModel):
    username: str
    password: str


class UserPublic(CamelModel):
    id: UUID
    username: str
    is_admin: bool = False


class AuthResponse(CamelModel):
    success: bool = True
    data: UserPublic
    access_token: Optional[str] = None
    token_type: str = "bearer"


class MessageResponse(CamelModel):
    success: bool = True
    message: str
