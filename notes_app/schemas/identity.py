"""
Identity Schemas.

The authenticated user reference and the session-change events reported
by the remote auth service.
"""

from enum import Enum

from pydantic import Field

from notes_app.schemas.base import WireModel


class SessionEvent(str, Enum):
    """Kinds of session-change notifications."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


class Identity(WireModel):
    """An authenticated user. Only `id` matters for note ownership."""

    id: str = Field(min_length=1, description="Unique user identifier")
    email: str | None = Field(default=None, description="Sign-in email address")


class AuthSession(WireModel):
    """Tokens and user returned by a successful password sign-in."""

    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"
    user: Identity
