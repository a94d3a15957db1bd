"""OAuth credential record and the per-user authentication state."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import Field, field_validator

from inbox_feed.models.documents import Document


class AuthState(str, Enum):
    """Authentication lifecycle of one user."""

    UNAUTHENTICATED = "unauthenticated"
    VALID = "valid"
    EXPIRED = "expired"
    INVALID = "invalid"


class Credential(Document):
    """Persisted OAuth2 token pair for one user identity.

    A non-empty ``refresh_token`` must survive every update; only a fresh
    authorization that returns a new non-empty token may replace it.
    """

    user_email: str = Field(description="User's mail address, the record key")
    access_token: str = Field(default="", description="Short-lived access token")
    refresh_token: str = Field(default="", description="Long-lived refresh token")
    expiry: datetime = Field(description="Instant the access token expires (UTC)")
    updated_at: datetime = Field(description="Last time the record was written (UTC)")

    @field_validator("expiry", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # google-auth reports naive UTC datetimes.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def is_expired(self, now: datetime) -> bool:
        return self.expiry <= now


def authentication_state(credential: Credential | None, now: datetime) -> AuthState:
    """Classify a stored credential at ``now``.

    An expired credential without a refresh token can never become valid
    again without a new sign-in.
    """

    if credential is None:
        return AuthState.UNAUTHENTICATED
    if not credential.is_expired(now):
        return AuthState.VALID
    if not credential.refresh_token:
        return AuthState.INVALID
    return AuthState.EXPIRED
