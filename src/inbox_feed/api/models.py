"""Response models for the HTTP API (camelCase on the wire)."""

from __future__ import annotations

from datetime import datetime

from inbox_feed.models import AuthState, Document, InboxItem, ItemKind
from inbox_feed.sweep import SweepOutcome


class DataResponse(Document):
    authenticated: bool = True
    user_email: str
    kind: ItemKind
    items: list[InboxItem]
    last_fetched: datetime
    from_cache: bool


class ErrorResponse(Document):
    error: str
    authenticated: bool | None = None
    user_email: str | None = None


class LogoutResponse(Document):
    success: bool
    message: str


class AuthStatusResponse(Document):
    authenticated: bool
    user_email: str | None
    state: AuthState


class CronResponse(Document):
    success: bool
    total: int
    succeeded: int
    failed: int
    skipped: int
    results: list[SweepOutcome]
    timestamp: datetime
