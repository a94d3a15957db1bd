"""Data models for Inbox Feed.

This module contains Pydantic models for data validation and serialization.
Documents are serialized with camelCase field names, which is the shape the web
front end reads and the shape persisted in the store.
"""

from inbox_feed.models.credential import AuthState, Credential, authentication_state
from inbox_feed.models.documents import (
    CacheEntry,
    Document,
    FetchResult,
    InboxItem,
    ItemKind,
    StoredMessage,
    Thread,
)

__all__ = [
    "AuthState",
    "CacheEntry",
    "Credential",
    "Document",
    "FetchResult",
    "InboxItem",
    "ItemKind",
    "StoredMessage",
    "Thread",
    "authentication_state",
]
