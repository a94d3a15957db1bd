"""Inbox document models.

Messages and threads are denormalized: a thread carries its messages and the
aggregate fields computed from them, so the front end never joins anything.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Document(BaseModel):
    """Base for persisted and served documents (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ItemKind(str, Enum):
    """What a fetch produced."""

    THREADS = "threads"
    MESSAGES = "messages"


class StoredMessage(Document):
    """A Gmail message mapped into the internal document shape."""

    id: str = Field(description="Gmail message ID")
    thread_id: str = Field(default="", description="Gmail thread ID")
    subject: str = Field(default="", description="Subject header, as sent")
    sender: str = Field(default="", alias="from", description="Raw From header")
    to: str = Field(default="", description="Raw To header")
    cc: str = Field(default="", description="Raw Cc header")
    date: str = Field(default="", description="Raw Date header")
    internal_date: int | None = Field(
        default=None, description="Internal timestamp in milliseconds since epoch"
    )
    snippet: str = Field(default="", description="Gmail snippet")
    body: str = Field(default="", description="Decoded body, plain text preferred")
    labels: list[str] = Field(default_factory=list, description="Gmail label IDs")
    is_unread: bool = Field(default=False, description="Whether message is unread")
    is_sent: bool = Field(default=False, description="Whether the owner sent this message")


class Thread(Document):
    """A Gmail thread with aggregates recomputed from its messages."""

    id: str = Field(description="Gmail thread ID")
    subject: str = Field(default="", description="Canonical subject, reply prefixes stripped")
    participants: list[str] = Field(
        default_factory=list, description="Display names of everyone but the owner"
    )
    message_count: int = Field(default=0, description="Number of messages in the thread")
    has_unread: bool = Field(default=False, description="Whether any message is unread")
    labels: list[str] = Field(default_factory=list, description="Union of message labels")
    last_message_date: str = Field(default="", description="Date header of the last message")
    last_message_snippet: str = Field(default="", description="Snippet of the last message")
    messages: list[StoredMessage] = Field(default_factory=list, description="Messages, oldest first")


InboxItem = Union[Thread, StoredMessage]


class CacheEntry(Document):
    """Last-known-good fetch result for one user."""

    user_email: str = Field(description="Owner of the cached inbox")
    kind: ItemKind = Field(description="Whether items are threads or messages")
    threads: list[Thread] = Field(default_factory=list)
    messages: list[StoredMessage] = Field(default_factory=list)
    last_fetched: datetime = Field(description="When the inbox was fetched")

    @property
    def items(self) -> list[InboxItem]:
        if self.kind is ItemKind.THREADS:
            return list(self.threads)
        return list(self.messages)


class FetchResult(BaseModel):
    """Collection returned by a read, echoing the user identity."""

    user_email: str
    kind: ItemKind
    items: list[InboxItem]
    last_fetched: datetime
    from_cache: bool = False

    @classmethod
    def from_cache_entry(cls, entry: CacheEntry) -> "FetchResult":
        return cls(
            user_email=entry.user_email,
            kind=entry.kind,
            items=entry.items,
            last_fetched=entry.last_fetched,
            from_cache=True,
        )

    def to_cache_entry(self) -> CacheEntry:
        if self.kind is ItemKind.THREADS:
            return CacheEntry(
                user_email=self.user_email,
                kind=self.kind,
                threads=[i for i in self.items if isinstance(i, Thread)],
                last_fetched=self.last_fetched,
            )
        return CacheEntry(
            user_email=self.user_email,
            kind=self.kind,
            messages=[i for i in self.items if isinstance(i, StoredMessage)],
            last_fetched=self.last_fetched,
        )
