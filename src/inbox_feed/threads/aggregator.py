"""Thread aggregation.

A thread's summary fields are never stored independently: they are recomputed
from its messages on every fetch. ``aggregate_thread`` is a pure function of the
message list and the owner's address, so the same input always yields the same
document.
"""

from __future__ import annotations

from collections.abc import Sequence

from inbox_feed.models import StoredMessage, Thread
from inbox_feed.utils.addresses import (
    SELF_MARKER,
    display_name,
    email_address,
    is_self,
    split_addresses,
)
from inbox_feed.utils.subject import strip_subject_prefix

SENT_LABEL = "SENT"


def is_sent_by(message: StoredMessage, owner: str) -> bool:
    """Whether ``owner`` sent ``message`` (From matches, or Gmail labelled it SENT)."""

    owner_address = (owner or "").strip().lower()
    if owner_address and email_address(message.sender) == owner_address:
        return True
    return SENT_LABEL in message.labels


def _correspondents(message: StoredMessage) -> list[str]:
    return [
        *split_addresses(message.sender),
        *split_addresses(message.to),
        *split_addresses(message.cc),
    ]


def aggregate_thread(thread_id: str, messages: Sequence[StoredMessage], owner: str) -> Thread:
    """Build a Thread from its messages in provider order (oldest first).

    Args:
        thread_id: Gmail thread ID.
        messages: The thread's messages; must not be empty.
        owner: Address of the signed-in mailbox owner.

    Returns:
        Thread with canonical subject, participants (owner excluded), unread
        flag, label union, last-message fields and per-message sent flags.

    Raises:
        ValueError: If ``messages`` is empty.
    """

    if not messages:
        raise ValueError(f"Thread {thread_id} has no messages")

    subject: str | None = None
    has_unread = False
    labels: list[str] = []
    # Display name -> whether any occurrence of it is the owner.
    participants: dict[str, bool] = {}
    classified: list[StoredMessage] = []

    for message in messages:
        classified.append(message.model_copy(update={"is_sent": is_sent_by(message, owner)}))

        for raw in _correspondents(message):
            name = display_name(raw)
            if not name:
                continue
            mine = is_self(name, email_address(raw), owner)
            participants[name] = participants.get(name, False) or mine

        for label in message.labels:
            if label not in labels:
                labels.append(label)

        has_unread = has_unread or message.is_unread

        if subject is None and message.subject.strip():
            subject = strip_subject_prefix(message.subject)

    others = [name for name, mine in participants.items() if not mine]
    last = messages[-1]

    return Thread(
        id=thread_id,
        subject=subject or "",
        participants=others or [SELF_MARKER],
        message_count=len(messages),
        has_unread=has_unread,
        labels=labels,
        last_message_date=last.date,
        last_message_snippet=last.snippet,
        messages=classified,
    )
