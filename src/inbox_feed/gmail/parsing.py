"""Helpers for mapping Gmail API messages (format=full) into internal models."""

from __future__ import annotations

import base64
from typing import Any

from inbox_feed.models import StoredMessage

UNREAD_LABEL = "UNREAD"


def _header_map(message: dict[str, Any]) -> dict[str, str]:
    payload = message.get("payload") or {}
    headers = payload.get("headers") or []
    result: dict[str, str] = {}
    for h in headers:
        name = h.get("name")
        value = h.get("value")
        if isinstance(name, str) and isinstance(value, str):
            # Gmail can include duplicates; keep the first.
            result.setdefault(name.lower(), value)
    return result


def decode_base64url(data: str) -> str:
    """Decode Gmail's URL-safe base64 body data to text.

    ``-`` and ``_`` are mapped back to ``+`` and ``/`` and missing padding is
    restored before a standard base64 decode. Invalid UTF-8 is replaced.
    """

    translated = data.replace("-", "+").replace("_", "/")
    translated += "=" * (-len(translated) % 4)
    return base64.b64decode(translated).decode("utf-8", errors="replace")


def _part_data(part: dict[str, Any]) -> str | None:
    body = part.get("body") or {}
    data = body.get("data")
    return data if isinstance(data, str) and data else None


def extract_body(payload: dict[str, Any] | None) -> str:
    """Find the best text body in a (possibly nested) MIME payload.

    Order: the payload's own body data, then the first ``text/plain`` part,
    then the first ``text/html`` part, then each nested part in turn.
    """

    if not payload:
        return ""

    data = _part_data(payload)
    if data:
        return decode_base64url(data)

    parts = payload.get("parts") or []
    for mime_type in ("text/plain", "text/html"):
        for part in parts:
            data = _part_data(part)
            if part.get("mimeType") == mime_type and data:
                return decode_base64url(data)

    for part in parts:
        nested = extract_body(part)
        if nested:
            return nested

    return ""


def message_to_stored(message: dict[str, Any]) -> StoredMessage:
    """Convert a Gmail API message (format=full) to StoredMessage.

    Args:
        message: Gmail API message dict.

    Returns:
        StoredMessage: Mapped message with decoded body.
    """

    hm = _header_map(message)

    label_ids = message.get("labelIds") or []
    if not isinstance(label_ids, list):
        label_ids = []
    labels = [str(x) for x in label_ids if isinstance(x, str)]

    internal_date_ms: int | None
    internal_date_raw = message.get("internalDate")
    try:
        internal_date_ms = int(internal_date_raw) if internal_date_raw is not None else None
    except (TypeError, ValueError):
        internal_date_ms = None

    return StoredMessage(
        id=str(message.get("id") or ""),
        thread_id=str(message.get("threadId") or ""),
        subject=hm.get("subject") or "",
        sender=hm.get("from") or "",
        to=hm.get("to") or "",
        cc=hm.get("cc") or "",
        date=hm.get("date") or "",
        internal_date=internal_date_ms,
        snippet=message.get("snippet") or "",
        body=extract_body(message.get("payload")),
        labels=labels,
        is_unread=UNREAD_LABEL in labels,
    )
