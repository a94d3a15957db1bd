"""Helpers for pulling names and addresses out of raw address headers.

These work on the header strings exactly as Gmail returns them, e.g.::

    "Bob Smith" <bob@example.com>
    Bob <bob@example.com>, carol@example.com
    <dave@example.com>
    erin@example.com

They never raise; malformed input degrades to the best available text.
"""

from __future__ import annotations

SELF_MARKER = "me"


def split_addresses(header: str | None) -> list[str]:
    """Split an address list on commas that are outside quotes and brackets.

    Group syntax (``Team: a@x.com, b@x.com;``) yields the member addresses;
    the group name is dropped, so an empty group yields nothing.
    """

    if not header:
        return []

    parts: list[str] = []
    current: list[str] = []
    in_quotes = False
    in_brackets = False
    for ch in header:
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == "<" and not in_quotes:
            in_brackets = True
        elif ch == ">" and not in_quotes:
            in_brackets = False
        elif ch == ":" and not in_quotes and not in_brackets:
            current = []
            continue
        elif ch in ",;" and not in_quotes and not in_brackets:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))

    return [p.strip() for p in parts if p.strip()]


def email_address(value: str | None) -> str:
    """Return the lower-cased address: the bracketed part, else the whole value."""

    if not value:
        return ""
    text = value.strip()
    start = text.find("<")
    if start != -1:
        end = text.find(">", start + 1)
        inner = text[start + 1 :] if end == -1 else text[start + 1 : end]
        return inner.strip().lower()
    return text.lower()


def _local_part(address: str) -> str:
    return address.split("@", 1)[0].strip()


def display_name(value: str | None) -> str:
    """Return the human-facing name of a single address.

    - ``"Bob Smith" <bob@x.com>`` -> ``Bob Smith`` (text before ``<``, quotes removed)
    - ``bob@x.com`` -> ``bob`` (no ``<``: local part before ``@``)
    - ``<bob@x.com>`` -> ``bob`` (empty name: local part of the bracketed address)
    """

    if not value:
        return ""
    text = value.strip()
    if "<" in text:
        name = text.split("<", 1)[0].replace('"', "").strip()
        if name:
            return name
        return _local_part(email_address(text))
    return _local_part(text)


def is_self(name: str, address: str, owner: str) -> bool:
    """Whether a participant is the mailbox owner.

    Matches when the address equals the owner's address, when the owner's
    address appears inside the name, or when the name is the literal "me".
    All comparisons ignore case.
    """

    owner_lower = (owner or "").strip().lower()
    name_lower = (name or "").strip().lower()
    if owner_lower and (address or "").strip().lower() == owner_lower:
        return True
    if name_lower == SELF_MARKER:
        return True
    return bool(owner_lower) and owner_lower in name_lower
