import re

RE_PREFIX = re.compile(r"^\s*(?:(?:re|fwd|fw)\s*:\s*)+", re.IGNORECASE)


def strip_subject_prefix(subject: str | None) -> str:
    """Remove leading reply/forward markers ("Re:", "Fwd:", "FW:").

    Stacked markers such as "Re: Fwd: Hello" are all removed. Case of the
    remaining text is preserved.
    """
    if not subject:
        return ""
    return RE_PREFIX.sub("", subject).strip()
