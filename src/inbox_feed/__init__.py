"""Inbox Feed - a cached, multi-user Gmail inbox viewer.

This package signs users in with Google OAuth2, pulls their inbox threads from
the Gmail API on demand or on a schedule, and serves the assembled documents to
a web front end from a per-user cache.
"""

__version__ = "0.1.0"
__author__ = "Trickl"

from inbox_feed.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__", "__author__"]
