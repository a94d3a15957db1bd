"""Persistence for credentials and cached inboxes.

Both collections are keyed by the user's mail address and hold one JSON
document per user. Writes replace the whole document.
"""

from .database import Database
from .repository import CacheRepository, CredentialRepository

__all__ = ["CacheRepository", "CredentialRepository", "Database"]
