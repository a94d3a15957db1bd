"""Custom exceptions for Inbox Feed."""


class InboxFeedError(Exception):
    """Base exception for all Inbox Feed errors."""


class ConfigurationError(InboxFeedError):
    """Exception raised for configuration related errors."""


class AuthenticationError(InboxFeedError):
    """Exception raised when the OAuth provider rejects an authorization."""


class TokenRefreshError(AuthenticationError):
    """Exception raised when an access token cannot be refreshed.

    The stored credential stays in place; the user has to sign in again.
    """


class GmailAPIError(InboxFeedError):
    """Exception raised for Gmail API related errors."""


class StorageError(InboxFeedError):
    """Exception raised for persistence layer errors."""
