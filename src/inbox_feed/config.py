"""Configuration management for Inbox Feed.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the INBOX_FEED_ prefix (e.g., INBOX_FEED_GOOGLE_CLIENT_ID).
    """

    model_config = SettingsConfigDict(
        env_prefix="INBOX_FEED_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Google OAuth Configuration
    google_client_id: str = Field(
        default="",
        description="OAuth client ID of the Google Cloud web application",
    )
    google_client_secret: str = Field(
        default="",
        description="OAuth client secret of the Google Cloud web application",
    )
    google_redirect_uri: str = Field(
        default="http://localhost:8000/auth/callback",
        description="Redirect URI registered for the OAuth client",
    )
    google_auth_uri: str = Field(
        default="https://accounts.google.com/o/oauth2/auth",
        description="Google authorization endpoint",
    )
    google_token_uri: str = Field(
        default="https://oauth2.googleapis.com/token",
        description="Google token endpoint used for code exchange and refresh",
    )
    google_scopes: list[str] = Field(
        default=[
            "openid",
            "https://www.googleapis.com/auth/gmail.readonly",
            "https://www.googleapis.com/auth/userinfo.email",
        ],
        description="OAuth scopes requested on sign-in",
    )

    # Gmail Configuration
    fetch_mode: Literal["threads", "messages"] = Field(
        default="threads",
        description="Whether the inbox is fetched as assembled threads or flat messages",
    )
    gmail_max_results: int = Field(
        default=50,
        description="Maximum number of threads or messages to fetch per request",
    )

    # Storage Configuration
    db_path: Path = Field(
        default=Path("inbox_feed.sqlite3"),
        description="Path to the SQLite database holding credentials and cached inboxes",
    )

    # Web Configuration
    api_host: str = Field(default="127.0.0.1", description="Host the API server binds to")
    api_port: int = Field(default=8000, description="Port the API server binds to")
    frontend_url: str = Field(
        default="/",
        description="Page the OAuth callback redirects back to",
    )
    session_cookie_name: str = Field(
        default="user_email",
        description="Name of the cookie carrying the signed-in user's address",
    )
    session_max_age: int = Field(
        default=60 * 60 * 24 * 30,
        description="Session cookie lifetime in seconds",
    )
    session_cookie_secure: bool = Field(
        default=False,
        description="Mark the session cookie Secure (enable behind HTTPS)",
    )
    purge_on_logout: bool = Field(
        default=True,
        description="Delete stored credentials and cached inbox when a user signs out",
    )

    # Scheduled sweep
    cron_secret: str | None = Field(
        default=None,
        description="Bearer token required by /cron; unset disables the check",
    )
    cron_trusted_header: str = Field(
        default="",
        description="Header set by the platform scheduler that bypasses the secret check; empty disables it",
    )
    cron_trusted_header_value: str = Field(
        default="true",
        description="Expected value of the trusted scheduler header",
    )
    sweep_concurrency: int = Field(
        default=1,
        ge=1,
        description="Number of users refreshed concurrently during a sweep",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
