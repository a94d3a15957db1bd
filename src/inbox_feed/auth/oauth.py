"""Google OAuth2 web flow.

Wraps google-auth-oauthlib's ``Flow`` for the consent redirect and the code
exchange, and google-auth's ``Credentials.refresh`` for the refresh grant.
Every provider failure is re-raised as one of our own exceptions.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog

from inbox_feed.config import Settings
from inbox_feed.exceptions import AuthenticationError, ConfigurationError, TokenRefreshError

logger = structlog.get_logger()

# Used when the provider omits an expiry.
DEFAULT_TOKEN_LIFETIME = timedelta(hours=1)


@dataclass(frozen=True)
class TokenGrant:
    """Result of an authorization-code exchange."""

    user_email: str
    access_token: str
    refresh_token: str
    expiry: datetime


@dataclass(frozen=True)
class RefreshedToken:
    """Result of a refresh grant."""

    access_token: str
    expiry: datetime


def _aware(value: datetime | None) -> datetime:
    if value is None:
        return datetime.now(timezone.utc) + DEFAULT_TOKEN_LIFETIME
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class GoogleOAuthClient:
    """OAuth2 client for the Google consent screen and token endpoint."""

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the OAuth client.

        Args:
            settings: Application settings. If None, uses default settings.
        """
        from inbox_feed.config import get_settings

        self.settings = settings or get_settings()

    def authorization_url(self, state: str | None = None) -> str:
        """Build the consent URL.

        Offline access plus a forced consent prompt makes Google issue a
        refresh token on every sign-in.
        """

        flow = self._flow()
        kwargs: dict[str, Any] = {
            "access_type": "offline",
            "prompt": "consent",
        }
        if state is not None:
            kwargs["state"] = state
        url, _ = flow.authorization_url(**kwargs)
        return url

    async def exchange_code(self, code: str) -> TokenGrant:
        """Exchange an authorization code and look up the signed-in address.

        Raises:
            ConfigurationError: If the OAuth client is not configured.
            AuthenticationError: If the provider rejects the code.
        """

        self._client_config()
        logger.info("oauth_code_exchange_started")
        try:
            grant = await asyncio.to_thread(self._exchange_sync, code)
        except AuthenticationError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("oauth_code_exchange_failed", error=str(exc))
            raise AuthenticationError(str(exc)) from exc

        logger.info(
            "oauth_code_exchange_completed",
            user_email=grant.user_email,
            has_refresh_token=bool(grant.refresh_token),
        )
        return grant

    async def refresh(self, refresh_token: str) -> RefreshedToken:
        """Run the refresh grant for ``refresh_token``.

        Raises:
            ConfigurationError: If the OAuth client is not configured.
            TokenRefreshError: If the provider rejects the refresh token.
        """

        self._client_config()
        try:
            return await asyncio.to_thread(self._refresh_sync, refresh_token)
        except Exception as exc:  # noqa: BLE001
            raise TokenRefreshError(str(exc)) from exc

    def _client_config(self) -> dict[str, Any]:
        s = self.settings
        if not s.google_client_id or not s.google_client_secret:
            raise ConfigurationError(
                "Missing Google OAuth client credentials. "
                "Set INBOX_FEED_GOOGLE_CLIENT_ID and INBOX_FEED_GOOGLE_CLIENT_SECRET."
            )
        return {
            "web": {
                "client_id": s.google_client_id,
                "client_secret": s.google_client_secret,
                "auth_uri": s.google_auth_uri,
                "token_uri": s.google_token_uri,
                "redirect_uris": [s.google_redirect_uri],
            }
        }

    def _flow(self) -> Any:
        from google_auth_oauthlib.flow import Flow

        # Login and callback build separate flows, so no PKCE verifier can be shared.
        return Flow.from_client_config(
            self._client_config(),
            scopes=list(self.settings.google_scopes),
            redirect_uri=self.settings.google_redirect_uri,
            autogenerate_code_verifier=False,
        )

    def _exchange_sync(self, code: str) -> TokenGrant:
        from googleapiclient.discovery import build

        flow = self._flow()
        flow.fetch_token(code=code)
        creds = flow.credentials

        service = build("oauth2", "v2", credentials=creds, cache_discovery=False)
        info = service.userinfo().get().execute()
        user_email = str(info.get("email") or "").strip().lower()
        if not user_email:
            raise AuthenticationError("Google did not return an email address for this account")

        return TokenGrant(
            user_email=user_email,
            access_token=creds.token or "",
            refresh_token=creds.refresh_token or "",
            expiry=_aware(creds.expiry),
        )

    def _refresh_sync(self, refresh_token: str) -> RefreshedToken:
        from google.auth.transport.requests import Request
        from google.oauth2.credentials import Credentials

        creds = Credentials(
            token=None,
            refresh_token=refresh_token,
            token_uri=self.settings.google_token_uri,
            client_id=self.settings.google_client_id,
            client_secret=self.settings.google_client_secret,
        )
        creds.refresh(Request())
        return RefreshedToken(access_token=creds.token or "", expiry=_aware(creds.expiry))
