"""Lazy access-token refresh for stored credentials."""

from __future__ import annotations

import structlog

from inbox_feed.auth.oauth import GoogleOAuthClient
from inbox_feed.exceptions import TokenRefreshError
from inbox_feed.models import Credential
from inbox_feed.store import CredentialRepository
from inbox_feed.utils import Clock, utc_now

logger = structlog.get_logger()


class TokenRefresher:
    """Keeps a credential's access token usable.

    A refresh writes the credential back at most once and always keeps the
    refresh token that was stored before the refresh.
    """

    def __init__(
        self,
        credentials: CredentialRepository,
        oauth_client: GoogleOAuthClient,
        clock: Clock = utc_now,
    ) -> None:
        self._credentials = credentials
        self._oauth = oauth_client
        self._clock = clock

    async def ensure_valid(self, credential: Credential) -> Credential:
        """Return ``credential`` if unexpired, else a refreshed and persisted copy.

        Raises:
            TokenRefreshError: If there is no refresh token or the provider
                rejects it. Nothing is written in that case.
        """

        now = self._clock()
        if not credential.is_expired(now):
            return credential

        if not credential.refresh_token:
            logger.warning("token_refresh_impossible", user_email=credential.user_email)
            raise TokenRefreshError(
                f"Credential for {credential.user_email} expired and has no refresh token"
            )

        logger.info(
            "token_refresh_started",
            user_email=credential.user_email,
            expired_at=credential.expiry.isoformat(),
        )
        try:
            refreshed = await self._oauth.refresh(credential.refresh_token)
        except TokenRefreshError as exc:
            logger.error("token_refresh_failed", user_email=credential.user_email, error=str(exc))
            raise

        updated = Credential(
            user_email=credential.user_email,
            access_token=refreshed.access_token,
            refresh_token=credential.refresh_token,
            expiry=refreshed.expiry,
            updated_at=self._clock(),
        )
        self._credentials.upsert(updated)
        logger.info(
            "token_refresh_completed",
            user_email=credential.user_email,
            expires_at=updated.expiry.isoformat(),
        )
        return updated
