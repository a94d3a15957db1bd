"""Sign-in and sign-out transitions of the per-user auth lifecycle."""

from __future__ import annotations

import structlog

from inbox_feed.auth.oauth import GoogleOAuthClient
from inbox_feed.models import Credential
from inbox_feed.store import CacheRepository, CredentialRepository
from inbox_feed.utils import Clock, utc_now

logger = structlog.get_logger()


async def complete_authorization(
    credentials: CredentialRepository,
    oauth_client: GoogleOAuthClient,
    code: str,
    clock: Clock = utc_now,
) -> Credential:
    """Exchange ``code`` and store the resulting credential.

    Google omits the refresh token when the user has already granted offline
    access; the previously stored one is kept in that case.
    """

    grant = await oauth_client.exchange_code(code)

    refresh_token = grant.refresh_token
    if not refresh_token:
        existing = credentials.get(grant.user_email)
        if existing is not None and existing.refresh_token:
            refresh_token = existing.refresh_token
            logger.info("refresh_token_preserved", user_email=grant.user_email)
        else:
            logger.warning("refresh_token_missing", user_email=grant.user_email)

    credential = Credential(
        user_email=grant.user_email,
        access_token=grant.access_token,
        refresh_token=refresh_token,
        expiry=grant.expiry,
        updated_at=clock(),
    )
    credentials.upsert(credential)
    logger.info("user_signed_in", user_email=credential.user_email)
    return credential


def sign_out(credentials: CredentialRepository, cache: CacheRepository, user_email: str) -> None:
    """Forget a user: delete the stored credential and cached inbox."""

    credentials.delete(user_email)
    cache.delete(user_email)
    logger.info("user_signed_out", user_email=user_email)
