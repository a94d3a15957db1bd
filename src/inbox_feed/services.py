"""Wiring of the persistence handle and the components built on it.

The API app and the CLI both build one ``AppServices`` at start-up and pass it
around explicitly; nothing here is a module-level singleton.
"""

from __future__ import annotations

from dataclasses import dataclass

from inbox_feed.auth import GoogleOAuthClient, TokenRefresher
from inbox_feed.config import Settings
from inbox_feed.fetcher import InboxFetcher
from inbox_feed.gmail.client import GmailClient, GmailClientFactory
from inbox_feed.models import ItemKind
from inbox_feed.store import CacheRepository, CredentialRepository, Database
from inbox_feed.utils import Clock, utc_now


@dataclass(frozen=True)
class AppServices:
    """Components shared by every request of one process."""

    settings: Settings
    database: Database
    credentials: CredentialRepository
    cache: CacheRepository
    oauth: GoogleOAuthClient
    refresher: TokenRefresher
    fetcher: InboxFetcher
    clock: Clock


def build_services(
    settings: Settings,
    database: Database | None = None,
    oauth_client: GoogleOAuthClient | None = None,
    client_factory: GmailClientFactory | None = None,
    clock: Clock | None = None,
) -> AppServices:
    """Construct the components. The database is not opened here."""

    clock = clock or utc_now
    database = database or Database(settings.db_path)
    credentials = CredentialRepository(database)
    cache = CacheRepository(database)
    oauth = oauth_client or GoogleOAuthClient(settings)
    refresher = TokenRefresher(credentials, oauth, clock=clock)
    fetcher = InboxFetcher(
        credentials,
        cache,
        refresher,
        client_factory=client_factory or GmailClient,
        mode=ItemKind(settings.fetch_mode),
        clock=clock,
    )
    return AppServices(
        settings=settings,
        database=database,
        credentials=credentials,
        cache=cache,
        oauth=oauth,
        refresher=refresher,
        fetcher=fetcher,
        clock=clock,
    )
