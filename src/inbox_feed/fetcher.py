"""Fetching a user's inbox and keeping the per-user cache current.

A fetch is strictly sequential: refresh the token if needed, list inbox IDs,
fetch each item in full, assemble documents, then overwrite the cache entry.
Any failure aborts the whole fetch and nothing is cached.
"""

from __future__ import annotations

from typing import Any

import structlog

from inbox_feed.auth.refresher import TokenRefresher
from inbox_feed.exceptions import GmailAPIError, InboxFeedError
from inbox_feed.gmail.client import GmailClient, GmailClientFactory
from inbox_feed.gmail.parsing import message_to_stored
from inbox_feed.models import FetchResult, InboxItem, ItemKind, StoredMessage, Thread
from inbox_feed.store import CacheRepository, CredentialRepository
from inbox_feed.threads import aggregate_thread
from inbox_feed.utils import Clock, utc_now

logger = structlog.get_logger()


def thread_from_gmail(raw_thread: dict[str, Any], owner: str) -> Thread | None:
    """Map a Gmail thread (format=full) to a Thread, or None if it has no messages."""

    thread_id = str(raw_thread.get("id") or "")
    messages = [message_to_stored(m) for m in raw_thread.get("messages") or []]
    if not messages:
        logger.debug("empty_thread_skipped", thread_id=thread_id)
        return None
    return aggregate_thread(thread_id, messages, owner)


class InboxFetcher:
    """Pulls inbox documents for one user at a time and caches them."""

    def __init__(
        self,
        credentials: CredentialRepository,
        cache: CacheRepository,
        refresher: TokenRefresher,
        client_factory: GmailClientFactory = GmailClient,
        mode: ItemKind = ItemKind.THREADS,
        clock: Clock = utc_now,
    ) -> None:
        self._credentials = credentials
        self._cache = cache
        self._refresher = refresher
        self._client_factory = client_factory
        self.mode = ItemKind(mode)
        self._clock = clock

    async def fetch(self, user_email: str, limit: int) -> FetchResult | None:
        """Fetch the inbox live and replace the user's cache entry.

        Args:
            user_email: Identity of the mailbox owner.
            limit: Maximum number of threads (or messages) to fetch.

        Returns:
            The fetched collection, or None if the user has no stored
            credential (not signed in).

        Raises:
            TokenRefreshError: If the access token expired and cannot be refreshed.
            GmailAPIError: If listing, any single item fetch, or mapping a
                payload fails.
        """

        credential = self._credentials.get(user_email)
        if credential is None:
            logger.info("inbox_fetch_unauthenticated", user_email=user_email)
            return None

        logger.info("inbox_fetch_started", user_email=credential.user_email, mode=self.mode.value, limit=limit)
        try:
            credential = await self._refresher.ensure_valid(credential)
            client = self._client_factory(credential)
            await client.authenticate()

            items: list[InboxItem]
            if self.mode is ItemKind.THREADS:
                items = list(await self._fetch_threads(client, credential.user_email, limit))
            else:
                items = list(await self._fetch_messages(client, limit))
        except Exception as exc:
            logger.error(
                "inbox_fetch_failed",
                user_email=credential.user_email,
                operation="fetch",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            if isinstance(exc, InboxFeedError):
                raise
            # Malformed payloads surface here from mapping and aggregation.
            raise GmailAPIError(f"Could not read inbox of {credential.user_email}: {exc}") from exc

        result = FetchResult(
            user_email=credential.user_email,
            kind=self.mode,
            items=items,
            last_fetched=self._clock(),
        )
        self._cache.upsert(result.to_cache_entry())
        logger.info("inbox_fetch_completed", user_email=credential.user_email, item_count=len(items))
        return result

    async def read(self, user_email: str, limit: int, refresh: bool = False) -> FetchResult | None:
        """Cache-first read.

        With ``refresh`` the provider is always called. Otherwise a cache entry
        of the current mode is returned, cut to ``limit`` items, without any
        provider call, and a live fetch happens only when there is none.
        """

        if not refresh:
            entry = self._cache.get(user_email)
            if entry is not None and entry.kind is self.mode:
                logger.debug("inbox_cache_hit", user_email=user_email, last_fetched=entry.last_fetched.isoformat())
                result = FetchResult.from_cache_entry(entry)
                result.items = result.items[:limit]
                return result
            logger.debug("inbox_cache_miss", user_email=user_email)
        return await self.fetch(user_email, limit)

    async def _fetch_threads(self, client: GmailClient, owner: str, limit: int) -> list[Thread]:
        thread_ids = await client.list_thread_ids(max_results=limit)
        logger.info("inbox_list_complete", user_email=owner, thread_count=len(thread_ids))

        threads: list[Thread] = []
        for thread_id in thread_ids:
            raw = await client.get_thread(thread_id)
            thread = thread_from_gmail(raw, owner)
            if thread is not None:
                threads.append(thread)
        return threads

    async def _fetch_messages(self, client: GmailClient, limit: int) -> list[StoredMessage]:
        message_ids = await client.list_message_ids(max_results=limit)
        logger.info("inbox_list_complete", user_email=client.credential.user_email, message_count=len(message_ids))

        messages: list[StoredMessage] = []
        for message_id in message_ids:
            raw = await client.get_message(message_id)
            messages.append(message_to_stored(raw))
        return messages
