"""Gmail API client implementation.

This module provides a per-user client for reading a Gmail inbox.

Notes:
    The Google API client is synchronous. This project wraps those calls using
    `asyncio.to_thread` so the rest of the codebase can remain async-friendly.
    The client never refreshes tokens itself; callers hand it a credential that
    has already been through the token refresher.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from typing import Any

import structlog

from inbox_feed.exceptions import AuthenticationError, GmailAPIError
from inbox_feed.models import Credential

logger = structlog.get_logger()

INBOX_LABELS: tuple[str, ...] = ("INBOX",)
_MAX_PAGE_SIZE = 500


class GmailClient:
    """Gmail API client bound to one user's credential."""

    def __init__(self, credential: Credential, service: Any | None = None) -> None:
        """Initialize Gmail client.

        Args:
            credential: A valid (non-expired) credential for the mailbox.
            service: Pre-built discovery service. Built on authenticate() if None.
        """
        self.credential = credential
        self._service: Any | None = service

    async def authenticate(self) -> None:
        """Build the Gmail service from the stored access token.

        Raises:
            AuthenticationError: If the credential carries no access token.
        """

        if self._service is not None:
            return

        if not self.credential.access_token:
            raise AuthenticationError(f"No access token stored for {self.credential.user_email}")

        self._service = await asyncio.to_thread(self._build_service, self.credential.access_token)
        logger.debug("gmail_service_built", user_email=self.credential.user_email)

    async def list_thread_ids(
        self,
        max_results: int | None = None,
        label_ids: Sequence[str] = INBOX_LABELS,
    ) -> list[str]:
        """List thread IDs restricted to the given labels.

        Args:
            max_results: Maximum number of threads to return (None for all).
            label_ids: Labels a thread must carry.

        Returns:
            Thread IDs in provider order (newest first).

        Raises:
            GmailAPIError: If the API request fails.
        """

        await self._ensure_authenticated()
        logger.info(
            "listing_threads",
            user_email=self.credential.user_email,
            max_results="all" if max_results is None else max_results,
        )

        try:
            items = await asyncio.to_thread(
                self._list_sync, self._service.users().threads, "threads", max_results, label_ids
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception("gmail_list_threads_failed", user_email=self.credential.user_email, error=str(exc))
            raise GmailAPIError(str(exc)) from exc
        return _ids(items)

    async def get_thread(self, thread_id: str) -> dict[str, Any]:
        """Get a thread with all of its messages (format=full).

        Raises:
            GmailAPIError: If the API request fails.
        """

        await self._ensure_authenticated()
        logger.debug("getting_thread", user_email=self.credential.user_email, thread_id=thread_id)

        try:
            return await asyncio.to_thread(self._get_sync, self._service.users().threads, thread_id)
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "gmail_get_thread_failed",
                user_email=self.credential.user_email,
                thread_id=thread_id,
                error=str(exc),
            )
            raise GmailAPIError(str(exc)) from exc

    async def list_message_ids(
        self,
        max_results: int | None = None,
        label_ids: Sequence[str] = INBOX_LABELS,
    ) -> list[str]:
        """List message IDs restricted to the given labels.

        Raises:
            GmailAPIError: If the API request fails.
        """

        await self._ensure_authenticated()
        logger.info(
            "listing_messages",
            user_email=self.credential.user_email,
            max_results="all" if max_results is None else max_results,
        )

        try:
            items = await asyncio.to_thread(
                self._list_sync, self._service.users().messages, "messages", max_results, label_ids
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception("gmail_list_messages_failed", user_email=self.credential.user_email, error=str(exc))
            raise GmailAPIError(str(exc)) from exc
        return _ids(items)

    async def get_message(self, message_id: str) -> dict[str, Any]:
        """Get a specific message by ID (format=full).

        Raises:
            GmailAPIError: If the API request fails.
        """

        await self._ensure_authenticated()
        logger.debug("getting_message", user_email=self.credential.user_email, message_id=message_id)

        try:
            return await asyncio.to_thread(self._get_sync, self._service.users().messages, message_id)
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "gmail_get_message_failed",
                user_email=self.credential.user_email,
                message_id=message_id,
                error=str(exc),
            )
            raise GmailAPIError(str(exc)) from exc

    async def _ensure_authenticated(self) -> None:
        if self._service is None:
            raise AuthenticationError(
                "Gmail client is not authenticated. Call await GmailClient.authenticate() first."
            )

    def _build_service(self, access_token: str) -> Any:
        # Imported lazily to keep import-time cost low and tests fast.
        from google.oauth2.credentials import Credentials
        from googleapiclient.discovery import build

        creds = Credentials(token=access_token)
        # cache_discovery=False prevents writing discovery docs to disk.
        return build("gmail", "v1", credentials=creds, cache_discovery=False)

    def _list_sync(
        self,
        resource: Callable[[], Any],
        key: str,
        max_results: int | None,
        label_ids: Sequence[str],
    ) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []

        page_token: str | None = None
        while True:
            if max_results is not None and len(items) >= max_results:
                break

            remaining = None if max_results is None else max_results - len(items)
            per_page = _MAX_PAGE_SIZE if remaining is None else min(_MAX_PAGE_SIZE, remaining)

            request = resource().list(
                userId="me",
                maxResults=per_page,
                labelIds=list(label_ids),
                pageToken=page_token,
            )
            response = request.execute()
            items.extend(response.get(key, []) or [])
            page_token = response.get("nextPageToken")
            if page_token is None:
                break

        return items if max_results is None else items[:max_results]

    def _get_sync(self, resource: Callable[[], Any], item_id: str) -> dict[str, Any]:
        return resource().get(userId="me", id=item_id, format="full").execute()


def _ids(items: list[dict[str, Any]]) -> list[str]:
    return [i["id"] for i in items if isinstance(i.get("id"), str) and i["id"]]


GmailClientFactory = Callable[[Credential], GmailClient]
