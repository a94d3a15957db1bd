"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import base64
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from inbox_feed.auth import GoogleOAuthClient, RefreshedToken, TokenGrant
from inbox_feed.config import Settings
from inbox_feed.gmail.client import GmailClient
from inbox_feed.models import Credential
from inbox_feed.store import CacheRepository, CredentialRepository, Database

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


# === Mock Gmail API Service ===


class MockExecute:
    """Mock for the .execute() call that returns stored data"""

    def __init__(self, data: Any = None, error: Exception | None = None) -> None:
        self._data = data
        self._error = error

    def execute(self) -> Any:
        if self._error is not None:
            raise self._error
        return self._data


class MockCollection:
    """Mock for users().threads() / users().messages()"""

    def __init__(self, key: str, page_size: int = 2) -> None:
        self.key = key
        self.page_size = page_size
        self.items: dict[str, dict[str, Any]] = {}
        self.failing: set[str] = set()
        self.list_calls: list[dict[str, Any]] = []
        self.get_calls: list[str] = []

    def add(self, item: dict[str, Any]) -> None:
        self.items[item["id"]] = item

    def list(
        self,
        userId: str,
        maxResults: int = 100,
        labelIds: list[str] | None = None,
        pageToken: str | None = None,
    ) -> MockExecute:
        self.list_calls.append({"maxResults": maxResults, "labelIds": labelIds, "pageToken": pageToken})
        ids = list(self.items)
        start = int(pageToken) if pageToken else 0
        end = min(start + min(maxResults, self.page_size), len(ids))
        result: dict[str, Any] = {self.key: [{"id": i} for i in ids[start:end]]}
        if end < len(ids):
            result["nextPageToken"] = str(end)
        return MockExecute(result)

    def get(self, userId: str, id: str, format: str = "full") -> MockExecute:
        self.get_calls.append(id)
        if id in self.failing:
            return MockExecute(error=RuntimeError(f"backend error for {id}"))
        return MockExecute(self.items[id])


class MockUsers:
    def __init__(self, service: "MockGmailService") -> None:
        self._service = service

    def threads(self) -> MockCollection:
        return self._service.threads

    def messages(self) -> MockCollection:
        return self._service.messages


class MockGmailService:
    """In-memory stand-in for the discovery-built Gmail service"""

    def __init__(self) -> None:
        self.threads = MockCollection("threads")
        self.messages = MockCollection("messages")

    def users(self) -> MockUsers:
        return MockUsers(self)

    @property
    def call_count(self) -> int:
        return sum(
            len(c.list_calls) + len(c.get_calls) for c in (self.threads, self.messages)
        )


class RecordingClientFactory:
    """Builds GmailClients on the mock service and remembers the credentials used"""

    def __init__(self, service: MockGmailService) -> None:
        self.service = service
        self.credentials: list[Credential] = []

    def __call__(self, credential: Credential) -> GmailClient:
        self.credentials.append(credential)
        return GmailClient(credential, service=self.service)


# === Fake OAuth provider ===


class FakeOAuthClient(GoogleOAuthClient):
    """OAuth client that never talks to Google"""

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self.grant = TokenGrant(
            user_email="me@example.com",
            access_token="fresh-access",
            refresh_token="fresh-refresh",
            expiry=NOW + timedelta(hours=1),
        )
        self.refreshed = RefreshedToken(access_token="refreshed-access", expiry=NOW + timedelta(hours=1))
        self.exchange_error: Exception | None = None
        self.refresh_error: Exception | None = None
        self.exchanged_codes: list[str] = []
        self.refreshed_tokens: list[str] = []

    def authorization_url(self, state: str | None = None) -> str:
        return "https://accounts.example.com/consent?access_type=offline&prompt=consent"

    async def exchange_code(self, code: str) -> TokenGrant:
        self.exchanged_codes.append(code)
        if self.exchange_error is not None:
            raise self.exchange_error
        return self.grant

    async def refresh(self, refresh_token: str) -> RefreshedToken:
        self.refreshed_tokens.append(refresh_token)
        if self.refresh_error is not None:
            raise self.refresh_error
        return self.refreshed


# === Gmail payload builders ===


def encode_body(text: str) -> str:
    """Encode like Gmail does: URL-safe alphabet, padding dropped."""
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def make_gmail_message(
    message_id: str,
    *,
    thread_id: str = "t1",
    subject: str = "Hello",
    sender: str = "Bob <bob@example.com>",
    to: str = "Me <me@example.com>",
    cc: str | None = None,
    date: str = "Thu, 15 Jan 2026 10:00:00 +0000",
    labels: list[str] | None = None,
    body: str = "Hi there",
    snippet: str | None = None,
) -> dict[str, Any]:
    headers = [
        {"name": "Subject", "value": subject},
        {"name": "From", "value": sender},
        {"name": "To", "value": to},
        {"name": "Date", "value": date},
    ]
    if cc is not None:
        headers.append({"name": "Cc", "value": cc})
    return {
        "id": message_id,
        "threadId": thread_id,
        "labelIds": ["INBOX"] if labels is None else labels,
        "snippet": body[:40] if snippet is None else snippet,
        "internalDate": "1768471200000",
        "payload": {
            "mimeType": "multipart/alternative",
            "headers": headers,
            "body": {"size": 0},
            "parts": [
                {"mimeType": "text/plain", "body": {"data": encode_body(body)}},
                {"mimeType": "text/html", "body": {"data": encode_body(f"<p>{body}</p>")}},
            ],
        },
    }


def make_gmail_thread(thread_id: str, messages: list[dict[str, Any]]) -> dict[str, Any]:
    return {"id": thread_id, "messages": messages}


# === Fixtures ===


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: NOW


@pytest.fixture
def mock_settings(tmp_path) -> Settings:
    """Provide isolated settings for testing."""
    return Settings(
        google_client_id="client-id",
        google_client_secret="client-secret",
        google_redirect_uri="http://testserver/auth/callback",
        db_path=tmp_path / "inbox.sqlite3",
        gmail_max_results=10,
        log_level="DEBUG",
        debug=True,
    )


@pytest.fixture
def database(tmp_path):
    db = Database(tmp_path / "inbox.sqlite3")
    db.open()
    yield db
    db.close()


@pytest.fixture
def credential_repo(database) -> CredentialRepository:
    return CredentialRepository(database)


@pytest.fixture
def cache_repo(database) -> CacheRepository:
    return CacheRepository(database)


@pytest.fixture
def make_credential() -> Callable[..., Credential]:
    def _make(
        user_email: str = "me@example.com",
        *,
        expiry: datetime = NOW + timedelta(minutes=30),
        access_token: str = "access",
        refresh_token: str = "refresh",
    ) -> Credential:
        return Credential(
            user_email=user_email,
            access_token=access_token,
            refresh_token=refresh_token,
            expiry=expiry,
            updated_at=NOW - timedelta(hours=1),
        )

    return _make


@pytest.fixture
def gmail_service() -> MockGmailService:
    return MockGmailService()


@pytest.fixture
def client_factory(gmail_service) -> RecordingClientFactory:
    return RecordingClientFactory(gmail_service)


@pytest.fixture
def fake_oauth(mock_settings) -> FakeOAuthClient:
    return FakeOAuthClient(mock_settings)


@pytest.fixture
def gmail_message() -> Callable[..., dict[str, Any]]:
    return make_gmail_message


@pytest.fixture
def gmail_thread() -> Callable[..., dict[str, Any]]:
    return make_gmail_thread

