"""Unit tests for the command-line interface."""

from datetime import datetime, timedelta, timezone

import pytest
import structlog

from inbox_feed.cli import _build_parser, main
from inbox_feed.config import get_settings
from inbox_feed.models import Credential
from inbox_feed.store import CredentialRepository, Database


@pytest.fixture
def cli_db(tmp_path, monkeypatch):
    """Point the CLI's settings at a fresh database file."""
    path = tmp_path / "cli.sqlite3"
    monkeypatch.setenv("INBOX_FEED_DB_PATH", str(path))
    monkeypatch.setenv("INBOX_FEED_LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    yield path
    get_settings.cache_clear()
    structlog.reset_defaults()


def test_parser_subcommands() -> None:
    parser = _build_parser()

    assert parser.parse_args(["serve", "--port", "9000"]).port == 9000
    assert parser.parse_args(["sweep", "--limit", "5"]).limit == 5
    fetch = parser.parse_args(["fetch", "me@example.com"])
    assert fetch.user_email == "me@example.com"
    assert fetch.limit is None


def test_parser_requires_command() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args([])


def test_users_lists_states(cli_db, capsys) -> None:
    now = datetime.now(timezone.utc)
    db = Database(cli_db)
    db.open()
    repo = CredentialRepository(db)
    repo.upsert(
        Credential(
            user_email="fresh@example.com",
            access_token="a",
            refresh_token="r",
            expiry=now + timedelta(hours=1),
            updated_at=now,
        )
    )
    repo.upsert(
        Credential(
            user_email="stale@example.com",
            access_token="a",
            refresh_token="",
            expiry=now - timedelta(hours=1),
            updated_at=now,
        )
    )
    db.close()

    assert main(["users"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("fresh@example.com\tvalid")
    assert lines[1].startswith("stale@example.com\tinvalid")


def test_sweep_with_no_users(cli_db, capsys) -> None:
    assert main(["sweep"]) == 0

    assert "Swept 0 users: 0 succeeded, 0 failed, 0 skipped" in capsys.readouterr().out


def test_fetch_unknown_user(cli_db, capsys) -> None:
    assert main(["fetch", "nobody@example.com"]) == 1

    assert "nobody@example.com is not signed in" in capsys.readouterr().err
