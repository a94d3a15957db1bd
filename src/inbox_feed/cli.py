"""Command-line interface for Inbox Feed.

This module provides the main entry point for the CLI application.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import structlog

from inbox_feed import __version__
from inbox_feed.config import Settings, get_settings
from inbox_feed.models import authentication_state
from inbox_feed.services import AppServices, build_services
from inbox_feed.sweep import run_sweep

logger = structlog.get_logger()


def configure_logging(settings: Settings) -> None:
    """Configure structlog to drop events below ``settings.log_level``."""

    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="inbox-feed", description="Inbox Feed")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None, help="Bind host (default: settings api_host)")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port (default: settings api_port)")

    sweep_parser = subparsers.add_parser("sweep", help="Refresh the cached inbox of every stored user")
    sweep_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum items per user (default: settings gmail_max_results)",
    )

    fetch_parser = subparsers.add_parser("fetch", help="Fetch one user's inbox live and cache it")
    fetch_parser.add_argument("user_email", help="Address of a signed-in user")
    fetch_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum items to fetch (default: settings gmail_max_results)",
    )

    subparsers.add_parser("users", help="List stored users and their authentication state")

    return parser


def _cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    from inbox_feed.api import create_app

    uvicorn.run(
        create_app(settings),
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        log_level=settings.log_level.lower(),
    )
    return 0


async def _cmd_sweep(args: argparse.Namespace, services: AppServices) -> int:
    limit = args.limit or services.settings.gmail_max_results
    report = await run_sweep(
        services.credentials,
        services.fetcher,
        limit,
        concurrency=services.settings.sweep_concurrency,
    )
    for outcome in report.results:
        detail = f" ({outcome.error})" if outcome.error else ""
        print(f"{outcome.status.value}\t{outcome.user_email}\t{outcome.item_count}{detail}")
    print(
        f"Swept {report.total} users: {report.succeeded} succeeded, "
        f"{report.failed} failed, {report.skipped} skipped"
    )
    return 0


async def _cmd_fetch(args: argparse.Namespace, services: AppServices) -> int:
    limit = args.limit or services.settings.gmail_max_results
    result = await services.fetcher.fetch(args.user_email, limit)
    if result is None:
        print(f"{args.user_email} is not signed in", file=sys.stderr)
        return 1
    print(f"Fetched {len(result.items)} {result.kind.value} for {result.user_email}")
    return 0


def _cmd_users(services: AppServices) -> int:
    now = services.clock()
    for credential in services.credentials.list_all():
        state = authentication_state(credential, now)
        print(f"{credential.user_email}\t{state.value}\texpires {credential.expiry.isoformat()}")
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point for the Inbox Feed CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    settings = get_settings()
    configure_logging(settings)

    logger.info("inbox_feed_started", version=__version__, debug=settings.debug)

    parser = _build_parser()
    parsed = parser.parse_args(args)

    if parsed.command == "serve":
        return _cmd_serve(parsed, settings)

    services = build_services(settings)
    services.database.open()
    try:
        if parsed.command == "sweep":
            return asyncio.run(_cmd_sweep(parsed, services))
        if parsed.command == "fetch":
            return asyncio.run(_cmd_fetch(parsed, services))
        if parsed.command == "users":
            return _cmd_users(services)
    finally:
        services.database.close()

    logger.error("unknown_command", command=parsed.command)
    return 2


if __name__ == "__main__":
    sys.exit(main())
