"""Scheduled refresh of every known user's inbox.

One user's failure never aborts the sweep: it is logged and recorded as that
user's outcome, and the remaining users are still refreshed.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from enum import Enum

import structlog
from pydantic import BaseModel, Field

from inbox_feed.fetcher import InboxFetcher
from inbox_feed.models import Document
from inbox_feed.store import CredentialRepository
from inbox_feed.utils import utc_now

logger = structlog.get_logger()


class SweepStatus(str, Enum):
    """Outcome of refreshing one user."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class SweepOutcome(Document):
    """Result of refreshing one user's inbox."""

    user_email: str = Field(description="User that was refreshed")
    status: SweepStatus = Field(description="Outcome of the refresh")
    item_count: int = Field(default=0, description="Number of items fetched")
    error: str | None = Field(default=None, description="Error message if failed")


class SweepReport(BaseModel):
    """Per-user outcomes of one sweep."""

    results: list[SweepOutcome] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=utc_now)

    @property
    def total(self) -> int:
        return len(self.results)

    def count(self, status: SweepStatus) -> int:
        return sum(1 for r in self.results if r.status is status)

    @property
    def succeeded(self) -> int:
        return self.count(SweepStatus.SUCCEEDED)

    @property
    def failed(self) -> int:
        return self.count(SweepStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self.count(SweepStatus.SKIPPED)


async def _refresh_user(fetcher: InboxFetcher, user_email: str, limit: int) -> SweepOutcome:
    try:
        result = await fetcher.fetch(user_email, limit)
    except Exception as exc:  # noqa: BLE001
        logger.error(
            "sweep_user_failed",
            user_email=user_email,
            operation="sweep",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return SweepOutcome(user_email=user_email, status=SweepStatus.FAILED, error=str(exc) or type(exc).__name__)

    if result is None:
        return SweepOutcome(user_email=user_email, status=SweepStatus.SKIPPED)
    return SweepOutcome(user_email=user_email, status=SweepStatus.SUCCEEDED, item_count=len(result.items))


async def run_sweep(
    credentials: CredentialRepository,
    fetcher: InboxFetcher,
    limit: int,
    concurrency: int = 1,
) -> SweepReport:
    """Refresh the cached inbox of every user with a stored credential.

    Args:
        credentials: Source of the users to refresh.
        fetcher: Fetcher used for each user.
        limit: Maximum number of items per user.
        concurrency: Users refreshed at once; 1 means strictly sequential.

    Returns:
        SweepReport with one outcome per user, in credential order.
    """

    report = SweepReport()
    users = [c.user_email for c in credentials.list_all()]
    logger.info("sweep_started", user_count=len(users), concurrency=concurrency)

    if concurrency <= 1:
        for user_email in users:
            report.results.append(await _refresh_user(fetcher, user_email, limit))
    else:
        semaphore = asyncio.Semaphore(concurrency)

        async def bounded(user_email: str) -> SweepOutcome:
            async with semaphore:
                return await _refresh_user(fetcher, user_email, limit)

        report.results.extend(await asyncio.gather(*(bounded(u) for u in users)))

    logger.info(
        "sweep_completed",
        total=report.total,
        succeeded=report.succeeded,
        failed=report.failed,
        skipped=report.skipped,
    )
    return report
