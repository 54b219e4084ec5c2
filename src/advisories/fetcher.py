#!/usr/bin/env python3
"""
Advisory Fetcher

Walks the paginated GitHub advisories collection (newest first) and collects
every advisory published inside the lookback window.

Features:
- Stops at the first advisory older than the cutoff (the collection is sorted
  by publish time, descending), or on an empty page, or at the page ceiling
- Courtesy pause between pages
- Rate-limit backoff driven by Retry-After / X-RateLimit-Reset, retrying the
  same page under a bounded retry policy
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime, timezone
from typing import Any, Protocol, cast

import aiohttp
from tqdm import tqdm

from src.advisories.config import FeedConfig, RetryPolicy
from src.advisories.errors import AdvisoryFeedError, RateLimitExhaustedError
from src.advisories.github_client import GitHubAdvisoryClient
from src.advisories.types import RawAdvisory

logger = logging.getLogger(__name__)


class AdvisoryClientProtocol(Protocol):
    async def fetch(
        self,
        session: aiohttp.ClientSession,
        params: dict[str, Any],
        on_rate_limit: Any,
        timeout_s: int = 30,
    ) -> list[dict[str, Any]] | None: ...


def lookback_cutoff(now: datetime, years: int) -> datetime:
    """Return ``now`` shifted back by whole calendar years (29 Feb -> 28 Feb)."""
    try:
        return now.replace(year=now.year - years)
    except ValueError:
        return now.replace(year=now.year - years, day=28)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp as returned by GitHub; naive values are UTC."""
    if not isinstance(value, str) or not value:
        return None
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _finite_seconds(value: Any) -> float | None:
    """Parse a numeric header value; blank, non-numeric, NaN and infinite give None."""
    if not value:
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    return seconds if math.isfinite(seconds) else None


def compute_rate_limit_wait(
    headers: Mapping[str, str], policy: RetryPolicy, now_epoch: float
) -> float:
    """Seconds to wait before retrying a rate-limited request.

    Retry-After wins when numeric, then X-RateLimit-Reset relative to
    ``now_epoch``, then the policy default. The result is clamped to the
    policy bounds.
    """
    lowered = {str(k).lower(): v for k, v in headers.items()}

    retry_after = _finite_seconds(lowered.get("retry-after"))
    if retry_after is not None:
        return policy.clamp(retry_after)

    reset = _finite_seconds(lowered.get("x-ratelimit-reset"))
    if reset is not None:
        return policy.clamp(reset - now_epoch)

    return policy.clamp(policy.default_wait_s)


class AdvisoryFetcher:
    """Sequential page walker with cutoff, page ceiling and rate-limit backoff."""

    def __init__(
        self,
        config: FeedConfig,
        client: AdvisoryClientProtocol | None = None,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
        epoch: Callable[[], float] | None = None,
    ) -> None:
        self.config = config
        self.client: AdvisoryClientProtocol = client or cast(
            AdvisoryClientProtocol, GitHubAdvisoryClient(config.api_url, config.headers())
        )
        self._sleep = sleep or asyncio.sleep
        self._epoch = epoch or time.time

        # Per-run bookkeeping
        self.pages_fetched: int = 0
        self.rate_limit_waits: list[float] = []
        self._current_page: int = 1
        self._rate_limit_attempts: int = 0

    def fetch_advisories(self, now: datetime | None = None) -> list[RawAdvisory]:
        """Fetch every advisory published within the lookback window of ``now``."""
        return asyncio.run(self.fetch_advisories_async(now))

    async def fetch_advisories_async(self, now: datetime | None = None) -> list[RawAdvisory]:
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        cutoff = lookback_cutoff(now, self.config.lookback_years)
        logger.info(f"Fetching advisories published since {cutoff.isoformat()}")

        self.pages_fetched = 0
        self.rate_limit_waits = []
        self._rate_limit_attempts = 0

        accepted: list[RawAdvisory] = []
        async with aiohttp.ClientSession() as session:
            with tqdm(
                desc="Fetching advisories",
                unit=" pages",
                disable=not self.config.show_progress,
            ) as pbar:
                page = 1
                while True:
                    self._current_page = page
                    logger.info(f"Fetching page {page}...")
                    data = await self.client.fetch(
                        session=session,
                        params=self.config.page_params(page),
                        on_rate_limit=self._handle_rate_limit,
                        timeout_s=self.config.request_timeout_s,
                    )
                    if data is None:
                        # Rate limited; the handler already waited. Same page again.
                        continue
                    self._rate_limit_attempts = 0

                    if not isinstance(data, list):
                        raise AdvisoryFeedError(
                            f"Unexpected payload for page {page}: {type(data).__name__}"
                        )

                    self.pages_fetched += 1
                    pbar.update(1)

                    if not data:
                        logger.info("No more data returned from API.")
                        break

                    reached_cutoff = self._accept_page(data, cutoff, accepted)
                    pbar.set_postfix({"accepted": len(accepted)})
                    if reached_cutoff:
                        break

                    if page >= self.config.max_pages:
                        logger.warning(
                            f"⚠️  Reached page ceiling ({self.config.max_pages}); stopping fetch"
                        )
                        break

                    await self._sleep(self.config.page_delay_s)
                    page += 1

        logger.info(f"Fetched {len(accepted)} advisories from the lookback window.")
        return accepted

    @staticmethod
    def _accept_page(
        records: list[dict[str, Any]], cutoff: datetime, accepted: list[RawAdvisory]
    ) -> bool:
        """Append in-window records; return True once an older record is seen."""
        for record in records:
            published = parse_timestamp(record.get("published_at"))
            if published is None:
                logger.warning(
                    f"Skipping advisory {record.get('ghsa_id', '?')} with unusable "
                    f"published_at={record.get('published_at')!r}"
                )
                continue
            if published < cutoff:
                logger.info(
                    f"Found advisory older than cutoff ({record.get('published_at')}), "
                    "stopping fetch."
                )
                return True
            accepted.append(cast(RawAdvisory, record))
        return False

    async def _handle_rate_limit(self, response: Any) -> None:
        """Wait out a 403/429 response, or give up once the retry budget is spent."""
        self._rate_limit_attempts += 1
        status = getattr(response, "status", None)
        policy = self.config.retry
        if policy.exhausted(self._rate_limit_attempts):
            logger.error(
                f"❌ Rate limit retries exhausted on page {self._current_page} "
                f"({self._rate_limit_attempts} attempts)"
            )
            raise RateLimitExhaustedError(self._current_page, self._rate_limit_attempts, status)

        wait_time = compute_rate_limit_wait(response.headers, policy, self._epoch())
        logger.warning(
            f"⏰ Rate limited (Status {status}). Waiting for {wait_time:.0f} seconds..."
        )
        self.rate_limit_waits.append(wait_time)
        await self._sleep(wait_time)
