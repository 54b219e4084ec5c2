#!/usr/bin/env python3

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from src.constants import (
    DEFAULT_ADVISORY_TYPE,
    DEFAULT_ECOSYSTEM,
    DEFAULT_RATE_LIMIT_WAIT_SECONDS,
    GITHUB_ACCEPT,
    GITHUB_ADVISORIES_URL,
    GITHUB_API_VERSION,
    LOOKBACK_YEARS,
    MAX_PAGES,
    MAX_RATE_LIMIT_RETRIES,
    MAX_RATE_LIMIT_WAIT_SECONDS,
    MIN_RATE_LIMIT_WAIT_SECONDS,
    PAGE_DELAY_SECONDS,
    PER_PAGE,
    REQUEST_TIMEOUT_SECONDS,
    SNAPSHOT_FILE,
    SORT_DIRECTION,
    SORT_FIELD,
    USER_AGENT,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff policy for rate-limited (403/429) responses.

    ``max_retries`` bounds consecutive rate-limited attempts on a single page;
    ``None`` retries forever.
    """

    max_retries: int | None = MAX_RATE_LIMIT_RETRIES
    default_wait_s: float = DEFAULT_RATE_LIMIT_WAIT_SECONDS
    min_wait_s: float = MIN_RATE_LIMIT_WAIT_SECONDS
    max_wait_s: float = MAX_RATE_LIMIT_WAIT_SECONDS

    def clamp(self, wait_s: float) -> float:
        if not math.isfinite(wait_s):
            wait_s = self.default_wait_s
        return min(max(wait_s, self.min_wait_s), self.max_wait_s)

    def exhausted(self, attempts: int) -> bool:
        return self.max_retries is not None and attempts > self.max_retries


@dataclass(frozen=True)
class FeedConfig:
    """Settings shared by the fetcher and the merger."""

    api_url: str = GITHUB_ADVISORIES_URL
    ecosystem: str = DEFAULT_ECOSYSTEM
    advisory_type: str = DEFAULT_ADVISORY_TYPE
    per_page: int = PER_PAGE
    sort: str = SORT_FIELD
    direction: str = SORT_DIRECTION
    max_pages: int = MAX_PAGES
    page_delay_s: float = PAGE_DELAY_SECONDS
    lookback_years: int = LOOKBACK_YEARS
    request_timeout_s: int = REQUEST_TIMEOUT_SECONDS
    user_agent: str = USER_AGENT
    api_version: str = GITHUB_API_VERSION
    accept: str = GITHUB_ACCEPT
    token: str | None = field(default=None, repr=False)
    output_path: Path = Path(SNAPSHOT_FILE)
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    show_progress: bool = True

    def headers(self) -> dict[str, str]:
        headers = {
            "Accept": self.accept,
            "X-GitHub-Api-Version": self.api_version,
            "User-Agent": self.user_agent,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def page_params(self, page: int) -> dict[str, Any]:
        params: dict[str, Any] = {
            "per_page": self.per_page,
            "page": page,
            "sort": self.sort,
            "direction": self.direction,
        }
        if self.ecosystem:
            params["ecosystem"] = self.ecosystem
        if self.advisory_type:
            params["type"] = self.advisory_type
        return params


def load_feed_config(**overrides: Any) -> FeedConfig:
    """Build a FeedConfig from the environment (and .env), then apply overrides.

    Real environment variables win over values in .env. Empty strings are
    treated as absent. Overrides whose value is None are ignored.
    """
    from dotenv import find_dotenv, load_dotenv

    try:
        env_path = find_dotenv(usecwd=True) or find_dotenv()
    except Exception:
        env_path = ""
    load_dotenv(dotenv_path=env_path if env_path else None, override=False)

    values: dict[str, Any] = {}
    token = os.getenv("GITHUB_TOKEN")
    if token:
        values["token"] = token
    else:
        logger.info("[config] GITHUB_TOKEN not set; using unauthenticated requests")

    output = os.getenv("ADVISORY_FEED_OUTPUT")
    if output:
        values["output_path"] = Path(output)

    max_pages = os.getenv("ADVISORY_FEED_MAX_PAGES")
    if max_pages:
        try:
            parsed_pages = int(max_pages)
        except ValueError:
            parsed_pages = 0
        if parsed_pages >= 1:
            values["max_pages"] = parsed_pages
        else:
            logger.warning(
                f"Ignoring ADVISORY_FEED_MAX_PAGES={max_pages!r}; expected an integer >= 1"
            )

    values.update({k: v for k, v in overrides.items() if v is not None})
    if "output_path" in values:
        values["output_path"] = Path(values["output_path"])
    return replace(FeedConfig(), **values)
