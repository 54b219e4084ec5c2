from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import aiohttp

from src.constants import RATE_LIMIT_STATUSES


class GitHubAdvisoryClient:
    """Lightweight async client for the GitHub global advisories endpoint."""

    def __init__(self, base_url: str, headers: dict[str, str]) -> None:
        self.base_url: str = base_url
        self.headers: dict[str, str] = dict(headers)

    async def fetch(
        self,
        session: aiohttp.ClientSession,
        params: dict[str, Any],
        on_rate_limit: Callable[[aiohttp.ClientResponse], Awaitable[None]],
        timeout_s: int = 30,
    ) -> list[dict[str, Any]] | None:
        """
        Perform a GET request for one page of advisories.

        Returns the parsed JSON list on success.
        If the request is rate limited (429/403), calls on_rate_limit and returns None.
        Any other error status raises aiohttp.ClientResponseError.
        """
        async with session.get(
            self.base_url,
            headers=self.headers,
            params=params,
            timeout=aiohttp.ClientTimeout(total=timeout_s),
        ) as resp:
            if resp.status in RATE_LIMIT_STATUSES:
                await on_rate_limit(resp)
                return None
            resp.raise_for_status()
            data: list[dict[str, Any]] = await resp.json()
            return data
