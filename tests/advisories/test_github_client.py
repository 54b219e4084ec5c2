#!/usr/bin/env python3

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer as AioTestServer

from src.advisories.config import FeedConfig
from src.advisories.fetcher import AdvisoryFetcher
from src.advisories.github_client import GitHubAdvisoryClient
from advisory_fixtures import SleepRecorder, make_advisory


def _app(handler) -> web.Application:
    app = web.Application()
    app.router.add_get("/advisories", handler)
    return app


@pytest.mark.asyncio
async def test_fetch_returns_page_and_sends_headers():
    seen: dict = {}

    async def handler(request: web.Request) -> web.Response:
        seen["headers"] = request.headers.copy()
        seen["query"] = dict(request.query)
        return web.json_response([{"ghsa_id": "GHSA-1"}])

    config = FeedConfig(token="s3cret")
    async with AioTestServer(_app(handler)) as server:
        client = GitHubAdvisoryClient(str(server.make_url("/advisories")), config.headers())
        async with aiohttp.ClientSession() as session:

            async def never(_resp):
                raise AssertionError("unexpected rate limit")

            data = await client.fetch(session, config.page_params(3), never)

    assert data == [{"ghsa_id": "GHSA-1"}]
    assert seen["query"]["page"] == "3"
    assert seen["query"]["per_page"] == "100"
    assert seen["headers"]["Authorization"] == "Bearer s3cret"
    assert seen["headers"]["Accept"] == "application/vnd.github+json"
    assert seen["headers"]["X-GitHub-Api-Version"] == "2022-11-28"
    assert seen["headers"]["User-Agent"] == "advisory-feed/1.0"


@pytest.mark.asyncio
async def test_rate_limit_invokes_callback_and_returns_none():
    async def handler(request: web.Request) -> web.Response:
        return web.json_response({"message": "slow down"}, status=429, headers={"Retry-After": "7"})

    captured: list = []

    async def on_rate_limit(resp):
        captured.append((resp.status, resp.headers.get("retry-after")))

    async with AioTestServer(_app(handler)) as server:
        client = GitHubAdvisoryClient(str(server.make_url("/advisories")), {})
        async with aiohttp.ClientSession() as session:
            data = await client.fetch(session, {"page": 1}, on_rate_limit)

    assert data is None
    assert captured == [(429, "7")]


@pytest.mark.asyncio
async def test_server_error_raises():
    async def handler(request: web.Request) -> web.Response:
        return web.json_response({"message": "boom"}, status=502)

    async def on_rate_limit(resp):
        raise AssertionError("unexpected rate limit")

    async with AioTestServer(_app(handler)) as server:
        client = GitHubAdvisoryClient(str(server.make_url("/advisories")), {})
        async with aiohttp.ClientSession() as session:
            with pytest.raises(aiohttp.ClientResponseError) as exc:
                await client.fetch(session, {"page": 1}, on_rate_limit)

    assert exc.value.status == 502


@pytest.mark.asyncio
async def test_fetcher_against_live_server_recovers_from_rate_limit():
    now = datetime(2025, 6, 15, tzinfo=timezone.utc)
    pages = {
        "1": [make_advisory("GHSA-a", now), make_advisory("GHSA-b", now - timedelta(days=2))],
        "2": [make_advisory("GHSA-c", now - timedelta(days=3))],
    }
    hits: list[str] = []

    async def handler(request: web.Request) -> web.Response:
        page = request.query["page"]
        hits.append(page)
        if page == "2" and hits.count("2") == 1:
            return web.json_response({}, status=403, headers={"Retry-After": "2"})
        return web.json_response(pages.get(page, []))

    sleeps = SleepRecorder()
    async with AioTestServer(_app(handler)) as server:
        config = FeedConfig(api_url=str(server.make_url("/advisories")), show_progress=False)
        fetcher = AdvisoryFetcher(config, sleep=sleeps)
        records = await fetcher.fetch_advisories_async(now=now)

    assert [r["ghsa_id"] for r in records] == ["GHSA-a", "GHSA-b", "GHSA-c"]
    assert hits == ["1", "2", "2", "3"]
    assert sleeps.calls == [1.0, 2.0, 1.0]
