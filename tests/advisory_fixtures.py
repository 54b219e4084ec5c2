"""Builders and fakes shared by the advisory feed tests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)
CUTOFF = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def iso(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


def make_advisory(ghsa_id: str, published: datetime, **extra: Any) -> dict[str, Any]:
    advisory: dict[str, Any] = {
        "ghsa_id": ghsa_id,
        "summary": f"Malware in {ghsa_id}",
        "description": "Embedded malicious code",
        "severity": "critical",
        "published_at": iso(published),
        "updated_at": iso(published),
        "withdrawn_at": None,
        "html_url": f"https://github.com/advisories/{ghsa_id}",
        "url": f"https://api.github.com/advisories/{ghsa_id}",
        "references": [f"https://github.com/advisories/{ghsa_id}"],
        "identifiers": [{"type": "GHSA", "value": ghsa_id}],
        "cwes": [{"cwe_id": "CWE-506", "name": "Embedded Malicious Code"}],
        "cvss": {"score": None, "vector_string": None},
        "vulnerabilities": [
            {
                "package": {"ecosystem": "npm", "name": f"pkg-{ghsa_id.lower()}"},
                "vulnerable_version_range": ">= 0",
                "first_patched_version": None,
            }
        ],
    }
    advisory.update(extra)
    return advisory


class FakeResponse:
    def __init__(self, status: int, headers: dict[str, str] | None = None):
        self.status = status
        self.headers = headers or {}


class RateLimited:
    """Scripted step: answer the request with a rate-limit response."""

    def __init__(self, status: int = 429, headers: dict[str, str] | None = None):
        self.response = FakeResponse(status, headers)


class ScriptedClient:
    """Fake GitHub client replaying a fixed script of pages and rate limits."""

    def __init__(self, script: list[Any]):
        self.script = list(script)
        self.requested_pages: list[int] = []
        self.params: list[dict[str, Any]] = []

    async def fetch(self, session, params, on_rate_limit, timeout_s=30):  # type: ignore[no-untyped-def]
        self.requested_pages.append(params["page"])
        self.params.append(dict(params))
        if not self.script:
            return []
        step = self.script.pop(0)
        if isinstance(step, RateLimited):
            await on_rate_limit(step.response)
            return None
        if isinstance(step, Exception):
            raise step
        return step


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


