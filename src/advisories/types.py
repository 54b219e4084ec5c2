"""
Typed shapes for raw GitHub advisories and the persisted snapshot.
"""

from __future__ import annotations

from typing import Any, TypedDict


class RawPackage(TypedDict, total=False):
    ecosystem: str
    name: str


class RawVulnerability(TypedDict, total=False):
    package: RawPackage
    vulnerable_version_range: str | None
    # A plain string on the global advisories endpoint; older payloads wrap
    # it as {"identifier": "1.2.3"}.
    first_patched_version: str | dict[str, Any] | None


class RawIdentifier(TypedDict, total=False):
    type: str
    value: str


class RawCWE(TypedDict, total=False):
    cwe_id: str
    name: str


class RawCVSS(TypedDict, total=False):
    score: float | None
    vector_string: str | None


class RawAdvisory(TypedDict, total=False):
    """Advisory object as returned by ``GET /advisories``.

    Every key is optional; the transformer substitutes defaults for anything
    missing.
    """

    ghsa_id: str
    summary: str
    description: str
    severity: str
    published_at: str
    updated_at: str
    withdrawn_at: str | None
    html_url: str
    url: str
    references: list[str]
    identifiers: list[RawIdentifier]
    cwes: list[RawCWE]
    cvss: RawCVSS | None
    vulnerabilities: list[RawVulnerability]


class AdvisoryMetadata(TypedDict):
    htmlUrl: str | None
    apiUrl: str | None
    cvssScore: float | None


class NormalizedAdvisory(TypedDict):
    """Persisted advisory shape; ``sourceId`` is the identity key."""

    id: str
    source: str
    sourceId: str | None
    ecosystem: str
    packageName: str
    kind: str
    severity: str | None
    summary: str | None
    description: str | None
    affectedVersionRanges: list[str | None]
    firstPatchedVersion: str | None
    aliases: list[str]
    cwes: list[str]
    publishedAt: str | None
    updatedAt: str | None
    withdrawnAt: str | None
    references: list[Any]
    metadata: AdvisoryMetadata


class Snapshot(TypedDict):
    schemaVersion: str
    generatedAt: str
    advisories: list[NormalizedAdvisory]
