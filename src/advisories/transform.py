from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from src.advisories.types import NormalizedAdvisory, RawAdvisory
from src.constants import ADVISORY_KIND, DEFAULT_ECOSYSTEM, SOURCE_NAME, UNKNOWN_PACKAGE


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _entries(value: Any) -> list[Any]:
    return list(value) if isinstance(value, list) else []


def _first_patched(value: Any) -> str | None:
    if isinstance(value, Mapping):
        identifier = value.get("identifier")
        return str(identifier) if identifier is not None else None
    if value is None:
        return None
    return str(value)


def transform_advisory(advisory: RawAdvisory | Mapping[str, Any]) -> NormalizedAdvisory:
    """Map one raw GitHub advisory to the persisted schema.

    Missing or malformed optional fields fall back to defaults: package
    ``unknown`` in the default ecosystem, no version ranges, no first patched
    version, empty alias and CWE lists.
    """
    raw = _mapping(advisory)
    vulnerabilities = [_mapping(v) for v in _entries(raw.get("vulnerabilities"))]

    package_name = UNKNOWN_PACKAGE
    ecosystem = DEFAULT_ECOSYSTEM
    first_patched: str | None = None
    if vulnerabilities:
        first = vulnerabilities[0]
        package = _mapping(first.get("package"))
        package_name = package.get("name") or UNKNOWN_PACKAGE
        ecosystem = package.get("ecosystem") or DEFAULT_ECOSYSTEM
        first_patched = _first_patched(first.get("first_patched_version"))

    source_id = raw.get("ghsa_id")
    aliases = [
        str(i["value"])
        for i in _entries(raw.get("identifiers"))
        if isinstance(i, Mapping) and i.get("value") is not None
    ]
    cwes = [
        str(c["cwe_id"])
        for c in _entries(raw.get("cwes"))
        if isinstance(c, Mapping) and c.get("cwe_id") is not None
    ]
    cvss = _mapping(raw.get("cvss"))

    return {
        "id": f"{SOURCE_NAME}:{source_id}:{ecosystem}:{package_name}",
        "source": SOURCE_NAME,
        "sourceId": source_id,
        "ecosystem": ecosystem,
        "packageName": package_name,
        "kind": ADVISORY_KIND,
        "severity": raw.get("severity"),
        "summary": raw.get("summary"),
        "description": raw.get("description"),
        "affectedVersionRanges": [v.get("vulnerable_version_range") for v in vulnerabilities],
        "firstPatchedVersion": first_patched,
        "aliases": aliases,
        "cwes": cwes,
        "publishedAt": raw.get("published_at"),
        "updatedAt": raw.get("updated_at"),
        "withdrawnAt": raw.get("withdrawn_at"),
        "references": _entries(raw.get("references")),
        "metadata": {
            "htmlUrl": raw.get("html_url"),
            "apiUrl": raw.get("url"),
            "cvssScore": cvss.get("score"),
        },
    }


def transform_advisories(
    advisories: Iterable[RawAdvisory | Mapping[str, Any]],
) -> list[NormalizedAdvisory]:
    return [transform_advisory(a) for a in advisories]
