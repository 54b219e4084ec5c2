#!/usr/bin/env python3
"""
Advisory Merger

Reconciles freshly fetched advisories with the persisted snapshot:
- ``sourceId`` is the identity key; it stays unique across the dataset
- existing records keep their order, new ones are appended
- duplicates inside a single batch collapse to the first occurrence
- the file is rewritten (and ``generatedAt`` bumped) only when something new
  was added
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.advisories.config import FeedConfig
from src.advisories.snapshot_store import SnapshotStore, utc_timestamp
from src.advisories.transform import transform_advisories
from src.advisories.types import NormalizedAdvisory, RawAdvisory, Snapshot

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """Outcome of one merge: the resulting snapshot and how many records were added."""

    snapshot: Snapshot
    added: int
    saved: bool = False

    @property
    def total(self) -> int:
        return len(self.snapshot["advisories"])


def merge_advisories(snapshot: Snapshot, records: Iterable[NormalizedAdvisory]) -> MergeResult:
    """Append records whose identity key is not yet present.

    The input snapshot is not mutated; a new snapshot dict is returned inside
    the result.
    """
    advisories: list[NormalizedAdvisory] = list(snapshot["advisories"])
    seen: set[Any] = {a.get("sourceId") for a in advisories if isinstance(a, Mapping)}
    added = 0

    for record in records:
        key = record.get("sourceId")
        if key in seen:
            continue
        advisories.append(record)
        seen.add(key)
        added += 1

    merged: Snapshot = {**snapshot, "advisories": advisories}  # type: ignore[typeddict-item]
    return MergeResult(snapshot=merged, added=added)


class AdvisoryMerger:
    """Transforms raw advisories and commits them to the snapshot store."""

    def __init__(self, config: FeedConfig, store: SnapshotStore | None = None):
        self.config = config
        self.store = store or SnapshotStore(config.output_path)

    def run(self, raw_records: Iterable[RawAdvisory], now: datetime | None = None) -> MergeResult:
        records = transform_advisories(raw_records)
        existing = self.store.load()
        result = merge_advisories(existing, records)
        logger.info(f"Added {result.added} new advisories.")

        if result.added > 0:
            result.snapshot["generatedAt"] = utc_timestamp(now)
            self.store.save(result.snapshot)
            result.saved = True
            logger.info(f"✅ Snapshot now holds {result.total} advisories")
        else:
            logger.info("No new advisories to save.")
        return result
