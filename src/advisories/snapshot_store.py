from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, cast

from src.advisories.types import Snapshot
from src.constants import SCHEMA_VERSION

logger = logging.getLogger(__name__)


def utc_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a trailing Z."""
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def empty_snapshot(now: datetime | None = None) -> Snapshot:
    return {
        "schemaVersion": SCHEMA_VERSION,
        "generatedAt": utc_timestamp(now),
        "advisories": [],
    }


class SnapshotStore:
    """Reads and atomically rewrites the advisories snapshot file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Snapshot:
        """Return the persisted snapshot, or an empty one.

        Corrupt files and objects without an ``advisories`` list are logged
        and replaced by an empty snapshot. A bare JSON list is the legacy
        format: it is discarded, not migrated.
        """
        if not self.path.exists():
            logger.info(f"No snapshot at {self.path}; starting with an empty dataset")
            return empty_snapshot()

        try:
            parsed: Any = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"⚠️  Error parsing existing data file {self.path}, starting fresh: {e}")
            return empty_snapshot()

        if isinstance(parsed, list):
            logger.info(
                "Detected old data format (array); discarding it in favor of the new schema object"
            )
            return empty_snapshot()

        if not isinstance(parsed, dict) or not isinstance(parsed.get("advisories"), list):
            logger.warning(
                f"⚠️  Snapshot {self.path} has no advisories list; starting fresh"
            )
            return empty_snapshot()

        parsed.setdefault("schemaVersion", SCHEMA_VERSION)
        parsed.setdefault("generatedAt", utc_timestamp())
        return cast(Snapshot, parsed)

    def save(self, snapshot: Snapshot) -> None:
        """Write the snapshot as indented JSON, replacing the file in one step.

        The data goes to a temporary file beside the target which is then
        renamed over it, so a failed write never leaves a partial file.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, indent=2, ensure_ascii=False)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
        logger.info(f"💾 Saved {len(snapshot['advisories'])} advisories to {self.path}")

