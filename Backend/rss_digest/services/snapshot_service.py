from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from rss_digest.core.logging import get_logger
from rss_digest.models.feeds import CategoryResult, Snapshot

logger = get_logger()


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC with milliseconds and a `Z` suffix, e.g. 2024-01-01T10:00:00.000Z."""
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SnapshotBuilder:
    def __init__(self, fetched_at: Optional[str] = None) -> None:
        self.fetched_at = fetched_at or utc_timestamp()
        self._categories: List[CategoryResult] = []

    def extend(self, categories: List[CategoryResult]) -> None:
        self._categories.extend(categories)

    def build(self) -> Snapshot:
        return Snapshot(categories=list(self._categories), fetched_at=self.fetched_at)


def snapshot_to_json(snapshot: Snapshot) -> str:
    payload = snapshot.model_dump(by_alias=True, exclude_none=True)
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def write_snapshot(snapshot: Snapshot, path: Path) -> Path:
    """
    Write the snapshot in one go: temp file in the target directory, then
    os.replace onto `path`. Readers never observe a partial document.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    data = snapshot_to_json(snapshot)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(data)
        os.replace(tmp_name, target)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise

    logger.info("snapshot_written", path=str(target), bytes=len(data.encode("utf-8")))
    return target
