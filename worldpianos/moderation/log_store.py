"""Append-only moderation log with filtering, stats and export."""

from __future__ import annotations

import csv
import io
import json
import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Optional

from worldpianos.moderation.models import (
    ContentType,
    ModerationAction,
    ModerationLog,
    ModerationStats,
    StatsRange,
)

log = logging.getLogger("worldpianos.moderation.log_store")

_EXPORT_COLUMNS = [
    "id",
    "timestamp",
    "content_id",
    "content_type",
    "action",
    "reason",
    "moderator_id",
    "rule_id",
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp as an aware datetime (naive means UTC)."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    ts = datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


class ModerationLogStore:
    """In-memory record of every moderation action.

    Entries are never mutated or removed.  ``clock`` returns the current UTC
    time and is used both to stamp new entries and as "now" for stats.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._clock = clock or _utcnow
        self._entries: list[ModerationLog] = []

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def append(
        self,
        content_id: str,
        content_type: ContentType | str,
        action: ModerationAction | str,
        reason: str,
        moderator_id: Optional[str] = None,
        rule_id: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> ModerationLog:
        """Record an action and return the created entry."""
        entry = ModerationLog(
            id=f"log-{uuid.uuid4().hex[:12]}",
            content_id=str(content_id),
            content_type=content_type,
            action=action,
            reason=reason,
            timestamp=self._clock().isoformat(),
            moderator_id=moderator_id,
            rule_id=rule_id,
            metadata=dict(metadata or {}),
        )
        self._entries.append(entry)
        log.debug(
            "logged %s on %s %s (rule=%s, moderator=%s)",
            entry.action.value,
            entry.content_type.value,
            entry.content_id,
            rule_id,
            moderator_id,
        )
        return entry

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_logs(
        self,
        content_id: Optional[str] = None,
        content_type: ContentType | str | None = None,
    ) -> list[ModerationLog]:
        """Return entries matching the filters, newest first."""
        entries = list(self._entries)
        if content_id:
            entries = [e for e in entries if e.content_id == str(content_id)]
        if content_type:
            ct = ContentType(content_type)
            entries = [e for e in entries if e.content_type is ct]

        entries.sort(key=lambda e: parse_timestamp(e.timestamp), reverse=True)
        return entries

    def flag_count(self, content_id: str, content_type: ContentType | str | None = None) -> int:
        """Number of times a content item has been flagged."""
        return sum(
            1
            for e in self.get_logs(content_id, content_type)
            if e.action is ModerationAction.FLAG
        )

    def get_stats(self, time_range: StatsRange | str = StatsRange.WEEK) -> ModerationStats:
        """Count actions and content types logged within *time_range* of now."""
        since = self._clock() - StatsRange(time_range).window
        recent = [e for e in self._entries if parse_timestamp(e.timestamp) >= since]

        stats = ModerationStats(total=len(recent))
        for e in recent:
            if e.action is ModerationAction.APPROVE:
                stats.approved += 1
            elif e.action is ModerationAction.REJECT:
                stats.rejected += 1
            elif e.action is ModerationAction.FLAG:
                stats.flagged += 1
            elif e.action is ModerationAction.AUTO_APPROVE:
                stats.auto_approved += 1
            stats.by_content_type[e.content_type.value] += 1
        return stats

    def export(self, fmt: str = "json") -> str:
        """Export all entries, newest first, as ``json`` or ``csv``."""
        entries = self.get_logs()

        if fmt == "csv":
            buf = io.StringIO()
            writer = csv.DictWriter(buf, fieldnames=_EXPORT_COLUMNS, extrasaction="ignore")
            writer.writeheader()
            for e in entries:
                writer.writerow(e.to_dict())
            return buf.getvalue()

        return json.dumps([e.to_dict() for e in entries], indent=2)
