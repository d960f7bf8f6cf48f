"""Review queue ordering for human moderators.

Priority comes from how often an item has been flagged.  Nothing here
escalates automatically; it only reads the moderation log.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from worldpianos.moderation.log_store import ModerationLogStore, parse_timestamp
from worldpianos.moderation.models import ContentType

log = logging.getLogger("worldpianos.moderation.queue")


class ReviewPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return {"low": 1, "medium": 2, "high": 3}[self.value]


def review_priority(flag_count: int) -> ReviewPriority:
    """0 flags is low, 1-2 medium, 3 or more high."""
    if flag_count >= 3:
        return ReviewPriority.HIGH
    if flag_count >= 1:
        return ReviewPriority.MEDIUM
    return ReviewPriority.LOW


@dataclass
class QueueItem:
    """A submission awaiting review."""

    content_id: str
    content_type: ContentType
    submitted_at: str = ""  # ISO 8601
    flags: int = 0
    priority: ReviewPriority = ReviewPriority.LOW

    def __post_init__(self) -> None:
        self.content_type = ContentType(self.content_type)
        self.priority = ReviewPriority(self.priority)


def _age_key(item: QueueItem) -> tuple[int, datetime]:
    # Items with no usable submission time go after dated ones.
    if item.submitted_at:
        try:
            return 0, parse_timestamp(item.submitted_at)
        except ValueError:
            log.warning("unreadable submitted_at for %s: %r", item.content_id, item.submitted_at)
    return 1, datetime.min.replace(tzinfo=timezone.utc)


class ReviewQueue:
    """Orders pending submissions by flag-derived priority."""

    def __init__(self, log_store: ModerationLogStore) -> None:
        self._logs = log_store

    def prioritise(self, items: Iterable[QueueItem]) -> list[QueueItem]:
        """Annotate *items* with flag counts; highest priority, then oldest, first."""
        ranked = []
        for item in items:
            flags = self._logs.flag_count(item.content_id, item.content_type)
            ranked.append(
                QueueItem(
                    content_id=item.content_id,
                    content_type=item.content_type,
                    submitted_at=item.submitted_at,
                    flags=flags,
                    priority=review_priority(flags),
                )
            )
        ranked.sort(key=_age_key)
        ranked.sort(key=lambda i: i.priority.rank, reverse=True)
        return ranked
