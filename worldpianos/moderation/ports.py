"""Side-effect ports used by manual moderation actions.

Publishing and author notification belong to the surrounding application
(data store, search index, email).  The moderation service talks to them
through these two interfaces; implementations raise ``SideEffectError``
when the effect could not be completed.
"""

from __future__ import annotations

import logging
from typing import Protocol

from worldpianos.moderation.models import ContentType

log = logging.getLogger("worldpianos.moderation.ports")


class Publisher(Protocol):
    def publish(self, content_id: str, content_type: ContentType) -> None:
        """Make approved content visible on the site."""


class Notifier(Protocol):
    def notify_author(
        self, content_id: str, content_type: ContentType, status: str, reason: str
    ) -> None:
        """Tell the author what happened to their submission."""


class LoggingPublisher:
    """Stand-in publisher that only records the call.

    A real implementation updates the content status, adds it to the search
    index, notifies subscribers and updates the author's stats.
    """

    def publish(self, content_id: str, content_type: ContentType) -> None:
        log.info("publishing %s %s", content_type.value, content_id)


class LoggingNotifier:
    """Stand-in notifier; a real one sends email and in-app notifications."""

    def notify_author(
        self, content_id: str, content_type: ContentType, status: str, reason: str
    ) -> None:
        log.info(
            "notifying author of %s %s: %s - %s",
            content_type.value,
            content_id,
            status,
            reason,
        )
