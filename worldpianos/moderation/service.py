"""Moderation service, the single entry point used by the web application.

Wires the rule store, rule engine, moderation log and side-effect ports
together and exposes rule evaluation, manual moderator actions, rule
administration and log/stats queries.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

from worldpianos.config import Settings
from worldpianos.errors import SideEffectError
from worldpianos.moderation.engine import RuleEngine
from worldpianos.moderation.log_store import ModerationLogStore
from worldpianos.moderation.models import (
    ContentType,
    ModerationAction,
    ModerationDecision,
    ModerationLog,
    ModerationRule,
    ModerationStats,
    SideEffectResult,
    StatsRange,
)
from worldpianos.moderation.ports import LoggingNotifier, LoggingPublisher, Notifier, Publisher
from worldpianos.moderation.queue import ReviewQueue
from worldpianos.moderation.rule_store import RuleStore, load_rules

log = logging.getLogger("worldpianos.moderation.service")

DEFAULT_APPROVE_REASON = "Manually approved by moderator"


class ModerationService:
    """Stateful moderation service.

    All state lives in the injected stores, so separate instances (per
    tenant, per test) never share rules or logs.
    """

    def __init__(
        self,
        rule_store: Optional[RuleStore] = None,
        log_store: Optional[ModerationLogStore] = None,
        publisher: Optional[Publisher] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.rules = rule_store if rule_store is not None else RuleStore.with_default_rules()
        self.logs = log_store if log_store is not None else ModerationLogStore()
        self._publisher = publisher or LoggingPublisher()
        self._notifier = notifier or LoggingNotifier()
        self._engine = RuleEngine(self.rules, self.logs)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> ModerationService:
        """Build a service from configuration (rule file or stock rules)."""
        settings = settings or Settings.from_env()
        if settings.rules_file:
            return cls(rule_store=RuleStore(load_rules(settings.rules_file)))
        return cls()

    # ------------------------------------------------------------------
    # Rule evaluation
    # ------------------------------------------------------------------

    def process_content(
        self, content: Any, content_type: ContentType | str, author: Any
    ) -> ModerationDecision:
        """Run a new submission through the rules and return the decision."""
        return self._engine.process_content(content, content_type, author)

    # ------------------------------------------------------------------
    # Manual actions
    # ------------------------------------------------------------------

    def approve_content(
        self,
        content_id: str,
        content_type: ContentType | str,
        moderator_id: str,
        reason: Optional[str] = None,
    ) -> SideEffectResult:
        """Approve content on behalf of a moderator and publish it."""
        content_type = ContentType(content_type)
        log.info("approving %s %s", content_type.value, content_id)
        entry = self.logs.append(
            content_id,
            content_type,
            ModerationAction.APPROVE,
            reason or DEFAULT_APPROVE_REASON,
            moderator_id=moderator_id,
        )
        return self._run_side_effect(
            entry, lambda: self._publisher.publish(entry.content_id, content_type)
        )

    def reject_content(
        self,
        content_id: str,
        content_type: ContentType | str,
        moderator_id: str,
        reason: str,
    ) -> SideEffectResult:
        """Reject content on behalf of a moderator and notify its author."""
        content_type = ContentType(content_type)
        log.info("rejecting %s %s", content_type.value, content_id)
        entry = self.logs.append(
            content_id,
            content_type,
            ModerationAction.REJECT,
            reason,
            moderator_id=moderator_id,
        )
        return self._run_side_effect(
            entry,
            lambda: self._notifier.notify_author(
                entry.content_id, content_type, "rejected", reason
            ),
        )

    def flag_content(
        self,
        content_id: str,
        content_type: ContentType | str,
        reason: str,
        reporter_id: Optional[str] = None,
    ) -> SideEffectResult:
        """Record a report against content. Flags only feed queue priority."""
        content_type = ContentType(content_type)
        log.info("flagging %s %s", content_type.value, content_id)
        entry = self.logs.append(
            content_id,
            content_type,
            ModerationAction.FLAG,
            reason,
            moderator_id=reporter_id,
        )
        return SideEffectResult(ok=True, log=entry)

    @staticmethod
    def _run_side_effect(entry: ModerationLog, effect) -> SideEffectResult:
        # The log entry stands even when the side effect fails.
        try:
            effect()
        except SideEffectError as e:
            log.warning("%s %s: %s", entry.action.value, entry.content_id, e)
            return SideEffectResult(ok=False, log=entry, error=str(e))
        return SideEffectResult(ok=True, log=entry)

    # ------------------------------------------------------------------
    # Rule administration
    # ------------------------------------------------------------------

    def get_moderation_rules(self) -> list[ModerationRule]:
        return self.rules.list_rules()

    def add_moderation_rule(self, rule: ModerationRule | Mapping[str, Any]) -> str:
        return self.rules.add_rule(rule)

    def update_moderation_rule(self, rule_id: str, **changes: Any) -> Optional[ModerationRule]:
        return self.rules.update_rule(rule_id, **changes)

    def delete_moderation_rule(self, rule_id: str) -> bool:
        return self.rules.delete_rule(rule_id)

    # ------------------------------------------------------------------
    # Logs, stats, queue
    # ------------------------------------------------------------------

    def get_moderation_logs(
        self,
        content_id: Optional[str] = None,
        content_type: ContentType | str | None = None,
    ) -> list[ModerationLog]:
        return self.logs.get_logs(content_id, content_type)

    def get_moderation_stats(self, time_range: StatsRange | str = StatsRange.WEEK) -> ModerationStats:
        return self.logs.get_stats(time_range)

    def review_queue(self) -> ReviewQueue:
        return ReviewQueue(self.logs)
