"""Rule engine: runs a submission through the enabled rules in priority order.

Evaluation is a fold over the sorted rules.  Each matching rule contributes
to the running decision; the fold stops at the first decisive action
(``auto_approve``, ``reject``, ``approve``).  ``flag`` only annotates the
reason and lets lower-priority rules run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from worldpianos.moderation.conditions import MISSING, conditions_match, resolve_field
from worldpianos.moderation.log_store import ModerationLogStore
from worldpianos.moderation.models import (
    ContentType,
    ModerationAction,
    ModerationDecision,
    ModerationRule,
    ModerationStatus,
)
from worldpianos.moderation.rule_store import RuleStore

log = logging.getLogger("worldpianos.moderation.engine")

DEFAULT_REASON = "Submitted for manual review"

_DECISIVE_OUTCOMES: dict[ModerationAction, tuple[ModerationStatus, str]] = {
    ModerationAction.AUTO_APPROVE: (ModerationStatus.AUTO_APPROVED, "Auto-approved"),
    ModerationAction.REJECT: (ModerationStatus.REJECTED, "Auto-rejected"),
    ModerationAction.APPROVE: (ModerationStatus.APPROVED, "Approved"),
}


@dataclass
class _Evaluation:
    """Running state of the fold."""

    status: ModerationStatus = ModerationStatus.PENDING
    base_reason: str = DEFAULT_REASON
    flag_notes: list[str] = field(default_factory=list)
    applied_rules: list[str] = field(default_factory=list)
    decisive: bool = False

    def reason(self) -> str:
        return self.base_reason + "".join(f" | Flagged: {n}" for n in self.flag_notes)

    def to_decision(self) -> ModerationDecision:
        return ModerationDecision(
            status=self.status,
            reason=self.reason(),
            applied_rules=list(self.applied_rules),
            decisive=self.decisive,
        )


def applicable_rules(rules: list[ModerationRule], content_type: ContentType) -> list[ModerationRule]:
    """Enabled rules in scope for *content_type*, lowest priority first.

    ``sorted`` is stable, so equal priorities keep store order.
    """
    return sorted(
        (r for r in rules if r.enabled is True and r.content_type.applies_to(content_type)),
        key=lambda r: r.priority,
    )


def _content_id(content: Any) -> str:
    value = resolve_field(content, "id")
    return "" if value is MISSING or value is None else str(value)


class RuleEngine:
    """Evaluates submissions against a :class:`RuleStore`.

    Every matched rule is written to the :class:`ModerationLogStore`.
    """

    def __init__(self, rule_store: RuleStore, log_store: ModerationLogStore) -> None:
        self._rules = rule_store
        self._logs = log_store

    def process_content(
        self, content: Any, content_type: ContentType | str, author: Any
    ) -> ModerationDecision:
        """Decide what happens to a new submission.

        Returns a pending decision when no decisive rule matches.
        """
        content_type = ContentType(content_type)
        content_id = _content_id(content)

        state = _Evaluation()
        for rule in applicable_rules(self._rules.list_rules(), content_type):
            state = self._step(state, rule, content, content_type, content_id, author)
            if state.decisive:
                break

        decision = state.to_decision()
        log.info(
            "%s %s -> %s (rules: %s)",
            content_type.value,
            content_id or "<no id>",
            decision.status.value,
            ", ".join(decision.applied_rules) or "none",
        )
        return decision

    def _step(
        self,
        state: _Evaluation,
        rule: ModerationRule,
        content: Any,
        content_type: ContentType,
        content_id: str,
        author: Any,
    ) -> _Evaluation:
        if not conditions_match(rule.conditions, content, author):
            return state

        log.debug("rule %s matched %s %s", rule.id, content_type.value, content_id)
        state.applied_rules.append(rule.id)
        self._logs.append(
            content_id,
            content_type,
            rule.action,
            rule.description,
            rule_id=rule.id,
        )

        if rule.action is ModerationAction.FLAG:
            state.flag_notes.append(rule.description)
            return state

        status, label = _DECISIVE_OUTCOMES[rule.action]
        state.status = status
        state.base_reason = f"{label}: {rule.description}"
        state.decisive = True
        return state
