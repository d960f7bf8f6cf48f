"""Content moderation for pianos, events and blog posts.

- Rules: ordered, prioritised condition sets stored in a ``RuleStore``
- Engine: evaluates submissions and stops at the first decisive action
- Log: append-only record of rule-triggered and manual actions, with stats
- Service: the facade used by the web application and the CLI
"""

from worldpianos.moderation.models import (
    ConditionOperator,
    ContentType,
    ModerationAction,
    ModerationCondition,
    ModerationDecision,
    ModerationLog,
    ModerationRule,
    ModerationStats,
    ModerationStatus,
    RuleScope,
    SideEffectResult,
    StatsRange,
)
from worldpianos.moderation.service import ModerationService

__all__ = [
    "ConditionOperator",
    "ContentType",
    "ModerationAction",
    "ModerationCondition",
    "ModerationDecision",
    "ModerationLog",
    "ModerationRule",
    "ModerationStats",
    "ModerationStatus",
    "ModerationService",
    "RuleScope",
    "SideEffectResult",
    "StatsRange",
]
