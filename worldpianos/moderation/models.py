"""Data models for the content moderation system."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, Optional


class ContentType(Enum):
    """Categories of user-submitted content."""

    PIANO = "piano"
    EVENT = "event"
    BLOG_POST = "blog_post"


class RuleScope(Enum):
    """Which content categories a rule applies to."""

    PIANO = "piano"
    EVENT = "event"
    BLOG_POST = "blog_post"
    ALL = "all"

    def applies_to(self, content_type: ContentType) -> bool:
        return self is RuleScope.ALL or self.value == content_type.value


class ModerationAction(Enum):
    """What happens when a rule matches or a moderator acts."""

    APPROVE = "approve"
    REJECT = "reject"
    FLAG = "flag"
    AUTO_APPROVE = "auto_approve"

    @property
    def is_decisive(self) -> bool:
        return self is not ModerationAction.FLAG


class ModerationStatus(Enum):
    """Outcome of evaluating a submission."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    AUTO_APPROVED = "auto_approved"


class ConditionOperator(Enum):
    EQUALS = "equals"
    CONTAINS = "contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    EXISTS = "exists"
    NOT_EXISTS = "not_exists"


class StatsRange(Enum):
    """Look-back windows for moderation statistics."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @property
    def window(self) -> timedelta:
        return {
            StatsRange.DAY: timedelta(hours=24),
            StatsRange.WEEK: timedelta(days=7),
            StatsRange.MONTH: timedelta(days=30),
        }[self]


def _operator(value: Any) -> ConditionOperator | str:
    """Parse an operator, keeping unknown ones as raw strings."""
    if isinstance(value, ConditionOperator):
        return value
    try:
        return ConditionOperator(value)
    except ValueError:
        return str(value)


@dataclass
class ModerationCondition:
    """A single field test inside a rule.

    ``field`` is a dotted path into the content, or into the author when it
    starts with ``author.``.  ``value`` is ignored by ``exists`` and
    ``not_exists``.
    """

    field: str
    operator: ConditionOperator | str
    value: Any = None

    def __post_init__(self) -> None:
        self.operator = _operator(self.operator)

    def to_dict(self) -> dict[str, Any]:
        op = self.operator.value if isinstance(self.operator, ConditionOperator) else self.operator
        return {"field": self.field, "operator": op, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModerationCondition:
        return cls(
            field=data.get("field", ""),
            operator=data.get("operator", ""),
            value=data.get("value"),
        )


@dataclass
class ModerationRule:
    """A moderation rule: all conditions must match for the action to apply."""

    id: str
    name: str
    description: str = ""
    content_type: RuleScope = RuleScope.ALL
    conditions: list[ModerationCondition] = field(default_factory=list)
    action: ModerationAction = ModerationAction.FLAG
    priority: int = 5  # lower runs first
    enabled: bool = True

    def __post_init__(self) -> None:
        self.content_type = RuleScope(self.content_type)
        self.action = ModerationAction(self.action)
        if not isinstance(self.priority, int) or isinstance(self.priority, bool):
            raise ValueError(f"priority must be an integer, got {self.priority!r}")
        if not isinstance(self.enabled, bool):
            raise ValueError(f"enabled must be true or false, got {self.enabled!r}")
        self.conditions = [
            c if isinstance(c, ModerationCondition) else ModerationCondition.from_dict(c)
            for c in self.conditions
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "content_type": self.content_type.value,
            "conditions": [c.to_dict() for c in self.conditions],
            "action": self.action.value,
            "priority": self.priority,
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModerationRule:
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            description=data.get("description", ""),
            content_type=data.get("content_type", "all"),
            conditions=list(data.get("conditions", [])),
            action=data.get("action", "flag"),
            priority=data.get("priority", 5),
            enabled=data.get("enabled", True),
        )


@dataclass
class ModerationLog:
    """A single recorded moderation action (rule-triggered or manual)."""

    id: str
    content_id: str
    content_type: ContentType
    action: ModerationAction
    reason: str
    timestamp: str  # ISO 8601, UTC
    moderator_id: Optional[str] = None
    rule_id: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.content_type = ContentType(self.content_type)
        self.action = ModerationAction(self.action)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["content_type"] = self.content_type.value
        data["action"] = self.action.value
        return data


@dataclass
class ModerationDecision:
    """Result of running a submission through the rule engine."""

    status: ModerationStatus = ModerationStatus.PENDING
    reason: str = "Submitted for manual review"
    applied_rules: list[str] = field(default_factory=list)
    decisive: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "reason": self.reason,
            "applied_rules": list(self.applied_rules),
        }


@dataclass
class ModerationStats:
    """Action counts over a time window."""

    total: int = 0
    approved: int = 0
    rejected: int = 0
    flagged: int = 0
    auto_approved: int = 0
    by_content_type: dict[str, int] = field(
        default_factory=lambda: {ct.value: 0 for ct in ContentType}
    )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SideEffectResult:
    """Outcome of a manual moderation action and its side effect."""

    ok: bool
    log: ModerationLog
    error: str = ""
