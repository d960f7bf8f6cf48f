"""Pydantic models for API request/response serialization.

These models mirror the moderation dataclasses and provide proper JSON
serialization for the FastAPI endpoints.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

ContentTypeName = Literal["piano", "event", "blog_post"]
RuleScopeName = Literal["piano", "event", "blog_post", "all"]
ActionName = Literal["approve", "reject", "flag", "auto_approve"]
OperatorName = Literal["equals", "contains", "greater_than", "less_than", "exists", "not_exists"]


# ---------------------------------------------------------------------------
# Rule models
# ---------------------------------------------------------------------------


class ConditionModel(BaseModel):
    """Mirrors worldpianos.moderation.models.ModerationCondition."""

    field: str
    operator: OperatorName
    value: Any = None


class ConditionResponse(BaseModel):
    """Stored conditions may carry operators the engine does not know."""

    field: str
    operator: str
    value: Any = None


class RuleResponse(BaseModel):
    """Mirrors worldpianos.moderation.models.ModerationRule."""

    id: str
    name: str
    description: str = ""
    content_type: RuleScopeName = "all"
    conditions: list[ConditionResponse] = Field(default_factory=list)
    action: ActionName = "flag"
    priority: int = 5
    enabled: bool = True


class CreateRuleRequest(BaseModel):
    """Request body for creating a new rule. The ID is generated."""

    name: str
    description: str = ""
    content_type: RuleScopeName = "all"
    conditions: list[ConditionModel] = Field(default_factory=list)
    action: ActionName = "flag"
    priority: int = 5
    enabled: bool = True


class UpdateRuleRequest(BaseModel):
    """Request body for a partial rule update; unset fields are left alone."""

    name: Optional[str] = None
    description: Optional[str] = None
    content_type: Optional[RuleScopeName] = None
    conditions: Optional[list[ConditionModel]] = None
    action: Optional[ActionName] = None
    priority: Optional[int] = None
    enabled: Optional[bool] = None


class ToggleRuleRequest(BaseModel):
    """Request body for toggling a rule's enabled state."""

    enabled: bool


class CreateRuleResponse(BaseModel):
    id: str


# ---------------------------------------------------------------------------
# Evaluation and manual actions
# ---------------------------------------------------------------------------


class ProcessContentRequest(BaseModel):
    """A new submission and its author, as plain JSON objects."""

    content: dict[str, Any]
    content_type: ContentTypeName
    author: dict[str, Any] = Field(default_factory=dict)


class DecisionResponse(BaseModel):
    """Mirrors worldpianos.moderation.models.ModerationDecision."""

    status: str
    reason: str
    applied_rules: list[str] = Field(default_factory=list)


class ApproveRequest(BaseModel):
    moderator_id: str
    reason: Optional[str] = None


class RejectRequest(BaseModel):
    moderator_id: str
    reason: str


class FlagRequest(BaseModel):
    reason: str
    reporter_id: Optional[str] = None


class ModerationLogResponse(BaseModel):
    """Mirrors worldpianos.moderation.models.ModerationLog."""

    id: str
    content_id: str
    content_type: ContentTypeName
    action: ActionName
    reason: str
    timestamp: str
    moderator_id: Optional[str] = None
    rule_id: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ManualActionResponse(BaseModel):
    """Mirrors worldpianos.moderation.models.SideEffectResult."""

    ok: bool
    error: str = ""
    log: ModerationLogResponse


# ---------------------------------------------------------------------------
# Stats, export, queue
# ---------------------------------------------------------------------------


class StatsResponse(BaseModel):
    """Mirrors worldpianos.moderation.models.ModerationStats."""

    total: int = 0
    approved: int = 0
    rejected: int = 0
    flagged: int = 0
    auto_approved: int = 0
    by_content_type: dict[str, int] = Field(default_factory=dict)


class LogExportResponse(BaseModel):
    format: str
    content: str
    count: int = 0


class QueueItemModel(BaseModel):
    content_id: str
    content_type: ContentTypeName
    submitted_at: str = ""


class QueueRequest(BaseModel):
    items: list[QueueItemModel] = Field(default_factory=list)


class QueueItemResponse(BaseModel):
    content_id: str
    content_type: ContentTypeName
    submitted_at: str = ""
    flags: int = 0
    priority: Literal["low", "medium", "high"] = "low"
