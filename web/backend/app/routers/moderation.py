"""Moderation router -- rule CRUD, content evaluation, manual actions, logs and stats.

Prefix: ``/api/moderation``
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from web.backend.app.models.api import (
    ApproveRequest,
    ContentTypeName,
    CreateRuleRequest,
    CreateRuleResponse,
    DecisionResponse,
    FlagRequest,
    LogExportResponse,
    ManualActionResponse,
    ModerationLogResponse,
    ProcessContentRequest,
    QueueItemResponse,
    QueueRequest,
    RejectRequest,
    RuleResponse,
    StatsResponse,
    ToggleRuleRequest,
    UpdateRuleRequest,
)
from worldpianos.config import Settings
from worldpianos.moderation.models import ModerationLog, ModerationRule, SideEffectResult
from worldpianos.moderation.queue import QueueItem
from worldpianos.moderation.service import ModerationService

router = APIRouter(prefix="/api/moderation", tags=["moderation"])


# ---------------------------------------------------------------------------
# Service singleton
# ---------------------------------------------------------------------------

_service: ModerationService | None = None


def get_service() -> ModerationService:
    global _service
    if _service is None:
        _service = ModerationService.from_settings()
    return _service


def set_service(service: ModerationService | None) -> None:
    """Replace the process-wide service (used by tests)."""
    global _service
    _service = service


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _rule_response(rule: ModerationRule) -> RuleResponse:
    return RuleResponse(**rule.to_dict())


def _log_response(entry: ModerationLog) -> ModerationLogResponse:
    return ModerationLogResponse(**entry.to_dict())


def _action_response(result: SideEffectResult) -> ManualActionResponse:
    return ManualActionResponse(ok=result.ok, error=result.error, log=_log_response(result.log))


def _not_found(rule_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Rule '{rule_id}' not found",
    )


# ---------------------------------------------------------------------------
# Rule endpoints
# ---------------------------------------------------------------------------


@router.get("/rules", response_model=list[RuleResponse], summary="List all rules")
async def list_rules():
    """Return every rule in store order."""
    return [_rule_response(r) for r in get_service().get_moderation_rules()]


@router.post(
    "/rules",
    response_model=CreateRuleResponse,
    summary="Create a new rule",
    status_code=status.HTTP_201_CREATED,
)
async def create_rule(body: CreateRuleRequest):
    """Create a rule; the server assigns its ID."""
    rule_id = get_service().add_moderation_rule(body.model_dump())
    return CreateRuleResponse(id=rule_id)


@router.get("/rules/{rule_id}", response_model=RuleResponse, summary="Get a specific rule")
async def get_rule(rule_id: str):
    rule = get_service().rules.get_rule(rule_id)
    if rule is None:
        raise _not_found(rule_id)
    return _rule_response(rule)


@router.put("/rules/{rule_id}", response_model=RuleResponse, summary="Update a rule")
async def update_rule(rule_id: str, body: UpdateRuleRequest):
    """Merge the supplied fields into an existing rule."""
    changes = body.model_dump(exclude_none=True)
    updated = get_service().update_moderation_rule(rule_id, **changes)
    if updated is None:
        raise _not_found(rule_id)
    return _rule_response(updated)


@router.put(
    "/rules/{rule_id}/toggle",
    response_model=RuleResponse,
    summary="Enable or disable a rule",
)
async def toggle_rule(rule_id: str, body: ToggleRuleRequest):
    updated = get_service().rules.toggle_rule(rule_id, body.enabled)
    if updated is None:
        raise _not_found(rule_id)
    return _rule_response(updated)


@router.delete("/rules/{rule_id}", summary="Delete a rule")
async def delete_rule(rule_id: str):
    if not get_service().delete_moderation_rule(rule_id):
        raise _not_found(rule_id)
    return {"ok": True}


# ---------------------------------------------------------------------------
# Evaluation and manual actions
# ---------------------------------------------------------------------------


@router.post("/process", response_model=DecisionResponse, summary="Evaluate a new submission")
async def process_content(body: ProcessContentRequest):
    decision = get_service().process_content(body.content, body.content_type, body.author)
    return DecisionResponse(**decision.to_dict())


@router.post(
    "/content/{content_type}/{content_id}/approve",
    response_model=ManualActionResponse,
    summary="Approve content and publish it",
)
async def approve_content(content_type: ContentTypeName, content_id: str, body: ApproveRequest):
    result = get_service().approve_content(content_id, content_type, body.moderator_id, body.reason)
    return _action_response(result)


@router.post(
    "/content/{content_type}/{content_id}/reject",
    response_model=ManualActionResponse,
    summary="Reject content and notify its author",
)
async def reject_content(content_type: ContentTypeName, content_id: str, body: RejectRequest):
    result = get_service().reject_content(content_id, content_type, body.moderator_id, body.reason)
    return _action_response(result)


@router.post(
    "/content/{content_type}/{content_id}/flag",
    response_model=ManualActionResponse,
    summary="Report content for review",
)
async def flag_content(content_type: ContentTypeName, content_id: str, body: FlagRequest):
    result = get_service().flag_content(content_id, content_type, body.reason, body.reporter_id)
    return _action_response(result)


# ---------------------------------------------------------------------------
# Logs, stats, queue
# ---------------------------------------------------------------------------


@router.get("/logs", response_model=list[ModerationLogResponse], summary="List moderation logs")
async def list_logs(
    content_id: Optional[str] = Query(None),
    content_type: Optional[ContentTypeName] = Query(None),
):
    """Return log entries, newest first."""
    return [_log_response(e) for e in get_service().get_moderation_logs(content_id, content_type)]


@router.get("/logs/export", response_model=LogExportResponse, summary="Export the moderation log")
async def export_logs(format: str = Query("json", pattern="^(json|csv)$")):
    service = get_service()
    return LogExportResponse(
        format=format,
        content=service.logs.export(format),
        count=len(service.logs),
    )


@router.get("/stats", response_model=StatsResponse, summary="Moderation statistics")
async def get_stats(time_range: Optional[str] = Query(None, pattern="^(day|week|month)$")):
    """Counts over the last day, week or month (default from WORLDPIANOS_STATS_RANGE)."""
    time_range = time_range or Settings.from_env().stats_range
    return StatsResponse(**get_service().get_moderation_stats(time_range).to_dict())


@router.post("/queue", response_model=list[QueueItemResponse], summary="Order items for review")
async def prioritise_queue(body: QueueRequest):
    items = [QueueItem(**i.model_dump()) for i in body.items]
    ranked = get_service().review_queue().prioritise(items)
    return [
        QueueItemResponse(
            content_id=i.content_id,
            content_type=i.content_type.value,
            submitted_at=i.submitted_at,
            flags=i.flags,
            priority=i.priority.value,
        )
        for i in ranked
    ]
