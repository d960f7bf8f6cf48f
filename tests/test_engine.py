"""Tests for the rule engine: ordering, scoping and short-circuiting."""

from worldpianos.moderation.engine import RuleEngine, applicable_rules
from worldpianos.moderation.log_store import ModerationLogStore
from worldpianos.moderation.models import (
    ContentType,
    ModerationAction,
    ModerationRule,
    ModerationStatus,
)
from worldpianos.moderation.rule_store import RuleStore


def _rule(rule_id, action, priority, conditions=None, content_type="all", enabled=True):
    return ModerationRule(
        id=rule_id,
        name=rule_id,
        description=f"{rule_id} description",
        content_type=content_type,
        conditions=conditions if conditions is not None else [],
        action=action,
        priority=priority,
        enabled=enabled,
    )


def _engine(*rules):
    logs = ModerationLogStore()
    return RuleEngine(RuleStore(rules), logs), logs


_ALWAYS = [{"field": "id", "operator": "exists"}]
_NEVER = [{"field": "id", "operator": "not_exists"}]


def test_trusted_author_is_auto_approved():
    engine, _ = _engine(
        _rule(
            "trusted",
            "auto_approve",
            1,
            conditions=[
                {"field": "author.reputation", "operator": "greater_than", "value": 100},
                {"field": "author.verified", "operator": "equals", "value": True},
            ],
        )
    )
    decision = engine.process_content(
        {"id": "p1"}, "piano", {"id": "u1", "reputation": 150, "verified": True}
    )
    assert decision.status == ModerationStatus.AUTO_APPROVED
    assert decision.reason == "Auto-approved: trusted description"
    assert decision.applied_rules == ["trusted"]


def test_empty_name_is_rejected():
    engine, _ = _engine(
        _rule(
            "reject-incomplete",
            "reject",
            4,
            conditions=[{"field": "name", "operator": "not_exists", "value": None}],
        )
    )
    decision = engine.process_content({"id": "p1", "name": ""}, "piano", {"id": "u1"})
    assert decision.status == ModerationStatus.REJECTED
    assert decision.reason == "Auto-rejected: reject-incomplete description"


def test_flag_then_reject_keeps_flag_note():
    engine, logs = _engine(
        _rule("flag", "flag", 2, conditions=_ALWAYS),
        _rule("reject", "reject", 4, conditions=_ALWAYS),
    )
    decision = engine.process_content({"id": "p1"}, "piano", {})
    assert decision.status == ModerationStatus.REJECTED
    assert decision.applied_rules == ["flag", "reject"]
    assert decision.reason == "Auto-rejected: reject description | Flagged: flag description"
    assert len(logs) == 2


def test_no_match_is_pending():
    engine, logs = _engine(_rule("never", "reject", 1, conditions=_NEVER))
    decision = engine.process_content({"id": "p1"}, "piano", {})
    assert decision.status == ModerationStatus.PENDING
    assert decision.reason == "Submitted for manual review"
    assert decision.applied_rules == []
    assert not decision.decisive
    assert len(logs) == 0


def test_empty_rule_set_is_pending():
    engine, _ = _engine()
    decision = engine.process_content({"id": "e1"}, ContentType.EVENT, {})
    assert decision.status == ModerationStatus.PENDING


def test_flag_only_stays_pending_with_note():
    engine, _ = _engine(_rule("flag", "flag", 1, conditions=_ALWAYS))
    decision = engine.process_content({"id": "p1"}, "piano", {})
    assert decision.status == ModerationStatus.PENDING
    assert decision.reason == "Submitted for manual review | Flagged: flag description"


def test_multiple_flags_accumulate():
    engine, _ = _engine(
        _rule("a", "flag", 1, conditions=_ALWAYS),
        _rule("b", "flag", 2, conditions=_ALWAYS),
    )
    decision = engine.process_content({"id": "p1"}, "piano", {})
    assert decision.reason == (
        "Submitted for manual review | Flagged: a description | Flagged: b description"
    )
    assert decision.applied_rules == ["a", "b"]


def test_lower_priority_number_decides_first():
    # Stored out of order on purpose.
    engine, logs = _engine(
        _rule("late-reject", "reject", 5, conditions=_ALWAYS),
        _rule("early-approve", "approve", 1, conditions=_ALWAYS),
    )
    decision = engine.process_content({"id": "p1"}, "piano", {})
    assert decision.status == ModerationStatus.APPROVED
    assert decision.reason == "Approved: early-approve description"
    assert decision.applied_rules == ["early-approve"]
    assert len(logs) == 1


def test_equal_priorities_keep_store_order():
    engine, _ = _engine(
        _rule("first", "reject", 3, conditions=_ALWAYS),
        _rule("second", "approve", 3, conditions=_ALWAYS),
    )
    decision = engine.process_content({"id": "p1"}, "piano", {})
    assert decision.applied_rules == ["first"]


def test_flag_does_not_stop_evaluation():
    engine, _ = _engine(
        _rule("flag", "flag", 1, conditions=_ALWAYS),
        _rule("approve", "auto_approve", 2, conditions=_ALWAYS),
        _rule("never-reached", "reject", 3, conditions=_ALWAYS),
    )
    decision = engine.process_content({"id": "p1"}, "piano", {})
    assert decision.status == ModerationStatus.AUTO_APPROVED
    assert decision.applied_rules == ["flag", "approve"]
    assert decision.decisive


def test_disabled_rule_is_skipped():
    engine, _ = _engine(
        _rule("off", "reject", 1, conditions=_ALWAYS, enabled=False),
    )
    decision = engine.process_content({"id": "p1"}, "piano", {})
    assert decision.status == ModerationStatus.PENDING
    assert decision.applied_rules == []


def test_only_strictly_enabled_rules_apply():
    rule = _rule("odd", "reject", 1, conditions=_ALWAYS)
    rule.enabled = "false"
    assert applicable_rules([rule], ContentType.PIANO) == []

    engine, _ = _engine(rule)
    assert engine.process_content({"id": "p1"}, "piano", {}).status == ModerationStatus.PENDING


def test_content_type_scoping():
    engine, _ = _engine(
        _rule("piano-only", "reject", 1, conditions=_ALWAYS, content_type="piano"),
        _rule("everything", "flag", 2, conditions=_ALWAYS, content_type="all"),
    )
    for content_type in ("event", "blog_post"):
        decision = engine.process_content({"id": "x"}, content_type, {})
        assert decision.applied_rules == ["everything"]
        assert decision.status == ModerationStatus.PENDING

    decision = engine.process_content({"id": "x"}, "piano", {})
    assert decision.applied_rules == ["piano-only"]


def test_rule_with_no_conditions_always_matches():
    engine, _ = _engine(_rule("blanket", "approve", 1, conditions=[]))
    decision = engine.process_content({}, "blog_post", {})
    assert decision.status == ModerationStatus.APPROVED


def test_matched_rules_are_logged():
    engine, logs = _engine(
        _rule("flag", "flag", 1, conditions=_ALWAYS),
        _rule("reject", "reject", 2, conditions=_ALWAYS),
    )
    engine.process_content({"id": 42}, "event", {})

    entries = logs.get_logs(content_id="42")
    assert {e.rule_id for e in entries} == {"flag", "reject"}
    by_rule = {e.rule_id: e for e in entries}
    assert by_rule["reject"].action == ModerationAction.REJECT
    assert by_rule["reject"].reason == "reject description"
    assert by_rule["reject"].content_type == ContentType.EVENT
    assert by_rule["reject"].moderator_id is None


def test_missing_field_never_errors():
    engine, _ = _engine(
        _rule(
            "deep",
            "reject",
            1,
            conditions=[{"field": "a.b.c.d", "operator": "greater_than", "value": 1}],
        )
    )
    decision = engine.process_content({"a": {"b": None}}, "piano", None)
    assert decision.status == ModerationStatus.PENDING


def test_object_content_is_supported():
    class Piano:
        id = "p9"
        name = "Street Steinway"

    engine, logs = _engine(
        _rule("named", "approve", 1, conditions=[{"field": "name", "operator": "exists"}])
    )
    decision = engine.process_content(Piano(), "piano", object())
    assert decision.status == ModerationStatus.APPROVED
    assert logs.get_logs()[0].content_id == "p9"


def test_applicable_rules_filters_and_sorts():
    rules = [
        _rule("c", "flag", 3),
        _rule("a", "flag", 1, content_type="event"),
        _rule("b", "flag", 2, enabled=False),
        _rule("d", "flag", 0, content_type="piano"),
    ]
    assert [r.id for r in applicable_rules(rules, ContentType.PIANO)] == ["d", "c"]
    assert [r.id for r in applicable_rules(rules, ContentType.EVENT)] == ["a", "c"]
