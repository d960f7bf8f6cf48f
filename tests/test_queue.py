"""Tests for review queue prioritisation."""

from worldpianos.moderation.log_store import ModerationLogStore
from worldpianos.moderation.queue import QueueItem, ReviewPriority, ReviewQueue, review_priority


def test_review_priority_thresholds():
    assert review_priority(0) == ReviewPriority.LOW
    assert review_priority(1) == ReviewPriority.MEDIUM
    assert review_priority(2) == ReviewPriority.MEDIUM
    assert review_priority(3) == ReviewPriority.HIGH
    assert review_priority(10) == ReviewPriority.HIGH


def test_prioritise_orders_by_flags_then_age():
    logs = ModerationLogStore()
    for _ in range(3):
        logs.append("hot", "piano", "flag", "spam")
    logs.append("warm", "event", "flag", "odd")

    items = [
        QueueItem("quiet-new", "piano", submitted_at="2026-10-02T00:00:00+00:00"),
        QueueItem("quiet-old", "piano", submitted_at="2026-10-01T00:00:00+00:00"),
        QueueItem("warm", "event", submitted_at="2026-10-03T00:00:00+00:00"),
        QueueItem("hot", "piano", submitted_at="2026-10-04T00:00:00+00:00"),
    ]
    ranked = ReviewQueue(logs).prioritise(items)

    assert [i.content_id for i in ranked] == ["hot", "warm", "quiet-old", "quiet-new"]
    assert ranked[0].flags == 3
    assert ranked[0].priority == ReviewPriority.HIGH
    assert ranked[1].priority == ReviewPriority.MEDIUM
    assert ranked[2].flags == 0


def test_flags_are_scoped_to_content_type():
    logs = ModerationLogStore()
    logs.append("42", "event", "flag", "spam")
    ranked = ReviewQueue(logs).prioritise([QueueItem("42", "piano")])
    assert ranked[0].flags == 0
    assert ranked[0].priority == ReviewPriority.LOW


def test_prioritise_compares_submission_times_across_offsets():
    items = [
        QueueItem("a", "piano", submitted_at="2026-10-18T10:00:00+00:00"),
        QueueItem("b", "piano", submitted_at="2026-10-18T11:00:00+05:00"),
        QueueItem("c", "piano", submitted_at="2026-10-18T08:00:00Z"),
    ]
    ranked = ReviewQueue(ModerationLogStore()).prioritise(items)
    assert [i.content_id for i in ranked] == ["b", "c", "a"]


def test_undated_items_go_last():
    items = [
        QueueItem("undated", "event"),
        QueueItem("garbled", "event", submitted_at="last tuesday"),
        QueueItem("dated", "event", submitted_at="2026-10-01T00:00:00+00:00"),
    ]
    ranked = ReviewQueue(ModerationLogStore()).prioritise(items)
    assert [i.content_id for i in ranked] == ["dated", "undated", "garbled"]
