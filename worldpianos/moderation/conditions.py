"""Condition evaluation: field-path lookup and operator semantics.

Content and author objects are owned by the surrounding application.  They
may be plain dicts (as returned by the data store) or objects with
attributes; both are walked the same way and never mutated.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from numbers import Real
from typing import Any

from worldpianos.moderation.models import ConditionOperator, ModerationCondition

AUTHOR_PREFIX = "author."

_SCALARS = (str, bytes, int, float, bool)


class _Missing:
    """Sentinel for a path that does not resolve."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def resolve_field(obj: Any, path: str) -> Any:
    """Walk *path* (dot separated) through *obj*.

    Numeric segments index into lists and tuples (``images.0.url``).
    Returns ``MISSING`` as soon as a link is absent; never raises.
    """
    current = obj
    for key in path.split("."):
        if current is None or current is MISSING or isinstance(current, _SCALARS):
            return MISSING
        if isinstance(current, Mapping):
            current = current.get(key, MISSING)
        elif isinstance(current, Sequence):
            if not key.isdecimal() or int(key) >= len(current):
                return MISSING
            current = current[int(key)]
        elif key.startswith("_"):
            return MISSING
        else:
            current = getattr(current, key, MISSING)
    return current


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _is_absent(value: Any) -> bool:
    return value is MISSING or value is None or value == ""


def _strict_equals(left: Any, right: Any) -> bool:
    if left is MISSING:
        return False
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if _is_number(left) and _is_number(right):
        return left == right
    return type(left) is type(right) and left == right


def evaluate_condition(condition: ModerationCondition, content: Any, author: Any) -> bool:
    """Return True if *condition* holds for the given content and author."""
    if condition.field.startswith(AUTHOR_PREFIX):
        value = resolve_field(author, condition.field[len(AUTHOR_PREFIX):])
    else:
        value = resolve_field(content, condition.field)

    op = condition.operator
    expected = condition.value

    if op is ConditionOperator.EQUALS:
        return _strict_equals(value, expected)
    if op is ConditionOperator.CONTAINS:
        return isinstance(value, str) and str(expected).lower() in value.lower()
    if op is ConditionOperator.GREATER_THAN:
        return _is_number(value) and _is_number(expected) and value > expected
    if op is ConditionOperator.LESS_THAN:
        return _is_number(value) and _is_number(expected) and value < expected
    if op is ConditionOperator.EXISTS:
        return not _is_absent(value)
    if op is ConditionOperator.NOT_EXISTS:
        return _is_absent(value)

    # Unknown operator
    return False


def conditions_match(
    conditions: Iterable[ModerationCondition], content: Any, author: Any
) -> bool:
    """Logical AND over *conditions*; an empty list matches."""
    return all(evaluate_condition(c, content, author) for c in conditions)
