"""In-memory storage for moderation rules, plus YAML rule files.

Provides CRUD operations over an ordered rule list.  Store order matters:
rules sharing a priority are evaluated in the order they were added.
"""

from __future__ import annotations

import copy
import logging
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import fields
from pathlib import Path
from typing import Any, Optional

import yaml

from worldpianos.errors import RuleFileError
from worldpianos.moderation.models import ModerationRule

log = logging.getLogger("worldpianos.moderation.rule_store")

_EDITABLE_FIELDS = {f.name for f in fields(ModerationRule)} - {"id"}


def new_rule_id() -> str:
    return f"rule-{uuid.uuid4().hex[:12]}"


def default_rules() -> list[ModerationRule]:
    """The stock rule set shipped with WorldPianos."""
    return [
        ModerationRule(
            id="auto-approve-trusted",
            name="Auto-approve trusted users",
            description="Automatically approve content from users with good reputation",
            content_type="all",
            conditions=[
                {"field": "author.reputation", "operator": "greater_than", "value": 100},
                {"field": "author.verified", "operator": "equals", "value": True},
            ],
            action="auto_approve",
            priority=1,
        ),
        ModerationRule(
            id="auto-approve-simple-pianos",
            name="Auto-approve simple piano submissions",
            description="Auto-approve pianos with basic info from users with some history",
            content_type="piano",
            conditions=[
                {"field": "name", "operator": "exists"},
                {"field": "location_name", "operator": "exists"},
                {"field": "category", "operator": "exists"},
                {"field": "author.contributions", "operator": "greater_than", "value": 5},
            ],
            action="auto_approve",
            priority=2,
        ),
        ModerationRule(
            id="flag-suspicious-content",
            name="Flag suspicious content",
            description="Flag content with potential spam indicators",
            content_type="all",
            conditions=[
                {"field": "description", "operator": "contains", "value": "http"},
            ],
            action="flag",
            priority=3,
        ),
        ModerationRule(
            id="reject-incomplete",
            name="Reject incomplete submissions",
            description="Reject submissions missing critical information",
            content_type="piano",
            conditions=[
                {"field": "name", "operator": "not_exists"},
            ],
            action="reject",
            priority=4,
        ),
    ]


class RuleStore:
    """Ordered, in-memory collection of moderation rules.

    Nothing is persisted across restarts; use :func:`load_rules` and
    :func:`dump_rules` to move rule sets in and out of YAML files.
    Operations on an unknown id do not raise: ``update_rule`` and
    ``toggle_rule`` return ``None`` and ``delete_rule`` returns ``False``.
    Invalid field values (an unknown action, a non-integer priority, a
    non-boolean ``enabled``) raise ``ValueError`` and leave the store as it was.
    """

    def __init__(self, rules: Optional[Iterable[ModerationRule]] = None) -> None:
        self._rules: list[ModerationRule] = [copy.deepcopy(r) for r in rules or []]

    @classmethod
    def with_default_rules(cls) -> RuleStore:
        return cls(default_rules())

    def __len__(self) -> int:
        return len(self._rules)

    def _find(self, rule_id: str) -> Optional[int]:
        for i, rule in enumerate(self._rules):
            if rule.id == rule_id:
                return i
        return None

    # ------------------------------------------------------------------
    # Rule CRUD
    # ------------------------------------------------------------------

    def list_rules(self) -> list[ModerationRule]:
        """Return copies of every rule, in store order."""
        return copy.deepcopy(self._rules)

    def get_rule(self, rule_id: str) -> Optional[ModerationRule]:
        """Look up a rule by ID. Returns None if not found."""
        index = self._find(rule_id)
        if index is None:
            return None
        return copy.deepcopy(self._rules[index])

    def add_rule(self, rule: ModerationRule | Mapping[str, Any]) -> str:
        """Append a rule under a freshly generated ID and return that ID.

        Any ``id`` already present on *rule* is ignored.
        """
        if isinstance(rule, ModerationRule):
            data = rule.to_dict()
        else:
            data = dict(rule)
        data["id"] = new_rule_id()
        new_rule = ModerationRule.from_dict(data)
        self._rules.append(new_rule)
        log.info("added rule %s (%s)", new_rule.id, new_rule.name)
        return new_rule.id

    def update_rule(self, rule_id: str, **changes: Any) -> Optional[ModerationRule]:
        """Shallow-merge *changes* into a rule. Returns the updated rule or None."""
        index = self._find(rule_id)
        if index is None:
            log.debug("update ignored, no rule %s", rule_id)
            return None

        data = self._rules[index].to_dict()
        for key, value in changes.items():
            if key in _EDITABLE_FIELDS:
                data[key] = value
        if "conditions" in changes:
            data["conditions"] = [
                c.to_dict() if hasattr(c, "to_dict") else c for c in changes["conditions"]
            ]
        self._rules[index] = ModerationRule.from_dict(data)
        log.info("updated rule %s", rule_id)
        return copy.deepcopy(self._rules[index])

    def toggle_rule(self, rule_id: str, enabled: bool) -> Optional[ModerationRule]:
        """Enable or disable a rule. Returns the updated rule or None."""
        return self.update_rule(rule_id, enabled=enabled)

    def delete_rule(self, rule_id: str) -> bool:
        """Delete a rule by ID. Returns True if deleted."""
        remaining = [r for r in self._rules if r.id != rule_id]
        if len(remaining) < len(self._rules):
            self._rules = remaining
            log.info("deleted rule %s", rule_id)
            return True
        return False


# ---------------------------------------------------------------------------
# YAML rule files
# ---------------------------------------------------------------------------


def load_rules(path: str | Path) -> list[ModerationRule]:
    """Load a rule list from a YAML file with a top-level ``rules`` key."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise RuleFileError(f"Cannot read rule file {path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("rules", []), list):
        raise RuleFileError(f"Rule file {path} must contain a 'rules' list")

    rules = []
    for rule_data in data.get("rules", []):
        if not isinstance(rule_data, dict):
            raise RuleFileError(f"Invalid rule in {path}: expected a mapping")
        if not rule_data.get("id"):
            rule_data = {**rule_data, "id": new_rule_id()}
        try:
            rules.append(ModerationRule.from_dict(rule_data))
        except (TypeError, ValueError) as e:
            raise RuleFileError(f"Invalid rule in {path}: {e}") from e

    log.info("loaded %d rules from %s", len(rules), path)
    return rules


def dump_rules(rules: Iterable[ModerationRule], path: str | Path) -> None:
    """Write *rules* to a YAML file readable by :func:`load_rules`."""
    data = {"rules": [r.to_dict() for r in rules]}
    with open(path, "w") as f:
        yaml.safe_dump(data, f, sort_keys=False)
