"""Exception types raised by the moderation package."""

from __future__ import annotations


class ModerationError(Exception):
    """Base class for moderation errors."""


class SideEffectError(ModerationError):
    """A publish or notify side effect could not be completed."""

    def __init__(self, operation: str, content_id: str, message: str) -> None:
        self.operation = operation
        self.content_id = content_id
        super().__init__(f"{operation} failed for {content_id}: {message}")


class RuleFileError(ModerationError):
    """A YAML rule file could not be read or does not describe a rule list."""
