"""Runtime configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Moderation settings.

    ``rules_file`` points at a YAML rule file; when empty the stock
    WorldPianos rules are used.
    """

    rules_file: str = ""
    log_level: str = "INFO"
    stats_range: str = "week"

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            rules_file=os.environ.get("WORLDPIANOS_RULES_FILE", ""),
            log_level=os.environ.get("WORLDPIANOS_LOG_LEVEL", "INFO").upper(),
            stats_range=os.environ.get("WORLDPIANOS_STATS_RANGE", "week"),
        )
