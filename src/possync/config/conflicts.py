"""Retention, paging and rule-file settings for the conflict engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from .env import int_env_var

DEFAULT_RETENTION_DAYS = 90
DEFAULT_QUERY_PAGE_SIZE = 50
DEFAULT_RECENT_CONFLICTS = 10


@dataclass(frozen=True, slots=True)
class ConflictConfig:
    retention_days: int = DEFAULT_RETENTION_DAYS
    query_page_size: int = DEFAULT_QUERY_PAGE_SIZE
    recent_conflicts_limit: int = DEFAULT_RECENT_CONFLICTS
    rules_file: Path | None = None

    @property
    def retention(self) -> timedelta:
        return timedelta(days=self.retention_days)


def get_conflict_config() -> ConflictConfig:
    rules_file = os.getenv("POSSYNC_RULES_FILE")
    return ConflictConfig(
        retention_days=int_env_var("POSSYNC_RETENTION_DAYS", DEFAULT_RETENTION_DAYS),
        query_page_size=int_env_var(
            "POSSYNC_QUERY_PAGE_SIZE", DEFAULT_QUERY_PAGE_SIZE, minimum=1
        ),
        recent_conflicts_limit=int_env_var("POSSYNC_RECENT_CONFLICTS", DEFAULT_RECENT_CONFLICTS),
        rules_file=Path(rules_file).expanduser() if rules_file and rules_file.strip() else None,
    )
