"""Audit records for conflict status transitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from .clock import utc_now

if TYPE_CHECKING:
    from datetime import datetime

    from .enums import ConflictStatus


@dataclass(eq=False, kw_only=True)
class AuditEntry:
    """One immutable row in a conflict's history."""

    conflict_id: UUID
    action: str
    new_status: ConflictStatus
    old_status: ConflictStatus | None = None
    user_id: int | None = None
    details: str | None = None
    timestamp: datetime = field(default_factory=utc_now)
    id: UUID = field(default_factory=uuid4)
