"""Turn a pair of diverging payloads into a persisted conflict."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from possync.domain.model import Conflict, ConflictStatus, utc_now

from .differ import conflicting_fields, has_meaningful_difference

if TYPE_CHECKING:
    from datetime import datetime

    from possync.domain.model import Clock
    from possync.domain.ports import ConflictUnitOfWorkFactory

    from .audit import AuditTrail

log = logging.getLogger(__name__)

DETECTED_ACTION = "Detected"


@dataclass(slots=True)
class ConflictDetector:
    unit_of_work_factory: ConflictUnitOfWorkFactory
    audit: AuditTrail
    clock: Clock = utc_now

    def detect_conflict(  # noqa: PLR0913
        self,
        entity_type: str,
        entity_id: int,
        local_data: str | None,
        remote_data: str | None,
        local_timestamp: datetime,
        remote_timestamp: datetime,
        *,
        sync_batch_id: int | None = None,
    ) -> Conflict | None:
        """Persist a ``Detected`` conflict if the payloads really disagree.

        Returns ``None`` when the documents are semantically equal. An absent
        payload is stored as an empty string. The conflict and its ``Detected``
        audit entry are committed together.
        """

        if entity_type is None or not entity_type.strip():
            raise ValueError("entity_type is required")

        if not has_meaningful_difference(local_data, remote_data):
            log.debug("No meaningful difference detected for %s:%s", entity_type, entity_id)
            return None

        fields = conflicting_fields(local_data, remote_data)
        conflict = Conflict(
            entity_type=entity_type,
            entity_id=entity_id,
            local_data=local_data or "",
            remote_data=remote_data or "",
            local_timestamp=local_timestamp,
            remote_timestamp=remote_timestamp,
            conflicting_fields=fields,
            sync_batch_id=sync_batch_id,
            detected_at=self.clock(),
        )

        with self.unit_of_work_factory() as uow:
            uow.repositories.conflicts.add(conflict)
            self.audit.stage(
                uow,
                conflict.id,
                DETECTED_ACTION,
                None,
                ConflictStatus.DETECTED,
                details=f"Conflicting fields: {', '.join(fields)}",
            )
            uow.commit()

        log.info(
            "Conflict detected for %s:%s, conflict id %s",
            entity_type,
            entity_id,
            conflict.id,
        )
        return conflict
