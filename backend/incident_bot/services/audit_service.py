"""
Audit Service
=============

Append-only compliance log. Records are never shown to chat users.
"""

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from incident_bot.core.logging import get_logger
from incident_bot.db.guard import storage_guard
from incident_bot.models.audit import AuditRecord

logger = get_logger(__name__)


class AuditService:
    def __init__(self, db: Session):
        self.db = db

    def log_action(
        self,
        incident_id: Optional[uuid.UUID],
        action: str,
        actor_id: str,
        old_state: Optional[Dict[str, Any]] = None,
        new_state: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditRecord:
        """
        Record an action.

        Args:
            incident_id: Affected incident, or None for incident-independent actions
            action: Action name
            actor_id: Who performed it
            old_state: Snapshot before the action
            new_state: Snapshot after the action
            details: Extra structured context

        Returns:
            The persisted record
        """
        record = AuditRecord(
            incident_id=incident_id,
            action=action,
            actor_id=actor_id,
            old_state=old_state,
            new_state=new_state,
            details=details,
        )
        with storage_guard(self.db, "log_audit_action"):
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)

        logger.info(
            "audit_action_logged",
            action=action,
            actor_id=actor_id,
            incident_id=str(incident_id) if incident_id else None,
        )
        return record

    def get_for_incident(self, incident_id: uuid.UUID) -> List[AuditRecord]:
        with storage_guard(self.db, "get_audit_log"):
            return list(
                self.db.scalars(
                    select(AuditRecord)
                    .where(AuditRecord.incident_id == incident_id)
                    .order_by(AuditRecord.timestamp.asc())
                )
            )
