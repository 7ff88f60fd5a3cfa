"""
Audit Record Model
==================

Compliance log of actions and state deltas. Template management and
purges are recorded with no incident attached.
"""

import uuid
from datetime import datetime, UTC
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from incident_bot.db.base import Base


class AuditRecord(Base):
    """
    Attributes:
        incident_id: Owning incident, or None for incident-independent actions
        action: Action name, e.g. ``declare_incident``
        actor_id: Slack user id (or ``admin`` for admin API calls)
        old_state: Snapshot before the action
        new_state: Snapshot after the action
        details: Free-form structured payload
    """

    __tablename__ = "audit_log"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    incident_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("incidents.id"),
        nullable=True,
        index=True,
    )

    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    actor_id: Mapped[str] = mapped_column(String(50), nullable=False)

    old_state: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    new_state: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    details: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    def __repr__(self) -> str:
        return f"<AuditRecord(action={self.action}, actor={self.actor_id})>"
