"""
Timeline Event Model
====================

Append-only, per-incident event log shown to stakeholders.

``sequence`` is assigned per incident at insert time so that events
written within the same clock tick still read back in append order.
"""

import uuid
from datetime import datetime, UTC
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from incident_bot.core.enums import TimelineEventType
from incident_bot.db.base import Base
from incident_bot.models.incident import enum_column

if TYPE_CHECKING:
    from incident_bot.models.incident import Incident


class TimelineEvent(Base):
    __tablename__ = "incident_timeline"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    incident_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("incidents.id", ondelete="CASCADE"),
        nullable=False,
    )

    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    event_type: Mapped[TimelineEventType] = mapped_column(
        enum_column(TimelineEventType, length=30),
        nullable=False,
    )

    message: Mapped[str] = mapped_column(Text, nullable=False)

    posted_by: Mapped[str] = mapped_column(String(50), nullable=False)

    incident: Mapped["Incident"] = relationship(
        "Incident",
        back_populates="timeline_events",
    )

    __table_args__ = (
        Index("ix_incident_timeline_incident_order", "incident_id", "timestamp", "sequence"),
    )

    def __repr__(self) -> str:
        return f"<TimelineEvent(incident_id={self.incident_id}, type={self.event_type}, seq={self.sequence})>"
