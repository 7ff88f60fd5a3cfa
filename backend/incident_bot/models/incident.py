"""
Incident Model
==============

The root record of the incident lifecycle. Timeline events, audit records
and notification attempts are keyed to an incident and only ever removed
through an administrative purge.

Invariant:
    resolved_at and duration_minutes are set if and only if status is
    ``resolved``.

Database Indexes:
- Primary key: id (UUID)
- Index: slack_channel_id (channel lookups by command handlers)
- Index: status
"""

import uuid
from datetime import datetime, UTC
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, Enum, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from incident_bot.core.enums import IncidentStatus, Severity
from incident_bot.db.base import Base

if TYPE_CHECKING:
    from incident_bot.models.timeline import TimelineEvent
    from incident_bot.models.notification import NotificationRecord


def _utcnow() -> datetime:
    return datetime.now(UTC)


def enum_column(enum_cls, length: int = 20) -> Enum:
    """Store a str enum as its value in a VARCHAR column."""
    return Enum(
        enum_cls,
        native_enum=False,
        length=length,
        validate_strings=True,
        values_callable=lambda members: [member.value for member in members],
    )


class Incident(Base):
    """
    Incident entity.

    Attributes:
        id: UUID primary key
        title: Short description given at declaration
        severity: P1-P4
        status: Lifecycle state
        service: Affected service name
        commander_id: Slack user id of the only actor allowed to mutate it
        declared_at: Declaration timestamp
        resolved_at: Resolution timestamp (terminal only)
        duration_minutes: Declared-to-resolved minutes (terminal only)
        slack_channel_id: Dedicated incident channel, once provisioned
        slack_channel_name: Name of that channel
        updated_at: Last modification timestamp
    """

    __tablename__ = "incidents"

    # ==========================
    # Primary Key
    # ==========================
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # ==========================
    # Incident Details
    # ==========================
    title: Mapped[str] = mapped_column(String(200), nullable=False)

    severity: Mapped[Severity] = mapped_column(
        enum_column(Severity, length=2),
        nullable=False,
    )

    status: Mapped[IncidentStatus] = mapped_column(
        enum_column(IncidentStatus),
        nullable=False,
        default=IncidentStatus.DECLARED,
        index=True,
    )

    service: Mapped[str] = mapped_column(String(100), nullable=False)

    commander_id: Mapped[str] = mapped_column(String(50), nullable=False)

    # ==========================
    # Slack Channel
    # ==========================
    slack_channel_id: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        index=True,
    )

    slack_channel_name: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)

    # ==========================
    # Timestamps
    # ==========================
    declared_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    resolved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    duration_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    # ==========================
    # Relationships
    # ==========================
    timeline_events: Mapped[List["TimelineEvent"]] = relationship(
        "TimelineEvent",
        back_populates="incident",
        order_by="TimelineEvent.sequence",
        passive_deletes=True,
    )

    notifications: Mapped[List["NotificationRecord"]] = relationship(
        "NotificationRecord",
        back_populates="incident",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Incident(id={self.id}, severity={self.severity}, status={self.status})>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "title": self.title,
            "severity": self.severity.value,
            "status": self.status.value,
            "service": self.service,
            "commander_id": self.commander_id,
            "slack_channel_id": self.slack_channel_id,
            "slack_channel_name": self.slack_channel_name,
            "declared_at": self.declared_at.isoformat() if self.declared_at else None,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "duration_minutes": self.duration_minutes,
        }
