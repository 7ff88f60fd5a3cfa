"""
Notification Record Model
=========================

One row per delivery attempt. Written for debugging; never read back by
the lifecycle logic.
"""

import uuid
from datetime import datetime, UTC
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from incident_bot.core.enums import NotificationStatus, NotificationType
from incident_bot.db.base import Base
from incident_bot.models.incident import enum_column

if TYPE_CHECKING:
    from incident_bot.models.incident import Incident


class NotificationRecord(Base):
    __tablename__ = "incident_notifications"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    incident_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("incidents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    notification_type: Mapped[NotificationType] = mapped_column(
        enum_column(NotificationType),
        nullable=False,
    )

    recipient: Mapped[str] = mapped_column(String(100), nullable=False)

    status: Mapped[NotificationStatus] = mapped_column(
        enum_column(NotificationStatus),
        nullable=False,
    )

    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    incident: Mapped["Incident"] = relationship(
        "Incident",
        back_populates="notifications",
    )

    def __repr__(self) -> str:
        return f"<NotificationRecord(recipient={self.recipient}, status={self.status})>"
