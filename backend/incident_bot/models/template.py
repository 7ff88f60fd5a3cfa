"""
Incident Template Model
=======================

Admin-managed presets used to prefill the declaration modal.
Templates are never deleted; ``is_active`` is cleared instead.
"""

import uuid
from datetime import datetime, UTC
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from incident_bot.core.enums import Severity
from incident_bot.db.base import Base
from incident_bot.models.incident import enum_column


class IncidentTemplate(Base):
    __tablename__ = "incident_templates"

    def __init__(self, **kwargs):
        if "is_active" not in kwargs:
            kwargs["is_active"] = True
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)

    severity: Mapped[Severity] = mapped_column(
        enum_column(Severity, length=2),
        nullable=False,
    )

    service: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    def __repr__(self) -> str:
        return f"<IncidentTemplate(name={self.name}, active={self.is_active})>"

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "title": self.title,
            "severity": self.severity.value,
            "service": self.service,
            "description": self.description,
            "is_active": self.is_active,
        }
