"""
Statuspage Mapping Model
========================

Maps an affected service to its Statuspage component. Services with no
mapping are not synced.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from incident_bot.db.base import Base


class StatuspageMapping(Base):
    __tablename__ = "statuspage_mappings"

    service_name: Mapped[str] = mapped_column(String(100), primary_key=True)

    component_id: Mapped[str] = mapped_column(String(100), nullable=False)

    def __repr__(self) -> str:
        return f"<StatuspageMapping(service={self.service_name}, component={self.component_id})>"
