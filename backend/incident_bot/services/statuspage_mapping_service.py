"""Lookup of Statuspage components by affected service."""

from typing import Optional

from sqlalchemy.orm import Session

from incident_bot.db.guard import storage_guard
from incident_bot.models.statuspage_mapping import StatuspageMapping


class StatuspageMappingService:
    def __init__(self, db: Session):
        self.db = db

    def get_component_id(self, service: str) -> Optional[str]:
        with storage_guard(self.db, "get_statuspage_component"):
            mapping = self.db.get(StatuspageMapping, service)
        return mapping.component_id if mapping else None
