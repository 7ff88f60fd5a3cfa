"""
Incident Template Service
=========================

Admin management of declaration templates. Every mutation is audited
without an incident attached.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from incident_bot.core.enums import Severity
from incident_bot.core.exceptions import NotFoundError, ValidationError
from incident_bot.core.logging import get_logger
from incident_bot.db.guard import storage_guard
from incident_bot.models.template import IncidentTemplate
from incident_bot.services.audit_service import AuditService

logger = get_logger(__name__)


class TemplateService:
    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    def list_active(self) -> List[IncidentTemplate]:
        with storage_guard(self.db, "list_templates"):
            return list(
                self.db.scalars(
                    select(IncidentTemplate)
                    .where(IncidentTemplate.is_active.is_(True))
                    .order_by(IncidentTemplate.name.asc())
                )
            )

    def get_active(self, name: str) -> Optional[IncidentTemplate]:
        with storage_guard(self.db, "get_template"):
            return self.db.scalars(
                select(IncidentTemplate).where(
                    IncidentTemplate.name == name,
                    IncidentTemplate.is_active.is_(True),
                )
            ).first()

    def create(
        self,
        name: str,
        title: str,
        severity: Severity,
        actor_id: str,
        service: Optional[str] = None,
        description: Optional[str] = None,
    ) -> IncidentTemplate:
        """
        Create a template.

        Raises:
            ValidationError: If a template with that name already exists
        """
        with storage_guard(self.db, "create_template"):
            existing = self.db.scalars(
                select(IncidentTemplate).where(IncidentTemplate.name == name)
            ).first()
        if existing is not None:
            raise ValidationError("name", f"Template '{name}' already exists")

        template = IncidentTemplate(
            name=name,
            title=title,
            severity=severity,
            service=service,
            description=description,
        )
        with storage_guard(self.db, "create_template"):
            self.db.add(template)
            self.db.commit()
            self.db.refresh(template)

        self.audit.log_action(
            None,
            "create_template",
            actor_id,
            new_state=template.to_dict(),
        )
        logger.info("template_created", template=name)
        return template

    def deactivate(self, name: str, actor_id: str) -> IncidentTemplate:
        template = self.get_active(name)
        if template is None:
            raise NotFoundError("Template", name)

        with storage_guard(self.db, "deactivate_template"):
            template.is_active = False
            self.db.commit()
            self.db.refresh(template)

        self.audit.log_action(
            None,
            "deactivate_template",
            actor_id,
            old_state={"is_active": True},
            new_state={"is_active": False},
            details={"name": name},
        )
        logger.info("template_deactivated", template=name)
        return template
