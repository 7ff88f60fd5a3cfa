"""
Admin Routes
============

Template management and incident purge. Every endpoint requires the
X-Admin-Token header; the whole router answers 404 when no admin token
is configured.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from incident_bot.db.session import get_db
from incident_bot.routes.dependencies import require_admin
from incident_bot.schemas.templates import TemplateCreate, TemplateResponse
from incident_bot.services.incident_service import IncidentService
from incident_bot.services.template_service import TemplateService

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/templates", response_model=List[TemplateResponse])
def list_templates(
    db: Session = Depends(get_db),
    actor: str = Depends(require_admin),
):
    return TemplateService(db).list_active()


@router.post(
    "/templates",
    response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_template(
    body: TemplateCreate,
    db: Session = Depends(get_db),
    actor: str = Depends(require_admin),
):
    return TemplateService(db).create(
        name=body.name,
        title=body.title,
        severity=body.severity,
        actor_id=actor,
        service=body.service,
        description=body.description,
    )


@router.delete("/templates/{name}", response_model=TemplateResponse)
def deactivate_template(
    name: str,
    db: Session = Depends(get_db),
    actor: str = Depends(require_admin),
):
    return TemplateService(db).deactivate(name, actor)


@router.delete("/incidents/{incident_id}", status_code=status.HTTP_204_NO_CONTENT)
def purge_incident(
    incident_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor: str = Depends(require_admin),
):
    IncidentService(db).purge(incident_id, actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
