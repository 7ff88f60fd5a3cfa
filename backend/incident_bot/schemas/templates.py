"""Request and response schemas for template administration."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from incident_bot.core.enums import Severity


class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9][a-z0-9-]*$")
    title: str = Field(..., min_length=1, max_length=100)
    severity: Severity
    service: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = None


class TemplateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    title: str
    severity: Severity
    service: Optional[str] = None
    description: Optional[str] = None
    is_active: bool
