"""
Typed Slack payloads.

Inbound form bodies and interaction JSON are parsed here, once, into
pydantic models. Parse failures become a single ValidationError listing
every missing or malformed field.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from incident_bot.core.enums import Severity
from incident_bot.core.exceptions import ValidationError
from incident_bot.core.logging import get_logger
from incident_bot.models.template import IncidentTemplate

logger = get_logger(__name__)

DECLARE_CALLBACK_ID = "declare_incident_modal"


def _errors_from_pydantic(exc: PydanticValidationError, prefix: str = "") -> List[Dict[str, str]]:
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        errors.append({"field": f"{prefix}{location}", "reason": error["msg"]})
    return errors


# ==========================
# Slash commands
# ==========================

class SlashCommandPayload(BaseModel):
    command: str
    text: str = ""
    user_id: str
    channel_id: str
    response_url: str
    trigger_id: str

    @property
    def subcommand(self) -> str:
        parts = self.text.split()
        return parts[0].lower() if parts else ""

    @property
    def arguments(self) -> str:
        """Text after the subcommand, whitespace preserved inside."""
        parts = self.text.strip().split(None, 1)
        return parts[1].strip() if len(parts) > 1 else ""


def parse_slash_command(form: Mapping[str, Any]) -> SlashCommandPayload:
    try:
        return SlashCommandPayload.model_validate(dict(form))
    except PydanticValidationError as e:
        raise ValidationError.from_errors(_errors_from_pydantic(e))


# ==========================
# Interactions
# ==========================

class SlackUser(BaseModel):
    id: str


class SelectedOption(BaseModel):
    value: str


class StateElement(BaseModel):
    type: Optional[str] = None
    value: Optional[str] = None
    selected_option: Optional[SelectedOption] = None
    selected_user: Optional[str] = None


class ViewState(BaseModel):
    values: Dict[str, Dict[str, StateElement]] = Field(default_factory=dict)

    def element(self, block_id: str, action_id: str) -> Optional[StateElement]:
        return self.values.get(block_id, {}).get(action_id)

    def text_value(self, block_id: str, action_id: str) -> Optional[str]:
        element = self.element(block_id, action_id)
        if element is None or element.value is None:
            return None
        return element.value.strip() or None

    def selected_value(self, block_id: str, action_id: str) -> Optional[str]:
        element = self.element(block_id, action_id)
        if element is None:
            return None
        if element.selected_option is not None:
            return element.selected_option.value
        # service falls back to a plain text input when no services are configured
        if element.value is not None:
            return element.value.strip() or None
        return None

    def selected_user(self, block_id: str, action_id: str) -> Optional[str]:
        element = self.element(block_id, action_id)
        return element.selected_user if element else None


class ViewPayload(BaseModel):
    callback_id: str
    state: ViewState = Field(default_factory=ViewState)


class InteractionPayload(BaseModel):
    type: str
    user: SlackUser
    view: Optional[ViewPayload] = None
    trigger_id: Optional[str] = None


def parse_interaction(raw_payload: Optional[str]) -> InteractionPayload:
    """Parse the ``payload`` form field of an interaction request."""
    if not raw_payload:
        raise ValidationError("payload", "Missing payload")
    try:
        data = json.loads(raw_payload)
    except json.JSONDecodeError:
        raise ValidationError("payload", "Payload is not valid JSON")
    try:
        return InteractionPayload.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError.from_errors(_errors_from_pydantic(e, prefix="payload."))


# ==========================
# Declare modal submission
# ==========================

@dataclass(frozen=True)
class DeclareSubmission:
    title: str
    severity: Severity
    service: str
    commander_id: str
    commander_defaulted: bool
    template_name: Optional[str] = None


def parse_declare_submission(
    view: ViewPayload,
    submitter_id: str,
    template_lookup: Callable[[str], Optional[IncidentTemplate]],
) -> DeclareSubmission:
    """
    Convert the declare modal's state into a DeclareSubmission.

    A selected template fills any title, severity or service left empty.
    The commander defaults to the submitter.

    Raises:
        ValidationError: Listing every missing or invalid field
    """
    state = view.state
    errors: List[Dict[str, str]] = []

    title = state.text_value("title_block", "title_input")
    severity_raw = state.selected_value("severity_block", "severity_select")
    service = state.selected_value("service_block", "service_select")
    template_name = state.selected_value("template_block", "template_select")

    if template_name:
        template = template_lookup(template_name)
        if template is None:
            errors.append({"field": "template", "reason": f"Unknown template: {template_name}"})
        else:
            title = title or template.title
            severity_raw = severity_raw or template.severity.value
            service = service or template.service

    severity: Optional[Severity] = None
    if not title:
        errors.append({"field": "title", "reason": "Required"})
    elif len(title) > 100:
        errors.append({"field": "title", "reason": "Must be at most 100 characters"})
    if not severity_raw:
        errors.append({"field": "severity", "reason": "Required"})
    else:
        try:
            severity = Severity.parse(severity_raw)
        except ValidationError as e:
            errors.append({"field": "severity", "reason": e.reason})
    if not service:
        errors.append({"field": "service", "reason": "Required"})

    if errors:
        raise ValidationError.from_errors(errors)

    selected_commander = state.selected_user("commander_block", "commander_select")
    commander_id = selected_commander or submitter_id
    if not selected_commander:
        logger.info("commander_defaulted_to_submitter", user_id=submitter_id)

    return DeclareSubmission(
        title=title,
        severity=severity,
        service=service,
        commander_id=commander_id,
        commander_defaulted=not selected_commander,
        template_name=template_name,
    )
