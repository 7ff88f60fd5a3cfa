"""Modal view builders."""

from typing import Any, Dict, List, Sequence

from incident_bot.core.enums import Severity
from incident_bot.models.template import IncidentTemplate
from incident_bot.slack.payloads import DECLARE_CALLBACK_ID


def _plain(text: str) -> Dict[str, str]:
    return {"type": "plain_text", "text": text}


def _option(text: str, value: str) -> Dict[str, Any]:
    return {"text": _plain(text), "value": value}


def declare_incident_modal(
    services: Sequence[str],
    templates: Sequence[IncidentTemplate],
) -> Dict[str, Any]:
    """
    Build the declaration modal.

    With templates available, title, severity and service become optional
    so a template can supply them.
    """
    blocks: List[Dict[str, Any]] = []
    has_templates = bool(templates)

    if has_templates:
        blocks.append({
            "type": "input",
            "block_id": "template_block",
            "label": _plain("Use Template (Optional)"),
            "element": {
                "type": "static_select",
                "action_id": "template_select",
                "placeholder": _plain("Select a template or fill manually"),
                "options": [_option(t.title, t.name) for t in templates],
            },
            "optional": True,
        })

    blocks.append({
        "type": "input",
        "block_id": "title_block",
        "label": _plain("Incident Title"),
        "element": {
            "type": "plain_text_input",
            "action_id": "title_input",
            "placeholder": _plain("e.g., Okta SSO outage"),
            "max_length": 100,
        },
        "optional": has_templates,
    })

    severity_element: Dict[str, Any] = {
        "type": "static_select",
        "action_id": "severity_select",
        "options": [_option(severity.label, severity.value) for severity in Severity],
    }
    # a preselected severity would always win over the template's
    if not has_templates:
        severity_element["initial_option"] = _option(Severity.P2.label, Severity.P2.value)
    blocks.append({
        "type": "input",
        "block_id": "severity_block",
        "label": _plain("Severity"),
        "element": severity_element,
        "optional": has_templates,
    })

    if services:
        service_element = {
            "type": "static_select",
            "action_id": "service_select",
            "options": [_option(service, service) for service in services],
        }
    else:
        service_element = {
            "type": "plain_text_input",
            "action_id": "service_select",
            "placeholder": _plain("e.g., payments-api"),
            "max_length": 100,
        }
    blocks.append({
        "type": "input",
        "block_id": "service_block",
        "label": _plain("Affected Service"),
        "element": service_element,
        "optional": has_templates,
    })

    blocks.append({
        "type": "input",
        "block_id": "commander_block",
        "label": _plain("Incident Commander"),
        "element": {
            "type": "users_select",
            "action_id": "commander_select",
        },
        "optional": True,
    })

    return {
        "type": "modal",
        "callback_id": DECLARE_CALLBACK_ID,
        "title": _plain("Declare Incident"),
        "submit": _plain("Declare"),
        "close": _plain("Cancel"),
        "blocks": blocks,
    }
