"""
Slack Routes
============

Webhook endpoints for slash commands and interactivity.

Both endpoints verify the request signature on the raw body, parse the
payload into typed models, hand the work to the command worker pool and
acknowledge immediately (Slack expects an answer within 3 seconds).
"""

from typing import Dict, List, Optional
from urllib.parse import parse_qsl

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from incident_bot.app_state import AppState
from incident_bot.commands.declare import handle_declare_submission
from incident_bot.commands.router import process_slash_command
from incident_bot.core.exceptions import ValidationError
from incident_bot.core.logging import get_logger
from incident_bot.db.session import get_db
from incident_bot.routes.dependencies import get_app_state, get_request_id
from incident_bot.services.template_service import TemplateService
from incident_bot.slack.payloads import (
    DECLARE_CALLBACK_ID,
    parse_declare_submission,
    parse_interaction,
    parse_slash_command,
)
from incident_bot.slack.verification import verify_slack_signature

logger = get_logger(__name__)

router = APIRouter(prefix="/slack", tags=["Slack"])

MODAL_BLOCK_IDS = {
    "template": "template_block",
    "title": "title_block",
    "severity": "severity_block",
    "service": "service_block",
}


async def verified_form(
    request: Request,
    state: AppState = Depends(get_app_state),
) -> Dict[str, str]:
    """Verify the Slack signature and decode the urlencoded body."""
    body = await request.body()
    verify_slack_signature(
        state.settings.SLACK_SIGNING_SECRET,
        request.headers.get("X-Slack-Request-Timestamp"),
        body,
        request.headers.get("X-Slack-Signature"),
        tolerance_seconds=state.settings.SIGNATURE_TOLERANCE_SECONDS,
    )
    try:
        decoded = body.decode("utf-8")
    except UnicodeDecodeError:
        raise ValidationError("body", "Request body is not valid UTF-8")
    return dict(parse_qsl(decoded, keep_blank_values=True))


def modal_errors(error: ValidationError) -> Dict[str, str]:
    """Map field errors onto the declare modal's block ids."""
    errors: Dict[str, List[str]] = {}
    for item in error.errors:
        block_id = MODAL_BLOCK_IDS.get(item["field"], "title_block")
        errors.setdefault(block_id, []).append(item["reason"])
    return {block_id: "; ".join(reasons) for block_id, reasons in errors.items()}


@router.post("/commands", summary="Slash command webhook")
def slash_command(
    form: Dict[str, str] = Depends(verified_form),
    state: AppState = Depends(get_app_state),
    request_id: Optional[str] = Depends(get_request_id),
):
    payload = parse_slash_command(form)

    state.work_pool.submit(
        lambda: process_slash_command(state, payload),
        payload.response_url,
        f"/incident {payload.subcommand}".strip(),
        request_id=request_id,
    )
    return Response(status_code=status.HTTP_200_OK)


@router.post("/interactions", summary="Interactivity webhook")
def interaction(
    form: Dict[str, str] = Depends(verified_form),
    state: AppState = Depends(get_app_state),
    db: Session = Depends(get_db),
    request_id: Optional[str] = Depends(get_request_id),
):
    payload = parse_interaction(form.get("payload"))

    if (
        payload.type == "view_submission"
        and payload.view is not None
        and payload.view.callback_id == DECLARE_CALLBACK_ID
    ):
        try:
            submission = parse_declare_submission(
                payload.view,
                payload.user.id,
                TemplateService(db).get_active,
            )
        except ValidationError as e:
            logger.info("declare_submission_invalid", errors=e.errors)
            return JSONResponse(content={"response_action": "errors", "errors": modal_errors(e)})

        state.work_pool.submit(
            lambda: handle_declare_submission(state, submission, payload.user.id),
            None,
            "declare_submission",
            request_id=request_id,
        )
        return Response(status_code=status.HTTP_200_OK)

    logger.debug(
        "interaction_ignored",
        interaction_type=payload.type,
        callback_id=payload.view.callback_id if payload.view else None,
    )
    return Response(status_code=status.HTTP_200_OK)
