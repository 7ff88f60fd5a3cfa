"""Helpers shared by the slash command handlers."""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from incident_bot.app_state import AppState
from incident_bot.core.exceptions import IncidentBotError, NotFoundError
from incident_bot.core.logging import get_logger
from incident_bot.jobs.statuspage_sync import enqueue_statuspage_sync
from incident_bot.models.incident import Incident
from incident_bot.services.incident_service import IncidentService
from incident_bot.slack.blocks import ack_blocks, error_blocks
from incident_bot.slack.payloads import SlashCommandPayload

logger = get_logger(__name__)

NO_ACTIVE_INCIDENT = "No active incident in this channel"
NO_INCIDENT = "No incident found in this channel"


def reply(state: AppState, payload: SlashCommandPayload, blocks: List[Dict[str, Any]]) -> None:
    state.slack.post_to_response_url(payload.response_url, blocks)


def reply_ack(state: AppState, payload: SlashCommandPayload, message: str) -> None:
    reply(state, payload, ack_blocks(message))


def reply_error(state: AppState, payload: SlashCommandPayload, message: str) -> None:
    reply(state, payload, error_blocks(message))


def find_active_incident(
    state: AppState,
    incidents: IncidentService,
    payload: SlashCommandPayload,
) -> Optional[Incident]:
    """The channel's open incident, or None after telling the user there is none."""
    try:
        return incidents.get_by_channel(payload.channel_id)
    except NotFoundError:
        reply_error(state, payload, NO_ACTIVE_INCIDENT)
        return None


def find_latest_incident(
    state: AppState,
    incidents: IncidentService,
    payload: SlashCommandPayload,
) -> Optional[Incident]:
    """The channel's most recent incident in any status, or None after replying."""
    try:
        return incidents.get_latest_by_channel(payload.channel_id)
    except NotFoundError:
        reply_error(state, payload, NO_INCIDENT)
        return None


def run_side_effect(description: str, incident: Incident, func, *args, **kwargs) -> None:
    """Run a secondary side effect; failures are logged, never raised."""
    try:
        func(*args, **kwargs)
    except IncidentBotError as e:
        logger.error(
            "side_effect_failed",
            side_effect=description,
            incident_id=str(incident.id),
            error=e.message,
        )


def sync_statuspage(state: AppState, db: Session, incident: Incident) -> None:
    enqueue_statuspage_sync(db, state.dispatcher, incident)
