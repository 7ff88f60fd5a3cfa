"""/incident timeline"""

from incident_bot.app_state import AppState
from incident_bot.commands.common import find_latest_incident
from incident_bot.core.logging import get_logger
from incident_bot.services.incident_service import IncidentService
from incident_bot.services.timeline_service import TimelineService
from incident_bot.slack.blocks import timeline_blocks
from incident_bot.slack.payloads import SlashCommandPayload

logger = get_logger(__name__)


def handle_timeline(state: AppState, payload: SlashCommandPayload) -> None:
    with state.session() as db:
        incident = find_latest_incident(state, IncidentService(db), payload)
        if incident is None:
            return
        events = TimelineService(db).get_timeline(incident.id)

    state.slack.post_message(payload.channel_id, timeline_blocks(events))
    logger.info("timeline_posted", incident_id=str(incident.id), events=len(events))
