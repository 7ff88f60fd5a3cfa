"""/incident postmortem"""

from incident_bot.app_state import AppState
from incident_bot.commands.common import find_latest_incident, reply_ack, reply_error
from incident_bot.core.logging import get_logger
from incident_bot.services.incident_service import IncidentService
from incident_bot.services.postmortem_service import PostmortemService
from incident_bot.slack.blocks import postmortem_blocks
from incident_bot.slack.payloads import SlashCommandPayload

logger = get_logger(__name__)


def handle_postmortem(state: AppState, payload: SlashCommandPayload) -> None:
    with state.session() as db:
        incident = find_latest_incident(state, IncidentService(db), payload)
        if incident is None:
            return

        if not incident.status.is_terminal:
            reply_error(state, payload, "Incident must be resolved before generating a postmortem")
            return

        draft = PostmortemService(db).generate(incident)

    state.slack.post_message(incident.slack_channel_id or payload.channel_id, postmortem_blocks(draft))
    logger.info("postmortem_posted", incident_id=str(incident.id))
    reply_ack(state, payload, "✅ Postmortem draft posted")
