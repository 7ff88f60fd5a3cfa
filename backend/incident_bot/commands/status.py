"""/incident status <message>"""

from incident_bot.app_state import AppState
from incident_bot.commands.common import (
    find_active_incident,
    reply,
    reply_ack,
    reply_error,
    run_side_effect,
    sync_statuspage,
)
from incident_bot.core.exceptions import PermissionDeniedError
from incident_bot.services.incident_service import IncidentService
from incident_bot.slack.blocks import permission_denied_blocks, status_update_blocks
from incident_bot.slack.payloads import SlashCommandPayload


def handle_status(state: AppState, payload: SlashCommandPayload) -> None:
    message = payload.arguments
    if not message:
        reply_error(state, payload, "Usage: /incident status [message]")
        return

    with state.session() as db:
        incidents = IncidentService(db)
        incident = find_active_incident(state, incidents, payload)
        if incident is None:
            return

        try:
            updated = incidents.post_status_update(incident.id, message, payload.user_id)
        except PermissionDeniedError:
            reply(state, payload, permission_denied_blocks("post status updates"))
            return

        run_side_effect(
            "notify_status_update",
            updated,
            state.notifications(db).notify_status_update,
            updated,
            status_update_blocks(updated.severity, message, payload.user_id),
        )
        sync_statuspage(state, db, updated)

    reply_ack(state, payload, "✅ Status update posted")
