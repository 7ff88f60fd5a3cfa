"""/incident resolved"""

from incident_bot.app_state import AppState
from incident_bot.commands.common import (
    find_latest_incident,
    reply,
    reply_ack,
    run_side_effect,
    sync_statuspage,
)
from incident_bot.core.exceptions import PermissionDeniedError
from incident_bot.services.incident_service import IncidentService
from incident_bot.slack.blocks import permission_denied_blocks, resolution_blocks
from incident_bot.slack.payloads import SlashCommandPayload


def handle_resolved(state: AppState, payload: SlashCommandPayload) -> None:
    with state.session() as db:
        incidents = IncidentService(db)
        incident = find_latest_incident(state, incidents, payload)
        if incident is None:
            return

        try:
            incidents.validate_commander(incident, payload.user_id)
        except PermissionDeniedError:
            reply(state, payload, permission_denied_blocks("resolve the incident"))
            return

        if incident.status.is_terminal:
            reply_ack(state, payload, "✅ Incident is already resolved")
            return

        resolved = incidents.resolve(incident.id, payload.user_id)

        run_side_effect(
            "notify_resolved",
            resolved,
            state.notifications(db).notify_resolved,
            resolved,
            resolution_blocks(resolved, payload.user_id),
        )
        sync_statuspage(state, db, resolved)

    reply_ack(state, payload, "✅ Incident resolved")
