"""/incident transition <investigating|identified|monitoring|resolved>"""

from incident_bot.app_state import AppState
from incident_bot.commands.common import (
    find_active_incident,
    reply,
    reply_ack,
    reply_error,
    run_side_effect,
    sync_statuspage,
)
from incident_bot.core.enums import IncidentStatus
from incident_bot.core.exceptions import PermissionDeniedError, ValidationError
from incident_bot.services.incident_service import IncidentService
from incident_bot.slack.blocks import (
    permission_denied_blocks,
    resolution_blocks,
    status_transition_blocks,
)
from incident_bot.slack.payloads import SlashCommandPayload

USAGE = "Usage: /incident transition [investigating|identified|monitoring|resolved]"


def handle_transition(state: AppState, payload: SlashCommandPayload) -> None:
    raw_status = payload.arguments
    if not raw_status:
        reply_error(state, payload, USAGE)
        return

    try:
        target = IncidentStatus.parse(raw_status)
    except ValidationError:
        reply_error(state, payload, f"Invalid status: {raw_status}. {USAGE}")
        return

    with state.session() as db:
        incidents = IncidentService(db)
        incident = find_active_incident(state, incidents, payload)
        if incident is None:
            return

        # InvalidStateTransitionError is reported through the worker pool's error channel
        try:
            updated, old_status = incidents.transition_status(incident.id, target, payload.user_id)
        except PermissionDeniedError:
            reply(state, payload, permission_denied_blocks("change the incident status"))
            return

        notifications = state.notifications(db)
        if updated.status.is_terminal:
            run_side_effect(
                "notify_resolved",
                updated,
                notifications.notify_resolved,
                updated,
                resolution_blocks(updated, payload.user_id),
            )
        else:
            run_side_effect(
                "notify_status_update",
                updated,
                notifications.notify_status_update,
                updated,
                status_transition_blocks(
                    updated.severity, old_status.value, updated.status.value, payload.user_id
                ),
            )
        sync_statuspage(state, db, updated)

    reply_ack(state, payload, f"✅ Status changed to {target.value}")
