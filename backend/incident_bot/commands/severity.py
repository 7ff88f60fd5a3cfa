"""/incident severity <P1|P2|P3|P4> [reason]"""

from incident_bot.app_state import AppState
from incident_bot.commands.common import (
    find_active_incident,
    reply,
    reply_ack,
    reply_error,
    run_side_effect,
    sync_statuspage,
)
from incident_bot.core.enums import Severity
from incident_bot.core.exceptions import ValidationError
from incident_bot.services.incident_service import IncidentService
from incident_bot.slack.blocks import permission_denied_blocks, severity_change_blocks
from incident_bot.slack.payloads import SlashCommandPayload

USAGE = "Usage: /incident severity [P1|P2|P3|P4] [optional reason]"


def handle_severity(state: AppState, payload: SlashCommandPayload) -> None:
    parts = payload.arguments.split(None, 1)
    if not parts:
        reply_error(state, payload, USAGE)
        return

    try:
        new_severity = Severity.parse(parts[0])
    except ValidationError:
        reply_error(state, payload, "Invalid severity. Use P1, P2, P3, or P4")
        return
    reason = parts[1].strip() if len(parts) > 1 else None

    with state.session() as db:
        incidents = IncidentService(db)
        incident = find_active_incident(state, incidents, payload)
        if incident is None:
            return

        if incident.commander_id != payload.user_id:
            reply(state, payload, permission_denied_blocks("change incident severity"))
            return

        if incident.severity is new_severity:
            reply_ack(state, payload, f"Incident is already {new_severity.label}")
            return

        updated, old_severity = incidents.change_severity(
            incident.id, new_severity, payload.user_id, reason
        )

        run_side_effect(
            "notify_severity_change",
            updated,
            state.notifications(db).notify_severity_change,
            updated,
            old_severity,
            severity_change_blocks(old_severity, new_severity, payload.user_id, reason),
        )
        sync_statuspage(state, db, updated)

    reply_ack(state, payload, f"✅ Severity changed to {new_severity.label}")
