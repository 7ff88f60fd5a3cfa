"""
/incident declare

The slash command opens the declaration modal; the modal submission
creates the incident and its channel.

Declaration order:
1. insert the incident (plus timeline and audit)
2. create the channel and attach it to the incident
3. invite the commander and service owners (best effort)
4. post the declaration details to the channel (must succeed)
5. pin them (best effort)
6. notify by severity (best effort)
7. queue a status page sync (best effort)

If step 2 fails the incident is purged; if the channel was created but
could not be attached, the channel is archived as well.
"""

from typing import List

from sqlalchemy.orm import Session

from incident_bot.app_state import AppState
from incident_bot.commands.common import run_side_effect, sync_statuspage
from incident_bot.core.exceptions import IncidentBotError
from incident_bot.core.logging import LogContext, get_logger
from incident_bot.models.incident import Incident
from incident_bot.services.channel_service import ChannelService
from incident_bot.services.incident_service import IncidentService
from incident_bot.services.template_service import TemplateService
from incident_bot.slack.blocks import incident_declared_blocks
from incident_bot.slack.modals import declare_incident_modal
from incident_bot.slack.payloads import DeclareSubmission, SlashCommandPayload
from incident_bot.utils.time import ensure_utc

logger = get_logger(__name__)

COMPENSATION_ACTOR = "incident-bot"


def handle_declare(state: AppState, payload: SlashCommandPayload) -> None:
    with state.session() as db:
        templates = TemplateService(db).list_active()
    modal = declare_incident_modal(state.settings.services_list, templates)
    state.slack.open_modal(payload.trigger_id, modal)


def channel_invitees(state: AppState, incident: Incident) -> List[str]:
    owners = state.settings.SERVICE_OWNERS.get(incident.service, [])
    return sorted({incident.commander_id, *owners})


def handle_declare_submission(state: AppState, submission: DeclareSubmission, submitter_id: str) -> None:
    with state.session() as db:
        incidents = IncidentService(db)
        incident = incidents.create_incident(
            submission.title,
            submission.severity,
            submission.service,
            submission.commander_id,
        )

        with LogContext(incident_id=str(incident.id)):
            incident = _provision_channel(state, incidents, incident)
            _onboard_channel(state, db, incident)

            logger.info(
                "incident_declared_successfully",
                channel_name=incident.slack_channel_name,
                submitted_by=submitter_id,
            )


def _provision_channel(state: AppState, incidents: IncidentService, incident: Incident) -> Incident:
    channels = ChannelService(state.slack, state.settings.CHANNEL_PREFIX)
    try:
        return channels.provision(
            incident.service,
            ensure_utc(incident.declared_at).date(),
            incident.id,
            lambda channel_id, channel_name: incidents.assign_channel(
                incident.id, channel_id, channel_name
            ),
        )
    except IncidentBotError:
        logger.error("channel_provisioning_failed_purging_incident")
        try:
            incidents.purge(incident.id, COMPENSATION_ACTOR)
        except IncidentBotError as purge_error:
            logger.error("orphaned_incident_purge_failed", error=purge_error.message)
        raise


def _onboard_channel(state: AppState, db: Session, incident: Incident) -> None:
    channel_id = incident.slack_channel_id

    run_side_effect(
        "invite_users",
        incident,
        state.slack.invite_users,
        channel_id,
        channel_invitees(state, incident),
    )

    details = incident_declared_blocks(incident)
    ts = state.slack.post_message(channel_id, details)
    run_side_effect("pin_message", incident, state.slack.pin_message, channel_id, ts)

    run_side_effect(
        "notify_incident_declared",
        incident,
        state.notifications(db).notify_incident_declared,
        incident,
        details,
    )
    sync_statuspage(state, db, incident)
