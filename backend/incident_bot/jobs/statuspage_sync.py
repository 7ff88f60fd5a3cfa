"""
Statuspage sync job.

Pushes an incident's (status, severity) to its Statuspage component.
Best effort: failures are logged and never reach the chat user.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from incident_bot.clients.statuspage_client import StatuspageClient
from incident_bot.core.enums import IncidentStatus, Severity
from incident_bot.core.exceptions import IncidentBotError
from incident_bot.core.logging import LogContext, get_logger, log_execution_time
from incident_bot.jobs.dispatcher import JobDispatcher
from incident_bot.models.incident import Incident
from incident_bot.services.statuspage_mapping_service import StatuspageMappingService

logger = get_logger(__name__)


@dataclass(frozen=True)
class StatuspageSyncJob:
    incident_id: uuid.UUID
    component_id: str
    status: IncidentStatus
    severity: Severity


class StatuspageSyncHandler:
    """Dispatcher handler for StatuspageSyncJob. A None client disables syncing."""

    def __init__(self, client: Optional[StatuspageClient]):
        self.client = client

    def __call__(self, job: StatuspageSyncJob) -> None:
        with LogContext(incident_id=str(job.incident_id)):
            if self.client is None:
                logger.debug("statuspage_sync_skipped", reason="integration disabled")
                return
            try:
                self._push(job)
            except IncidentBotError as e:
                logger.error(
                    "statuspage_sync_failed",
                    component_id=job.component_id,
                    error=e.message,
                )

    @log_execution_time(logger, "statuspage_sync")
    def _push(self, job: StatuspageSyncJob) -> None:
        component_status = StatuspageClient.map_status(job.status, job.severity)
        self.client.update_component_status(job.component_id, component_status)


def enqueue_statuspage_sync(db: Session, dispatcher: JobDispatcher, incident: Incident) -> bool:
    """
    Queue a sync for the incident's service if it has a component mapping.

    Lookup and enqueue failures are logged and swallowed.

    Returns:
        True if a job was queued
    """
    try:
        component_id = StatuspageMappingService(db).get_component_id(incident.service)
        if component_id is None:
            return False
        dispatcher.enqueue(
            StatuspageSyncJob(
                incident_id=incident.id,
                component_id=component_id,
                status=incident.status,
                severity=incident.severity,
            )
        )
    except IncidentBotError as e:
        logger.error(
            "statuspage_sync_enqueue_failed",
            incident_id=str(incident.id),
            error=e.message,
        )
        return False

    logger.info("statuspage_sync_enqueued", incident_id=str(incident.id), component_id=component_id)
    return True
