"""
Incident Lifecycle Service
==========================

The incident state machine. Every mutating operation:

1. loads the incident and checks the actor is its commander
2. checks the operation is legal for the current status
3. commits the core mutation
4. appends a timeline event
5. appends an audit record

Steps 3-5 commit separately. If a timeline or audit write fails after
the core mutation committed, the incident stays consistent but is missing
that log entry; the StorageError still propagates to the caller.

Notification fan-out and status-page sync are orchestrated by the command
handlers, not here.
"""

import uuid
from typing import Optional, Tuple

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from incident_bot.core.enums import IncidentStatus, Severity, TimelineEventType
from incident_bot.core.exceptions import (
    InvalidStateTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from incident_bot.core.logging import get_logger
from incident_bot.db.guard import storage_guard
from incident_bot.models.audit import AuditRecord
from incident_bot.models.incident import Incident
from incident_bot.models.notification import NotificationRecord
from incident_bot.models.timeline import TimelineEvent
from incident_bot.services.audit_service import AuditService
from incident_bot.services.timeline_service import TimelineService
from incident_bot.utils.time import duration_minutes, ensure_utc, format_duration, utcnow

logger = get_logger(__name__)

MODIFY_ACTION = "modify this incident"


class IncidentService:
    """
    Service class for incident lifecycle operations.

    Args:
        db: SQLAlchemy session owned by the current unit of work
    """

    def __init__(self, db: Session):
        self.db = db
        self.timeline = TimelineService(db)
        self.audit = AuditService(db)

    # ==========================
    # Lookups
    # ==========================

    def get_by_id(self, incident_id: uuid.UUID) -> Incident:
        with storage_guard(self.db, "get_incident"):
            incident = self.db.get(Incident, incident_id)
        if incident is None:
            raise NotFoundError("Incident", str(incident_id))
        return incident

    def get_by_channel(self, channel_id: str) -> Incident:
        """
        Return the active (non-resolved) incident bound to a channel.

        Raises:
            NotFoundError: If the channel has no active incident
        """
        with storage_guard(self.db, "get_incident_by_channel"):
            incident = self.db.scalars(
                select(Incident)
                .where(
                    Incident.slack_channel_id == channel_id,
                    Incident.status != IncidentStatus.RESOLVED,
                )
                .order_by(Incident.declared_at.desc())
                .limit(1)
            ).first()
        if incident is None:
            raise NotFoundError("Incident", channel_id)
        return incident

    def get_latest_by_channel(self, channel_id: str) -> Incident:
        """Return the most recently declared incident for a channel, in any status."""
        with storage_guard(self.db, "get_latest_incident_by_channel"):
            incident = self.db.scalars(
                select(Incident)
                .where(Incident.slack_channel_id == channel_id)
                .order_by(Incident.declared_at.desc())
                .limit(1)
            ).first()
        if incident is None:
            raise NotFoundError("Incident", channel_id)
        return incident

    # ==========================
    # Authorization
    # ==========================

    @staticmethod
    def validate_commander(incident: Incident, actor_id: str) -> None:
        """
        Raises:
            PermissionDeniedError: If the actor is not the incident commander
        """
        if incident.commander_id != actor_id:
            logger.warning(
                "permission_denied",
                incident_id=str(incident.id),
                actor_id=actor_id,
                commander_id=incident.commander_id,
            )
            raise PermissionDeniedError(actor_id, MODIFY_ACTION)

    # ==========================
    # Mutations
    # ==========================

    def create_incident(
        self,
        title: str,
        severity: Severity,
        service: str,
        commander_id: str,
    ) -> Incident:
        """
        Declare a new incident. Anyone may declare.

        Returns:
            The persisted incident in ``declared`` status
        """
        incident = Incident(
            title=title,
            severity=severity,
            status=IncidentStatus.DECLARED,
            service=service,
            commander_id=commander_id,
        )
        with storage_guard(self.db, "create_incident"):
            self.db.add(incident)
            self.db.commit()
            self.db.refresh(incident)

        self.timeline.log_event(
            incident.id,
            TimelineEventType.DECLARED,
            f"Incident declared: {title}",
            commander_id,
        )
        self.audit.log_action(
            incident.id,
            "declare_incident",
            commander_id,
            details={"title": title, "severity": severity.value, "service": service},
        )

        logger.info(
            "incident_declared",
            incident_id=str(incident.id),
            severity=severity.value,
            service=service,
        )
        return incident

    def assign_channel(
        self,
        incident_id: uuid.UUID,
        channel_id: str,
        channel_name: Optional[str] = None,
    ) -> Incident:
        incident = self.get_by_id(incident_id)
        with storage_guard(self.db, "assign_channel"):
            incident.slack_channel_id = channel_id
            incident.slack_channel_name = channel_name
            self.db.commit()
            self.db.refresh(incident)
        logger.info("incident_channel_assigned", incident_id=str(incident_id), channel_id=channel_id)
        return incident

    def post_status_update(
        self,
        incident_id: uuid.UUID,
        message: str,
        actor_id: str,
    ) -> Incident:
        """
        Append a status message to the timeline. Status itself is unchanged.

        Raises:
            PermissionDeniedError: If the actor is not the commander
            ValidationError: If the incident is already resolved
        """
        incident = self.get_by_id(incident_id)
        self.validate_commander(incident, actor_id)

        if incident.status.is_terminal:
            raise ValidationError("status", "Cannot post status updates to resolved incidents")

        self.timeline.log_event(incident.id, TimelineEventType.STATUS_UPDATE, message, actor_id)
        self.audit.log_action(
            incident.id,
            "post_status_update",
            actor_id,
            details={"message": message},
        )

        logger.info("status_update_posted", incident_id=str(incident.id), actor_id=actor_id)
        return self.get_by_id(incident_id)

    def change_severity(
        self,
        incident_id: uuid.UUID,
        new_severity: Severity,
        actor_id: str,
        reason: Optional[str] = None,
    ) -> Tuple[Incident, Severity]:
        """
        Change the severity. Allowed in every status, including resolved.

        Returns:
            (updated incident, previous severity)
        """
        incident = self.get_by_id(incident_id)
        self.validate_commander(incident, actor_id)

        old_severity = incident.severity
        with storage_guard(self.db, "update_severity"):
            incident.severity = new_severity
            self.db.commit()
            self.db.refresh(incident)

        message = f"Severity changed from {old_severity.label} to {new_severity.label}"
        if reason:
            message = f"{message} - {reason}"
        self.timeline.log_event(incident.id, TimelineEventType.SEVERITY_CHANGE, message, actor_id)
        self.audit.log_action(
            incident.id,
            "change_severity",
            actor_id,
            old_state={"severity": old_severity.value},
            new_state={"severity": new_severity.value},
            details={"reason": reason},
        )

        logger.info(
            "severity_changed",
            incident_id=str(incident.id),
            old_severity=old_severity.value,
            new_severity=new_severity.value,
        )
        return incident, old_severity

    def transition_status(
        self,
        incident_id: uuid.UUID,
        target: IncidentStatus,
        actor_id: str,
    ) -> Tuple[Incident, IncidentStatus]:
        """
        Move an incident to a later lifecycle state.

        Moves to ``resolved`` go through :meth:`resolve` so the duration is
        recorded.

        Returns:
            (updated incident, previous status)

        Raises:
            PermissionDeniedError: If the actor is not the commander
            InvalidStateTransitionError: If the transition table forbids the move
        """
        incident = self.get_by_id(incident_id)
        self.validate_commander(incident, actor_id)

        old_status = incident.status
        if not old_status.can_transition_to(target):
            raise InvalidStateTransitionError(old_status, target)

        if target is IncidentStatus.RESOLVED:
            return self.resolve(incident_id, actor_id), old_status

        with storage_guard(self.db, "update_status"):
            incident.status = target
            self.db.commit()
            self.db.refresh(incident)

        self.timeline.log_event(
            incident.id,
            TimelineEventType.STATUS_UPDATE,
            f"Status changed from {old_status.value} to {target.value}",
            actor_id,
        )
        self.audit.log_action(
            incident.id,
            "change_status",
            actor_id,
            old_state={"status": old_status.value},
            new_state={"status": target.value},
        )

        logger.info(
            "status_transitioned",
            incident_id=str(incident.id),
            old_status=old_status.value,
            new_status=target.value,
        )
        return incident, old_status

    def resolve(self, incident_id: uuid.UUID, actor_id: str) -> Incident:
        """
        Resolve an incident. Resolving a resolved incident is a no-op.

        The status flip is a single conditional UPDATE so two concurrent
        resolves cannot both record a duration.
        """
        incident = self.get_by_id(incident_id)
        self.validate_commander(incident, actor_id)

        if incident.status.is_terminal:
            logger.info("incident_already_resolved", incident_id=str(incident.id))
            return incident

        old_status = incident.status
        resolved_at = utcnow()
        minutes = duration_minutes(ensure_utc(incident.declared_at), resolved_at)

        with storage_guard(self.db, "resolve_incident"):
            result = self.db.execute(
                update(Incident)
                .where(
                    Incident.id == incident_id,
                    Incident.status != IncidentStatus.RESOLVED,
                )
                .values(
                    status=IncidentStatus.RESOLVED,
                    resolved_at=resolved_at,
                    duration_minutes=minutes,
                )
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
            self.db.refresh(incident)

        if result.rowcount == 0:
            logger.info("incident_resolved_concurrently", incident_id=str(incident.id))
            return incident

        self.timeline.log_event(
            incident.id,
            TimelineEventType.RESOLVED,
            f"Incident resolved (duration: {format_duration(minutes)})",
            actor_id,
        )
        self.audit.log_action(
            incident.id,
            "resolve_incident",
            actor_id,
            old_state={"status": old_status.value},
            new_state={"status": IncidentStatus.RESOLVED.value},
            details={"duration_minutes": minutes},
        )

        logger.info("incident_resolved", incident_id=str(incident.id), duration_minutes=minutes)
        return incident

    # ==========================
    # Administration
    # ==========================

    def purge(self, incident_id: uuid.UUID, actor_id: str) -> None:
        """
        Delete an incident and everything keyed to it.

        Children are removed before the incident. The purge itself is
        recorded as an incident-independent audit entry.
        """
        incident = self.get_by_id(incident_id)
        title = incident.title

        with storage_guard(self.db, "purge_incident"):
            self.db.execute(
                delete(NotificationRecord).where(NotificationRecord.incident_id == incident_id)
            )
            self.db.execute(
                delete(TimelineEvent).where(TimelineEvent.incident_id == incident_id)
            )
            self.db.execute(
                delete(AuditRecord).where(AuditRecord.incident_id == incident_id)
            )
            self.db.delete(incident)
            self.db.commit()

        self.audit.log_action(
            None,
            "purge_incident",
            actor_id,
            details={"incident_id": str(incident_id), "title": title},
        )
        logger.warning("incident_purged", incident_id=str(incident_id), actor_id=actor_id)
