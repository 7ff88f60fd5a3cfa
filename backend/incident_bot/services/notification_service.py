"""
Notification Routing Service
============================

Decides who hears about an incident update and delivers it.

Routing by current severity:
- P1: incident channel, every P1 broadcast channel, a DM to every P1
  recipient (throttled per recipient and incident)
- P2: incident channel and every P2 broadcast channel
- P3/P4: incident channel only

Every attempt is written as a NotificationRecord. Channel post failures
propagate; DM failures are logged and swallowed.
"""

import threading
import time
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from incident_bot.clients.slack_client import SlackClient
from incident_bot.core.config import Settings
from incident_bot.core.enums import NotificationStatus, NotificationType, Severity
from incident_bot.core.exceptions import ExternalServiceError
from incident_bot.core.logging import get_logger
from incident_bot.db.guard import storage_guard
from incident_bot.models.incident import Incident
from incident_bot.models.notification import NotificationRecord

logger = get_logger(__name__)

Blocks = List[Dict[str, Any]]


class DMThrottle:
    """
    Per (recipient, incident) DM cooldown.

    Entries older than twice the window are evicted on every check. The
    eviction sweep and the check-and-set run under one lock.

    Args:
        window_seconds: Minimum gap between two DMs to the same pair
        clock: Monotonic seconds source, injectable for tests
    """

    def __init__(self, window_seconds: float = 300, clock: Callable[[], float] = time.monotonic):
        self.window_seconds = window_seconds
        self._clock = clock
        self._last_sent: Dict[Tuple[str, str], float] = {}
        self._lock = threading.Lock()

    def try_acquire(self, recipient: str, incident_id: uuid.UUID) -> bool:
        """Return True and record the send if the pair is outside its cooldown."""
        key = (recipient, str(incident_id))
        with self._lock:
            now = self._clock()
            self._evict(now)

            last_sent = self._last_sent.get(key)
            if last_sent is not None and now - last_sent < self.window_seconds:
                return False

            self._last_sent[key] = now
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_sent)

    def _evict(self, now: float) -> None:
        cutoff = now - 2 * self.window_seconds
        stale = [key for key, sent_at in self._last_sent.items() if sent_at <= cutoff]
        for key in stale:
            del self._last_sent[key]


def should_broadcast_severity_change(old: Severity, new: Severity) -> bool:
    """Only an escalation from P3/P4 into P1/P2 widens the audience."""
    return new.is_broadcast and not old.is_broadcast


class NotificationService:
    """
    Delivers pre-rendered blocks to the audience implied by an incident.

    Args:
        db: Session used to write notification records
        slack: Slack client
        settings: Routing targets
        throttle: Shared DM throttle owned by the application
    """

    def __init__(
        self,
        db: Session,
        slack: SlackClient,
        settings: Settings,
        throttle: DMThrottle,
    ):
        self.db = db
        self.slack = slack
        self.settings = settings
        self.throttle = throttle

    # ==========================
    # Entry points
    # ==========================

    def notify_incident_declared(self, incident: Incident, blocks: Blocks) -> None:
        self.route_by_severity(incident, blocks)

    def notify_status_update(self, incident: Incident, blocks: Blocks) -> None:
        self._post_incident_channel(incident, blocks)

    def notify_severity_change(
        self,
        incident: Incident,
        old_severity: Severity,
        blocks: Blocks,
    ) -> None:
        if should_broadcast_severity_change(old_severity, incident.severity):
            logger.info(
                "severity_escalation_broadcast",
                incident_id=str(incident.id),
                old_severity=old_severity.value,
                new_severity=incident.severity.value,
            )
            self.route_by_severity(incident, blocks)
        else:
            self._post_incident_channel(incident, blocks)

    def notify_resolved(self, incident: Incident, blocks: Blocks) -> None:
        self.route_by_severity(incident, blocks)

    def route_by_severity(self, incident: Incident, blocks: Blocks) -> None:
        self._post_incident_channel(incident, blocks)

        if incident.severity is Severity.P1:
            for channel in self.settings.p1_channels_list:
                self._post_to_channel(incident, channel, blocks)
            for user_id in self.settings.p1_dm_recipients_list:
                self._send_dm(incident, user_id, blocks)
        elif incident.severity is Severity.P2:
            for channel in self.settings.p2_channels_list:
                self._post_to_channel(incident, channel, blocks)

    # ==========================
    # Delivery
    # ==========================

    def _post_incident_channel(self, incident: Incident, blocks: Blocks) -> None:
        if not incident.slack_channel_id:
            logger.warning("incident_channel_missing", incident_id=str(incident.id))
            return
        self._post_to_channel(incident, incident.slack_channel_id, blocks)

    def _post_to_channel(self, incident: Incident, channel: str, blocks: Blocks) -> None:
        try:
            self.slack.post_message(channel, blocks)
        except ExternalServiceError as e:
            self._log_notification(
                incident.id,
                NotificationType.SLACK_CHANNEL,
                channel,
                NotificationStatus.FAILED,
                error_message=e.message,
            )
            logger.error(
                "channel_notification_failed",
                incident_id=str(incident.id),
                channel=channel,
                error=e.message,
            )
            raise

        self._log_notification(
            incident.id,
            NotificationType.SLACK_CHANNEL,
            channel,
            NotificationStatus.SENT,
        )

    def _send_dm(self, incident: Incident, user_id: str, blocks: Blocks) -> None:
        if not self.throttle.try_acquire(user_id, incident.id):
            logger.info("dm_throttled", incident_id=str(incident.id), recipient=user_id)
            self._log_notification(
                incident.id,
                NotificationType.SLACK_DM,
                user_id,
                NotificationStatus.THROTTLED,
            )
            return

        try:
            self.slack.send_dm(user_id, blocks)
        except ExternalServiceError as e:
            logger.warning(
                "dm_notification_failed",
                incident_id=str(incident.id),
                recipient=user_id,
                error=e.message,
            )
            self._log_notification(
                incident.id,
                NotificationType.SLACK_DM,
                user_id,
                NotificationStatus.FAILED,
                error_message=e.message,
            )
            return

        self._log_notification(
            incident.id,
            NotificationType.SLACK_DM,
            user_id,
            NotificationStatus.SENT,
        )

    def _log_notification(
        self,
        incident_id: uuid.UUID,
        notification_type: NotificationType,
        recipient: str,
        status: NotificationStatus,
        error_message: Optional[str] = None,
    ) -> NotificationRecord:
        record = NotificationRecord(
            incident_id=incident_id,
            notification_type=notification_type,
            recipient=recipient,
            status=status,
            error_message=error_message,
        )
        with storage_guard(self.db, "log_notification"):
            self.db.add(record)
            self.db.commit()
        return record
