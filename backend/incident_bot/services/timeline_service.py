"""
Timeline Service
================

Append-only event log per incident. Events are never updated; reads are
ordered by (timestamp, sequence) ascending.
"""

import uuid
from typing import List

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from incident_bot.core.enums import TimelineEventType
from incident_bot.core.logging import get_logger
from incident_bot.db.guard import storage_guard
from incident_bot.models.timeline import TimelineEvent
from incident_bot.utils.time import ensure_utc

logger = get_logger(__name__)

EVENT_ICONS = {
    TimelineEventType.DECLARED: "🚨",
    TimelineEventType.STATUS_UPDATE: "📝",
    TimelineEventType.SEVERITY_CHANGE: "⚠️",
    TimelineEventType.RESOLVED: "✅",
}

EMPTY_TIMELINE_TEXT = "_No timeline events yet._"


class TimelineService:
    """Reads and appends timeline events."""

    def __init__(self, db: Session):
        self.db = db

    def log_event(
        self,
        incident_id: uuid.UUID,
        event_type: TimelineEventType,
        message: str,
        posted_by: str,
    ) -> TimelineEvent:
        """
        Append an event to an incident's timeline.

        Args:
            incident_id: Owning incident
            event_type: Event kind
            message: Free text shown to stakeholders
            posted_by: Slack user id of the actor

        Returns:
            The persisted event
        """
        with storage_guard(self.db, "log_timeline_event"):
            next_sequence = self.db.scalar(
                select(func.coalesce(func.max(TimelineEvent.sequence), 0))
                .where(TimelineEvent.incident_id == incident_id)
            ) + 1

            event = TimelineEvent(
                incident_id=incident_id,
                sequence=next_sequence,
                event_type=event_type,
                message=message,
                posted_by=posted_by,
            )
            self.db.add(event)
            self.db.commit()
            self.db.refresh(event)

        logger.debug(
            "timeline_event_logged",
            incident_id=str(incident_id),
            event_type=event_type.value,
            sequence=next_sequence,
        )
        return event

    def get_timeline(self, incident_id: uuid.UUID) -> List[TimelineEvent]:
        with storage_guard(self.db, "get_timeline"):
            return list(
                self.db.scalars(
                    select(TimelineEvent)
                    .where(TimelineEvent.incident_id == incident_id)
                    .order_by(TimelineEvent.timestamp.asc(), TimelineEvent.sequence.asc())
                )
            )

    @staticmethod
    def format_as_markdown(events: List[TimelineEvent]) -> str:
        """Render events as markdown for postmortem drafts."""
        if not events:
            return EMPTY_TIMELINE_TEXT

        entries = []
        for event in events:
            label = event.event_type.value.replace("_", " ")
            entries.append(
                f"**{ensure_utc(event.timestamp).strftime('%H:%M')}** - "
                f"{EVENT_ICONS[event.event_type]} {label}\n"
                f"→ {event.message}\n"
            )
        return "\n".join(entries)
