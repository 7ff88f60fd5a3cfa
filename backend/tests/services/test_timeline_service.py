"""
Timeline Service Tests
======================

Tests for event ordering, sequence numbering and markdown rendering.
"""

from datetime import datetime, timezone

import pytest

from incident_bot.core.enums import Severity, TimelineEventType
from incident_bot.models.timeline import TimelineEvent
from incident_bot.services.timeline_service import EMPTY_TIMELINE_TEXT, TimelineService


pytestmark = pytest.mark.integration

COMMANDER = "U_COMMANDER"


class TestLogEvent:
    """Tests for TimelineService.log_event."""

    def test_sequence_increments_per_incident(self, db_session, make_incident):
        """Test that each incident numbers its own events."""
        # Arrange
        first = make_incident(channel_id="C_ONE")
        second = make_incident(channel_id="C_TWO")
        timeline = TimelineService(db_session)

        # Act
        a = timeline.log_event(first.id, TimelineEventType.STATUS_UPDATE, "a", COMMANDER)
        b = timeline.log_event(first.id, TimelineEventType.STATUS_UPDATE, "b", COMMANDER)
        c = timeline.log_event(second.id, TimelineEventType.STATUS_UPDATE, "c", COMMANDER)

        # Assert
        assert (a.sequence, b.sequence) == (2, 3)
        assert c.sequence == 2


class TestGetTimeline:
    """Tests for TimelineService.get_timeline."""

    def test_events_returned_in_order(self, db_session, make_incident):
        """Test ascending order by timestamp then sequence."""
        # Arrange
        incident = make_incident()
        timeline = TimelineService(db_session)
        for message in ["one", "two", "three"]:
            timeline.log_event(incident.id, TimelineEventType.STATUS_UPDATE, message, COMMANDER)

        # Act
        events = timeline.get_timeline(incident.id)

        # Assert
        assert [event.message for event in events] == [
            "Incident declared: Payments failing",
            "one",
            "two",
            "three",
        ]
        assert [event.sequence for event in events] == [1, 2, 3, 4]

    def test_equal_timestamps_fall_back_to_sequence(self, db_session, make_incident):
        """Test that sequence breaks ties between identical timestamps."""
        # Arrange
        incident = make_incident()
        stamp = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
        db_session.add_all([
            TimelineEvent(
                incident_id=incident.id,
                sequence=3,
                timestamp=stamp,
                event_type=TimelineEventType.STATUS_UPDATE,
                message="later",
                posted_by=COMMANDER,
            ),
            TimelineEvent(
                incident_id=incident.id,
                sequence=2,
                timestamp=stamp,
                event_type=TimelineEventType.STATUS_UPDATE,
                message="earlier",
                posted_by=COMMANDER,
            ),
        ])
        db_session.commit()

        # Act
        events = TimelineService(db_session).get_timeline(incident.id)

        # Assert
        assert [event.message for event in events][-2:] == ["earlier", "later"]


class TestFormatAsMarkdown:
    """Tests for TimelineService.format_as_markdown."""

    def test_empty_timeline(self):
        """Test the placeholder for an empty timeline."""
        # Assert
        assert TimelineService.format_as_markdown([]) == EMPTY_TIMELINE_TEXT

    def test_renders_each_event(self, db_session, make_incident):
        """Test that every event appears with its label."""
        # Arrange
        incident = make_incident(severity=Severity.P1)
        timeline = TimelineService(db_session)
        timeline.log_event(incident.id, TimelineEventType.STATUS_UPDATE, "Rolled back", COMMANDER)

        # Act
        markdown = TimelineService.format_as_markdown(timeline.get_timeline(incident.id))

        # Assert
        assert "🚨 declared" in markdown
        assert "📝 status update" in markdown
        assert "→ Rolled back" in markdown
