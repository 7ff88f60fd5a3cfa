"""
Block Kit Rendering Tests
=========================

Tests for message blocks and the declaration modal.
"""

from types import SimpleNamespace

import pytest

from incident_bot.core.enums import Severity
from incident_bot.slack.blocks import (
    error_blocks,
    permission_denied_blocks,
    postmortem_blocks,
    severity_change_blocks,
    timeline_blocks,
)
from incident_bot.slack.modals import declare_incident_modal
from incident_bot.slack.payloads import DECLARE_CALLBACK_ID


pytestmark = pytest.mark.unit


def block_ids(modal):
    return [block["block_id"] for block in modal["blocks"]]


def by_id(modal, block_id):
    return next(block for block in modal["blocks"] if block["block_id"] == block_id)


class TestMessageBlocks:
    """Tests for message block builders."""

    def test_escalation_wording(self):
        """Test that a more severe target is an escalation."""
        # Act
        blocks = severity_change_blocks(Severity.P3, Severity.P1, "U1", reason="customers affected")

        # Assert
        text = blocks[0]["text"]["text"]
        assert "Escalated" in text
        assert "from P3 (Medium) to P1 (Critical)" in text
        assert blocks[1]["elements"][0]["text"] == "Reason: customers affected"

    def test_downgrade_wording(self):
        """Test that a less severe target is a downgrade."""
        # Act
        blocks = severity_change_blocks(Severity.P1, Severity.P3, "U1")

        # Assert
        assert "Downgraded" in blocks[0]["text"]["text"]
        assert len(blocks) == 1

    def test_error_and_permission_blocks(self):
        """Test the user-facing failure texts."""
        # Assert
        assert error_blocks("No active incident in this channel")[0]["text"]["text"] == (
            "❌ *Error:* No active incident in this channel"
        )
        assert "Only the incident commander can resolve the incident." in (
            permission_denied_blocks("resolve the incident")[0]["text"]["text"]
        )

    def test_empty_timeline(self):
        """Test the timeline placeholder."""
        # Act
        blocks = timeline_blocks([])

        # Assert
        assert blocks[1]["text"]["text"] == "_No timeline events yet._"

    def test_postmortem_is_truncated(self):
        """Test that the draft fits in one section."""
        # Act
        blocks = postmortem_blocks("x" * 5000)

        # Assert
        assert len(blocks[1]["text"]["text"]) < 3000


class TestDeclareModal:
    """Tests for declare_incident_modal."""

    def test_without_templates(self):
        """Test the manual modal: required fields and a default severity."""
        # Act
        modal = declare_incident_modal(["payments-api", "okta-sso"], [])

        # Assert
        assert modal["callback_id"] == DECLARE_CALLBACK_ID
        assert block_ids(modal) == ["title_block", "severity_block", "service_block", "commander_block"]
        assert by_id(modal, "title_block")["optional"] is False
        assert by_id(modal, "severity_block")["element"]["initial_option"]["value"] == "P2"
        assert [o["value"] for o in by_id(modal, "service_block")["element"]["options"]] == [
            "payments-api",
            "okta-sso",
        ]
        assert by_id(modal, "commander_block")["optional"] is True

    def test_with_templates(self):
        """Test that templates make the core fields optional."""
        # Arrange
        templates = [SimpleNamespace(name="database-outage", title="Database Outage")]

        # Act
        modal = declare_incident_modal(["payments-api"], templates)

        # Assert
        assert block_ids(modal)[0] == "template_block"
        assert by_id(modal, "title_block")["optional"] is True
        assert by_id(modal, "service_block")["optional"] is True
        assert "initial_option" not in by_id(modal, "severity_block")["element"]
        assert by_id(modal, "template_block")["element"]["options"][0]["value"] == "database-outage"

    def test_free_text_service_without_configured_services(self):
        """Test the service text input fallback."""
        # Act
        modal = declare_incident_modal([], [])

        # Assert
        assert by_id(modal, "service_block")["element"]["type"] == "plain_text_input"
