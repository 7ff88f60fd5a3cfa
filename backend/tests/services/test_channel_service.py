"""
Channel Provisioning Tests
==========================

Tests for:
- Channel name generation and fallbacks
- name_taken retry
- Archiving the channel when persistence fails
"""

import uuid
from datetime import date

import pytest

from incident_bot.core.exceptions import SlackAPIError, StorageError
from incident_bot.services.channel_service import generate_channel_name, slugify_service


INCIDENT_ID = uuid.UUID("ab12cd34-0000-4000-8000-000000000000")
ON_DATE = date(2024, 11, 15)


@pytest.mark.unit
class TestGenerateChannelName:
    """Tests for generate_channel_name."""

    def test_basic_service_name(self):
        """Test the standard name shape."""
        # Assert
        assert generate_channel_name("okta-sso", ON_DATE, INCIDENT_ID) == "inc-20241115-okta-sso"

    def test_spaces_and_case_are_normalised(self):
        """Test that spaces become dashes and letters are lowercased."""
        # Assert
        assert generate_channel_name("Payments API", ON_DATE, INCIDENT_ID) == "inc-20241115-payments-api"

    def test_special_characters_are_dropped(self):
        """Test that characters Slack rejects are removed."""
        # Assert
        assert generate_channel_name("auth_service!", ON_DATE, INCIDENT_ID) == "inc-20241115-auth-service"

    def test_empty_slug_falls_back_to_id(self):
        """Test the id fallback when nothing usable remains."""
        # Assert
        assert generate_channel_name("!!!", ON_DATE, INCIDENT_ID) == "inc-20241115-ab12"

    def test_long_service_is_truncated(self):
        """Test that the slug is capped at 40 characters."""
        # Act
        name = generate_channel_name("x" * 120, ON_DATE, INCIDENT_ID)

        # Assert
        assert name == "inc-20241115-" + "x" * 40
        assert len(name) <= 80

    def test_long_prefix_falls_back_to_id(self):
        """Test the id fallback when the name exceeds 80 characters."""
        # Act
        name = generate_channel_name("payments-api", ON_DATE, INCIDENT_ID, prefix="p" * 70)

        # Assert
        assert name == "p" * 70 + "-20241115-ab12"

    @pytest.mark.parametrize(
        "service, expected",
        [
            ("Okta SSO", "inc-20241115-okta-sso"),
            ("Email_Service@2024", "inc-20241115-email-service2024"),
            ("", "inc-20241115-ab12"),
        ],
    )
    def test_documented_examples(self, service, expected):
        """Test the documented service-name examples."""
        # Assert
        assert generate_channel_name(service, ON_DATE, INCIDENT_ID) == expected

    def test_150_character_service_name(self):
        """Test that a very long service name stays within Slack's limit."""
        # Arrange
        service = ("Checkout Service " * 10)[:150]

        # Act
        name = generate_channel_name(service, ON_DATE, INCIDENT_ID)

        # Assert
        assert len(service) == 150
        assert name.startswith("inc-20241115-")
        assert len(name) <= 80

    def test_slugify_service(self):
        """Test the slug helper directly."""
        # Assert
        assert slugify_service("API Gateway_v2") == "api-gateway-v2"


@pytest.mark.unit
class TestCreateIncidentChannel:
    """Tests for ChannelService.create_incident_channel."""

    def test_creates_channel_with_generated_name(self, channel_service, fake_slack):
        """Test the happy path."""
        # Act
        channel_id, name = channel_service.create_incident_channel("okta-sso", ON_DATE, INCIDENT_ID)

        # Assert
        assert channel_id.startswith("C")
        assert name == "inc-20241115-okta-sso"
        assert fake_slack.created_channels == ["inc-20241115-okta-sso"]

    def test_name_taken_retries_with_id_suffix(self, channel_service, fake_slack):
        """Test a single retry with the id appended."""
        # Arrange
        fake_slack.create_errors = ["name_taken"]

        # Act
        _, name = channel_service.create_incident_channel("okta-sso", ON_DATE, INCIDENT_ID)

        # Assert
        assert name == "inc-20241115-okta-sso-ab12cd34"
        assert fake_slack.created_channels == ["inc-20241115-okta-sso-ab12cd34"]

    def test_second_name_taken_propagates(self, channel_service, fake_slack):
        """Test that only one retry is made."""
        # Arrange
        fake_slack.create_errors = ["name_taken", "name_taken"]

        # Act & Assert
        with pytest.raises(SlackAPIError) as exc_info:
            channel_service.create_incident_channel("okta-sso", ON_DATE, INCIDENT_ID)

        assert exc_info.value.error_code == "name_taken"

    def test_other_errors_are_not_retried(self, channel_service, fake_slack):
        """Test that non-collision errors propagate immediately."""
        # Arrange
        fake_slack.create_errors = ["restricted_action"]

        # Act & Assert
        with pytest.raises(SlackAPIError) as exc_info:
            channel_service.create_incident_channel("okta-sso", ON_DATE, INCIDENT_ID)

        assert exc_info.value.error_code == "restricted_action"
        assert fake_slack.created_channels == []


@pytest.mark.unit
class TestProvision:
    """Tests for ChannelService.provision."""

    def test_returns_persist_result(self, channel_service):
        """Test that persist receives the channel and its result is returned."""
        # Arrange
        seen = []

        def persist(channel_id, channel_name):
            seen.append((channel_id, channel_name))
            return "persisted"

        # Act
        result = channel_service.provision("okta-sso", ON_DATE, INCIDENT_ID, persist)

        # Assert
        assert result == "persisted"
        assert seen[0][1] == "inc-20241115-okta-sso"

    def test_persist_failure_archives_channel(self, channel_service, fake_slack):
        """Test that the orphaned channel is archived and the error re-raised."""
        # Arrange
        def persist(channel_id, channel_name):
            raise StorageError(operation="assign_channel")

        # Act & Assert
        with pytest.raises(StorageError):
            channel_service.provision("okta-sso", ON_DATE, INCIDENT_ID, persist)

        assert fake_slack.archived == ["C0001"]

    def test_archive_failure_keeps_original_error(self, channel_service, fake_slack, monkeypatch):
        """Test that an archive failure does not mask the persistence error."""
        # Arrange
        def failing_archive(channel_id):
            raise SlackAPIError("conversations.archive", "not_in_channel")

        monkeypatch.setattr(fake_slack, "archive_channel", failing_archive)

        def persist(channel_id, channel_name):
            raise StorageError(operation="assign_channel")

        # Act & Assert
        with pytest.raises(StorageError):
            channel_service.provision("okta-sso", ON_DATE, INCIDENT_ID, persist)
