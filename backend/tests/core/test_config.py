"""
Configuration Unit Tests
========================

Tests for:
- Comma-separated routing targets
- Statuspage enablement
- Startup validation
"""

import pytest

from incident_bot.core.config import Settings


pytestmark = pytest.mark.unit


class TestListProperties:
    """Tests for the CSV-backed list properties."""

    def test_csv_values_are_split_and_trimmed(self):
        """Test that entries are split on commas and stripped."""
        # Arrange
        settings = Settings(
            P1_CHANNELS=" #incidents-critical , #exec ",
            P1_DM_RECIPIENTS="U_VP,,U_CTO",
            SERVICES="payments-api, okta-sso",
        )

        # Assert
        assert settings.p1_channels_list == ["#incidents-critical", "#exec"]
        assert settings.p1_dm_recipients_list == ["U_VP", "U_CTO"]
        assert settings.services_list == ["payments-api", "okta-sso"]

    def test_empty_values_give_empty_lists(self):
        """Test that unset targets produce no recipients."""
        # Arrange
        settings = Settings(P2_CHANNELS="")

        # Assert
        assert settings.p2_channels_list == []


class TestStatuspageEnabled:
    """Tests for the statuspage_enabled property."""

    def test_requires_key_and_page(self):
        """Test that both the key and page id must be set."""
        # Assert
        assert not Settings(STATUSPAGE_API_KEY="key").statuspage_enabled
        assert not Settings(STATUSPAGE_PAGE_ID="page").statuspage_enabled
        assert Settings(STATUSPAGE_API_KEY="key", STATUSPAGE_PAGE_ID="page").statuspage_enabled


class TestStartupProblems:
    """Tests for Settings.startup_problems."""

    def test_missing_slack_credentials_are_reported(self):
        """Test that every missing required value is listed."""
        # Arrange
        settings = Settings(SLACK_BOT_TOKEN="", SLACK_SIGNING_SECRET="")

        # Act
        problems = settings.startup_problems()

        # Assert
        assert "SLACK_BOT_TOKEN is required" in problems
        assert "SLACK_SIGNING_SECRET is required" in problems

    def test_complete_configuration_has_no_problems(self, settings):
        """Test that the shared test settings are valid."""
        # Act
        problems = settings.startup_problems()

        # Assert
        assert problems == []

    def test_service_owners_parse_from_json_env(self, monkeypatch):
        """Test that SERVICE_OWNERS is read as JSON from the environment."""
        # Arrange
        monkeypatch.setenv("SERVICE_OWNERS", '{"okta-sso": ["U1", "U2"]}')

        # Act
        settings = Settings()

        # Assert
        assert settings.SERVICE_OWNERS == {"okta-sso": ["U1", "U2"]}
