"""
Slack Web API Client Tests
==========================

Tests for:
- Request shape (method URL, bearer auth, JSON body)
- ok=false and transport failures
- response_url replies
"""

import json

import httpx
import pytest

from incident_bot.clients.slack_client import SlackClient
from incident_bot.core.exceptions import ExternalServiceError, SlackAPIError


pytestmark = pytest.mark.unit


def make_client(handler) -> SlackClient:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return SlackClient("xoxb-test", base_url="https://slack.test/api", http_client=http)


class TestCallApi:
    """Tests for SlackClient.call_api and the method wrappers."""

    def test_create_channel_request(self):
        """Test URL, auth header and body of conversations.create."""
        # Arrange
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"ok": True, "channel": {"id": "C123"}})

        client = make_client(handler)

        # Act
        channel_id = client.create_channel("inc-20241115-okta-sso")

        # Assert
        assert channel_id == "C123"
        assert seen["url"] == "https://slack.test/api/conversations.create"
        assert seen["auth"] == "Bearer xoxb-test"
        assert seen["body"] == {"name": "inc-20241115-okta-sso", "is_private": False}

    def test_ok_false_raises_with_error_code(self):
        """Test that Slack's error code is surfaced."""
        # Arrange
        client = make_client(lambda request: httpx.Response(200, json={"ok": False, "error": "name_taken"}))

        # Act & Assert
        with pytest.raises(SlackAPIError) as exc_info:
            client.create_channel("inc-20241115-okta-sso")

        assert exc_info.value.error_code == "name_taken"
        assert exc_info.value.method == "conversations.create"

    def test_http_error_raises(self):
        """Test that a 5xx becomes a SlackAPIError."""
        # Arrange
        client = make_client(lambda request: httpx.Response(503, text="unavailable"))

        # Act & Assert
        with pytest.raises(SlackAPIError) as exc_info:
            client.archive_channel("C123")

        assert exc_info.value.error_code == "http_error"

    def test_timeout_raises(self):
        """Test that timeouts are reported with their own code."""
        # Arrange
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = make_client(handler)

        # Act & Assert
        with pytest.raises(SlackAPIError) as exc_info:
            client.pin_message("C123", "1700000000.0001")

        assert exc_info.value.error_code == "timeout"

    def test_invite_users_joins_ids(self):
        """Test the comma-joined users field."""
        # Arrange
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"ok": True})

        client = make_client(handler)

        # Act
        client.invite_users("C123", ["U1", "U2"])
        client.invite_users("C123", [])

        # Assert
        assert bodies == [{"channel": "C123", "users": "U1,U2"}]

    def test_send_dm_opens_conversation_first(self):
        """Test that a DM opens the conversation then posts to it."""
        # Arrange
        calls = []

        def handler(request):
            method = request.url.path.rsplit("/", 1)[-1]
            calls.append((method, json.loads(request.content)))
            if method == "conversations.open":
                return httpx.Response(200, json={"ok": True, "channel": {"id": "D42"}})
            return httpx.Response(200, json={"ok": True, "ts": "1700000000.0002"})

        client = make_client(handler)

        # Act
        ts = client.send_dm("U_VP", [{"type": "section"}])

        # Assert
        assert ts == "1700000000.0002"
        assert calls[0] == ("conversations.open", {"users": "U_VP"})
        assert calls[1][0] == "chat.postMessage"
        assert calls[1][1]["channel"] == "D42"


class TestPostToResponseUrl:
    """Tests for SlackClient.post_to_response_url."""

    def test_posts_ephemeral_blocks(self):
        """Test the response_url body."""
        # Arrange
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, text="ok")

        client = make_client(handler)

        # Act
        client.post_to_response_url("https://hooks.slack.test/r/1", [{"type": "section"}])

        # Assert
        assert seen["url"] == "https://hooks.slack.test/r/1"
        assert seen["body"] == {"blocks": [{"type": "section"}], "response_type": "ephemeral"}

    def test_failure_raises_external_service_error(self):
        """Test that a failed reply raises."""
        # Arrange
        client = make_client(lambda request: httpx.Response(404, text="expired"))

        # Act & Assert
        with pytest.raises(ExternalServiceError):
            client.post_to_response_url("https://hooks.slack.test/r/1", [])
