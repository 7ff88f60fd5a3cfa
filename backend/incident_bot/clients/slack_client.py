"""
Slack Web API client.

Thin wrapper over the Web API methods the bot needs. Every call posts JSON
with bearer auth; a response with ``ok: false`` raises SlackAPIError
carrying Slack's error code (e.g. ``name_taken``).
"""

from typing import Any, Dict, List, Optional

import httpx

from incident_bot.core.exceptions import ExternalServiceError, SlackAPIError
from incident_bot.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


class SlackClient:
    def __init__(
        self,
        token: str,
        base_url: str = "https://slack.com/api",
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.Client] = None,
    ):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self._http = http_client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._http.close()

    # ==========================
    # Transport
    # ==========================

    def call_api(self, method: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Call a Web API method.

        Raises:
            SlackAPIError: If Slack answers ok=false or the HTTP call fails
        """
        url = f"{self.base_url}/{method}"
        try:
            response = self._http.post(
                url,
                json=body,
                headers={"Authorization": f"Bearer {self.token}"},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as e:
            logger.error("slack_api_timeout", method=method)
            raise SlackAPIError(method, "timeout") from e
        except httpx.HTTPError as e:
            logger.error("slack_api_http_error", method=method, error=str(e))
            raise SlackAPIError(method, "http_error") from e
        except ValueError as e:
            logger.error("slack_api_invalid_json", method=method)
            raise SlackAPIError(method, "invalid_response") from e

        if not payload.get("ok", False):
            error_code = payload.get("error", "unknown_error")
            logger.warning("slack_api_error", method=method, error_code=error_code)
            raise SlackAPIError(method, error_code)

        logger.debug("slack_api_ok", method=method)
        return payload

    # ==========================
    # Channels
    # ==========================

    def create_channel(self, name: str) -> str:
        """Create a public channel and return its id."""
        data = self.call_api("conversations.create", {"name": name, "is_private": False})
        return data["channel"]["id"]

    def invite_users(self, channel_id: str, user_ids: List[str]) -> None:
        if not user_ids:
            return
        self.call_api(
            "conversations.invite",
            {"channel": channel_id, "users": ",".join(user_ids)},
        )

    def archive_channel(self, channel_id: str) -> None:
        self.call_api("conversations.archive", {"channel": channel_id})

    # ==========================
    # Messages
    # ==========================

    def post_message(
        self,
        channel: str,
        blocks: List[Dict[str, Any]],
        text: Optional[str] = None,
    ) -> str:
        """Post blocks to a channel and return the message timestamp."""
        body: Dict[str, Any] = {"channel": channel, "blocks": blocks}
        if text:
            body["text"] = text
        data = self.call_api("chat.postMessage", body)
        return data["ts"]

    def pin_message(self, channel_id: str, ts: str) -> None:
        self.call_api("pins.add", {"channel": channel_id, "timestamp": ts})

    def open_dm(self, user_id: str) -> str:
        data = self.call_api("conversations.open", {"users": user_id})
        return data["channel"]["id"]

    def send_dm(self, user_id: str, blocks: List[Dict[str, Any]]) -> str:
        return self.post_message(self.open_dm(user_id), blocks)

    # ==========================
    # Interactivity
    # ==========================

    def open_modal(self, trigger_id: str, view: Dict[str, Any]) -> None:
        self.call_api("views.open", {"trigger_id": trigger_id, "view": view})

    def post_to_response_url(self, response_url: str, blocks: List[Dict[str, Any]]) -> None:
        """Send an ephemeral reply through a slash command's response_url."""
        try:
            response = self._http.post(
                response_url,
                json={"blocks": blocks, "response_type": "ephemeral"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("slack_response_url_failed", error=str(e))
            raise ExternalServiceError("Slack", f"response_url post failed: {e}") from e
