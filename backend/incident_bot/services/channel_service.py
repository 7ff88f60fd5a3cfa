"""
Channel Provisioning Service
============================

Creates the dedicated Slack channel for a new incident.

Channel names look like ``inc-20241115-okta-sso``. A ``name_taken``
failure is retried once with part of the incident id appended; any other
failure propagates unchanged.

If the channel is created but the incident record cannot be updated, the
channel is archived and the persistence error is re-raised.
"""

import uuid
from datetime import date
from typing import Callable, Tuple, TypeVar

from incident_bot.clients.slack_client import SlackClient
from incident_bot.core.exceptions import ExternalServiceError, SlackAPIError
from incident_bot.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

MAX_SLUG_LENGTH = 40
MAX_CHANNEL_NAME_LENGTH = 80
NAME_TAKEN = "name_taken"


def slugify_service(service: str) -> str:
    slug = service.lower().replace(" ", "-").replace("_", "-")
    slug = "".join(char for char in slug if char.isalnum() or char == "-")
    return slug[:MAX_SLUG_LENGTH]


def generate_channel_name(
    service: str,
    on_date: date,
    incident_id: uuid.UUID,
    prefix: str = "inc",
) -> str:
    """
    Build ``{prefix}-{YYYYMMDD}-{slug}``.

    Falls back to ``{prefix}-{YYYYMMDD}-{first 4 chars of the id}`` when the
    name would exceed Slack's 80 character limit or the slug is empty.
    """
    date_part = on_date.strftime("%Y%m%d")
    slug = slugify_service(service)
    name = f"{prefix}-{date_part}-{slug}"

    if len(name) > MAX_CHANNEL_NAME_LENGTH or not slug.strip("-"):
        return f"{prefix}-{date_part}-{incident_id.hex[:4]}"
    return name


class ChannelService:
    def __init__(self, slack: SlackClient, prefix: str = "inc"):
        self.slack = slack
        self.prefix = prefix

    def create_incident_channel(
        self,
        service: str,
        on_date: date,
        incident_id: uuid.UUID,
    ) -> Tuple[str, str]:
        """
        Create the channel, retrying once on a name collision.

        Returns:
            (channel_id, channel_name)
        """
        base_name = generate_channel_name(service, on_date, incident_id, self.prefix)

        try:
            channel_id = self.slack.create_channel(base_name)
        except SlackAPIError as e:
            if e.error_code != NAME_TAKEN:
                raise
            unique_name = f"{base_name}-{incident_id.hex[:8]}"
            logger.info("channel_name_taken", channel_name=base_name, retry_name=unique_name)
            channel_id = self.slack.create_channel(unique_name)
            logger.info("channel_created", channel_id=channel_id, channel_name=unique_name)
            return channel_id, unique_name

        logger.info("channel_created", channel_id=channel_id, channel_name=base_name)
        return channel_id, base_name

    def provision(
        self,
        service: str,
        on_date: date,
        incident_id: uuid.UUID,
        persist: Callable[[str, str], T],
    ) -> T:
        """
        Create the channel, then hand it to ``persist``.

        Args:
            persist: Called with (channel_id, channel_name); typically
                assigns the channel to the incident record

        Returns:
            Whatever ``persist`` returns

        Raises:
            The channel creation error, or the persistence error after the
            channel has been archived
        """
        channel_id, channel_name = self.create_incident_channel(service, on_date, incident_id)

        try:
            return persist(channel_id, channel_name)
        except Exception:
            logger.error(
                "channel_persist_failed_archiving",
                channel_id=channel_id,
                incident_id=str(incident_id),
            )
            self._archive_quietly(channel_id)
            raise

    def _archive_quietly(self, channel_id: str) -> None:
        try:
            self.slack.archive_channel(channel_id)
        except ExternalServiceError as archive_error:
            logger.error(
                "channel_archive_failed",
                channel_id=channel_id,
                error=archive_error.message,
            )
            return
        logger.info("orphaned_channel_archived", channel_id=channel_id)
