"""Dispatch of /incident subcommands to their handlers."""

from typing import Callable, Dict

from incident_bot.app_state import AppState
from incident_bot.commands.common import reply_error
from incident_bot.commands.declare import handle_declare
from incident_bot.commands.postmortem import handle_postmortem
from incident_bot.commands.resolved import handle_resolved
from incident_bot.commands.severity import handle_severity
from incident_bot.commands.status import handle_status
from incident_bot.commands.timeline import handle_timeline
from incident_bot.commands.transition import handle_transition
from incident_bot.core.logging import get_logger
from incident_bot.slack.payloads import SlashCommandPayload

logger = get_logger(__name__)

Handler = Callable[[AppState, SlashCommandPayload], None]

HANDLERS: Dict[str, Handler] = {
    "declare": handle_declare,
    "status": handle_status,
    "severity": handle_severity,
    "transition": handle_transition,
    "resolved": handle_resolved,
    "timeline": handle_timeline,
    "postmortem": handle_postmortem,
}


def available_subcommands() -> str:
    return ", ".join(HANDLERS)


def process_slash_command(state: AppState, payload: SlashCommandPayload) -> None:
    subcommand = payload.subcommand
    handler = HANDLERS.get(subcommand)

    logger.info(
        "slash_command_received",
        subcommand=subcommand or None,
        user_id=payload.user_id,
        channel_id=payload.channel_id,
    )

    if handler is None:
        if subcommand:
            message = f"Unknown subcommand: {subcommand}. Available: {available_subcommands()}"
        else:
            message = f"Usage: /incident [subcommand]. Available: {available_subcommands()}"
        reply_error(state, payload, message)
        return

    handler(state, payload)
