"""
Block Kit message builders.

Every builder returns a list of block dicts ready for chat.postMessage.
"""

from typing import Any, Dict, List, Optional

from incident_bot.core.enums import Severity, TimelineEventType
from incident_bot.models.incident import Incident
from incident_bot.models.timeline import TimelineEvent
from incident_bot.utils.time import ensure_utc, format_duration

Block = Dict[str, Any]

_TIMELINE_ICONS = {
    TimelineEventType.DECLARED: "🚨",
    TimelineEventType.STATUS_UPDATE: "📝",
    TimelineEventType.SEVERITY_CHANGE: "⚠️",
    TimelineEventType.RESOLVED: "✅",
}


def _mrkdwn(text: str) -> Dict[str, str]:
    return {"type": "mrkdwn", "text": text}


def _section(text: str) -> Block:
    return {"type": "section", "text": _mrkdwn(text)}


def _header(text: str) -> Block:
    return {"type": "header", "text": {"type": "plain_text", "text": text}}


def incident_declared_blocks(incident: Incident) -> List[Block]:
    declared_at = ensure_utc(incident.declared_at)
    return [
        _header(f"{incident.severity.emoji} {incident.severity.label} - Incident Declared"),
        {
            "type": "section",
            "fields": [
                _mrkdwn(f"*Title:*\n{incident.title}"),
                _mrkdwn(f"*Service:*\n{incident.service}"),
                _mrkdwn(f"*Commander:*\n<@{incident.commander_id}>"),
                _mrkdwn(
                    f"*Started:*\n<!date^{int(declared_at.timestamp())}^{{time}}|"
                    f"{declared_at.strftime('%H:%M UTC')}>"
                ),
            ],
        },
        {
            "type": "context",
            "elements": [
                _mrkdwn("⚠️ Do NOT post credentials, customer data, or PII in this channel."),
            ],
        },
    ]


def status_update_blocks(severity: Severity, message: str, posted_by: str) -> List[Block]:
    return [
        _section(f"{severity.emoji} *Status Update*\n{message}\n_Posted by <@{posted_by}>_"),
    ]


def status_transition_blocks(
    severity: Severity,
    old_status: str,
    new_status: str,
    changed_by: str,
) -> List[Block]:
    return [
        _section(
            f"{severity.emoji} *Status changed from `{old_status}` to `{new_status}`*\n"
            f"_Changed by <@{changed_by}>_"
        ),
    ]


def severity_change_blocks(
    old_severity: Severity,
    new_severity: Severity,
    changed_by: str,
    reason: Optional[str] = None,
) -> List[Block]:
    downgraded = old_severity.is_more_severe_than(new_severity)
    direction = "⬇️ Downgraded" if downgraded else "⬆️ Escalated"
    verb = "downgraded" if downgraded else "escalated"

    blocks = [
        _section(
            f"{direction} *Severity {verb} from {old_severity.label} to {new_severity.label}*\n"
            f"_Changed by <@{changed_by}>_"
        ),
    ]
    if reason:
        blocks.append({"type": "context", "elements": [_mrkdwn(f"Reason: {reason}")]})
    return blocks


def resolution_blocks(incident: Incident, resolved_by: str) -> List[Block]:
    return [
        _header("✅ RESOLVED"),
        {
            "type": "section",
            "fields": [
                _mrkdwn(f"*Duration:*\n{format_duration(incident.duration_minutes)}"),
                _mrkdwn(f"*Resolved by:*\n<@{resolved_by}>"),
            ],
        },
    ]


def timeline_blocks(events: List[TimelineEvent]) -> List[Block]:
    blocks = [_header("📋 Incident Timeline")]

    if not events:
        blocks.append(_section("_No timeline events yet._"))
        return blocks

    lines = [
        f"{_TIMELINE_ICONS[event.event_type]} *{ensure_utc(event.timestamp).strftime('%H:%M')}* "
        f"- {event.message}\n_by <@{event.posted_by}>_"
        for event in events
    ]
    blocks.append(_section("\n\n".join(lines)))
    return blocks


def postmortem_blocks(markdown: str) -> List[Block]:
    # Section text is capped at 3000 characters by Slack.
    return [
        _header("📝 Postmortem Draft"),
        _section(f"```{markdown[:2900]}```"),
    ]


def ack_blocks(message: str) -> List[Block]:
    return [_section(message)]


def error_blocks(message: str) -> List[Block]:
    return [_section(f"❌ *Error:* {message}")]


def permission_denied_blocks(action: str) -> List[Block]:
    return [_section(f"❌ *Permission denied:* Only the incident commander can {action}.")]
