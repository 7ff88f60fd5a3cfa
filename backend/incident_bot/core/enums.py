"""
Enumeration Module
==================

Defines the value types of the incident lifecycle:

- Severity: four ranked levels, P1 most critical
- IncidentStatus: five lifecycle states and the static transition table
- TimelineEventType, NotificationType, NotificationStatus: record tags
"""

from enum import Enum
from typing import Dict, FrozenSet

from incident_bot.core.exceptions import ValidationError


class Severity(str, Enum):
    """Incident severity. Lower rank means more urgent."""

    P1 = "P1"
    P2 = "P2"
    P3 = "P3"
    P4 = "P4"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANKS[self]

    @property
    def label(self) -> str:
        return _SEVERITY_LABELS[self]

    @property
    def urgency(self) -> str:
        return _SEVERITY_URGENCY[self]

    @property
    def emoji(self) -> str:
        if self is Severity.P1:
            return "🔴"
        if self is Severity.P2:
            return "🟡"
        return "🟢"

    @property
    def is_broadcast(self) -> bool:
        """P1 and P2 notify audiences beyond the incident channel."""
        return self in (Severity.P1, Severity.P2)

    def is_more_severe_than(self, other: "Severity") -> bool:
        return self.rank < other.rank

    @classmethod
    def parse(cls, raw: str, field: str = "severity") -> "Severity":
        """
        Parse external text case-insensitively.

        Raises:
            ValidationError: naming the field and the raw value
        """
        candidate = (raw or "").strip().upper()
        for member in cls:
            if member.value == candidate:
                return member
        raise ValidationError(field, f"Invalid severity: {raw}")


_SEVERITY_RANKS = {
    Severity.P1: 1,
    Severity.P2: 2,
    Severity.P3: 3,
    Severity.P4: 4,
}

_SEVERITY_LABELS = {
    Severity.P1: "P1 (Critical)",
    Severity.P2: "P2 (High)",
    Severity.P3: "P3 (Medium)",
    Severity.P4: "P4 (Low)",
}

_SEVERITY_URGENCY = {
    Severity.P1: "critical",
    Severity.P2: "high",
    Severity.P3: "medium",
    Severity.P4: "low",
}


class IncidentStatus(str, Enum):
    """Lifecycle statuses. Transitions only move forward."""

    DECLARED = "declared"
    INVESTIGATING = "investigating"
    IDENTIFIED = "identified"
    MONITORING = "monitoring"
    RESOLVED = "resolved"

    @property
    def is_terminal(self) -> bool:
        return not VALID_TRANSITIONS[self]

    def can_transition_to(self, target: "IncidentStatus") -> bool:
        return target in VALID_TRANSITIONS[self]

    @classmethod
    def parse(cls, raw: str, field: str = "status") -> "IncidentStatus":
        candidate = (raw or "").strip().lower()
        for member in cls:
            if member.value == candidate:
                return member
        raise ValidationError(field, f"Invalid status: {raw}")


VALID_TRANSITIONS: Dict[IncidentStatus, FrozenSet[IncidentStatus]] = {
    IncidentStatus.DECLARED: frozenset({
        IncidentStatus.INVESTIGATING,
        IncidentStatus.IDENTIFIED,
        IncidentStatus.MONITORING,
        IncidentStatus.RESOLVED,
    }),
    IncidentStatus.INVESTIGATING: frozenset({
        IncidentStatus.IDENTIFIED,
        IncidentStatus.MONITORING,
        IncidentStatus.RESOLVED,
    }),
    IncidentStatus.IDENTIFIED: frozenset({
        IncidentStatus.MONITORING,
        IncidentStatus.RESOLVED,
    }),
    IncidentStatus.MONITORING: frozenset({
        IncidentStatus.RESOLVED,
    }),
    IncidentStatus.RESOLVED: frozenset(),
}


def can_transition(from_status: IncidentStatus, to_status: IncidentStatus) -> bool:
    return to_status in VALID_TRANSITIONS[from_status]


def is_terminal(status: IncidentStatus) -> bool:
    return status.is_terminal


class TimelineEventType(str, Enum):
    DECLARED = "declared"
    STATUS_UPDATE = "status_update"
    SEVERITY_CHANGE = "severity_change"
    RESOLVED = "resolved"


class NotificationType(str, Enum):
    SLACK_CHANNEL = "slack_channel"
    SLACK_DM = "slack_dm"


class NotificationStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    PENDING = "pending"
    THROTTLED = "throttled"
