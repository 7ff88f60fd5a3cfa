"""
Model Package Initialization
============================

Ensures models are properly registered when imported by the application.

Usage:
    from incident_bot.models import Incident, TimelineEvent
"""

from .incident import Incident
from .timeline import TimelineEvent
from .audit import AuditRecord
from .notification import NotificationRecord
from .template import IncidentTemplate
from .statuspage_mapping import StatuspageMapping

__all__ = [
    "Incident",
    "TimelineEvent",
    "AuditRecord",
    "NotificationRecord",
    "IncidentTemplate",
    "StatuspageMapping",
]
