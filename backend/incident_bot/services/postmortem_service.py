"""Postmortem draft generation."""

from sqlalchemy.orm import Session

from incident_bot.core.enums import IncidentStatus
from incident_bot.core.exceptions import ValidationError
from incident_bot.models.incident import Incident
from incident_bot.services.timeline_service import TimelineService
from incident_bot.utils.time import ensure_utc, format_duration, format_timestamp, utcnow

POSTMORTEM_TEMPLATE = """# Postmortem: {title} ({declared_date})

## Incident Summary
- **Duration**: {duration} ({declared_at} - {resolved_at})
- **Severity**: {severity}
- **Status**: Resolved
- **Affected Service**: {service}
- **Incident Commander**: <@{commander_id}>
- **Impact**: [TO BE FILLED BY TEAM]
- **Root Cause**: [TO BE FILLED BY TEAM]

## Timeline

{timeline}

## Action Items
- [ ] [TO BE ADDED BY TEAM]

## Lessons Learned
- [TO BE FILLED BY TEAM]

---
*Generated on {generated_at} by Incident Bot*
"""


class PostmortemService:
    def __init__(self, db: Session):
        self.timeline = TimelineService(db)

    def generate(self, incident: Incident) -> str:
        """
        Render a markdown postmortem draft for a resolved incident.

        Raises:
            ValidationError: If the incident is not resolved yet
        """
        if incident.status is not IncidentStatus.RESOLVED or incident.resolved_at is None:
            raise ValidationError("status", "Postmortems can only be generated for resolved incidents")

        events = self.timeline.get_timeline(incident.id)
        declared_at = ensure_utc(incident.declared_at)

        return POSTMORTEM_TEMPLATE.format(
            title=incident.title,
            declared_date=declared_at.strftime("%Y-%m-%d"),
            duration=format_duration(incident.duration_minutes),
            declared_at=format_timestamp(declared_at),
            resolved_at=format_timestamp(incident.resolved_at),
            severity=incident.severity.label,
            service=incident.service,
            commander_id=incident.commander_id,
            timeline=TimelineService.format_as_markdown(events),
            generated_at=format_timestamp(utcnow()),
        )
