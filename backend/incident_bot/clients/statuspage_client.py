"""
Statuspage API client.

Sets a component's status from the incident's (status, severity).
"""

from typing import Optional

import httpx

from incident_bot.core.enums import IncidentStatus, Severity
from incident_bot.core.exceptions import ExternalServiceError
from incident_bot.core.logging import get_logger

logger = get_logger(__name__)

OPERATIONAL = "operational"
DEGRADED_PERFORMANCE = "degraded_performance"
PARTIAL_OUTAGE = "partial_outage"
MAJOR_OUTAGE = "major_outage"

_EARLY_STATUS_MAP = {
    Severity.P1: MAJOR_OUTAGE,
    Severity.P2: PARTIAL_OUTAGE,
    Severity.P3: DEGRADED_PERFORMANCE,
    Severity.P4: DEGRADED_PERFORMANCE,
}

_LATE_STATUS_MAP = {
    Severity.P1: PARTIAL_OUTAGE,
    Severity.P2: DEGRADED_PERFORMANCE,
    Severity.P3: DEGRADED_PERFORMANCE,
    Severity.P4: DEGRADED_PERFORMANCE,
}


class StatuspageClient:
    def __init__(
        self,
        api_key: str,
        page_id: str,
        base_url: str = "https://api.statuspage.io/v1",
        timeout: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key
        self.page_id = page_id
        self.base_url = base_url.rstrip("/")
        self._http = http_client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._http.close()

    @staticmethod
    def map_status(status: IncidentStatus, severity: Severity) -> str:
        """
        Derive the component status.

        declared/investigating: P1 major outage, P2 partial outage, else degraded.
        identified/monitoring: P1 partial outage, else degraded.
        resolved: operational.
        """
        if status in (IncidentStatus.DECLARED, IncidentStatus.INVESTIGATING):
            return _EARLY_STATUS_MAP[severity]
        if status in (IncidentStatus.IDENTIFIED, IncidentStatus.MONITORING):
            return _LATE_STATUS_MAP[severity]
        return OPERATIONAL

    def update_component_status(self, component_id: str, component_status: str) -> None:
        """
        PATCH a component's status.

        Raises:
            ExternalServiceError: On any HTTP failure or non-2xx answer
        """
        url = f"{self.base_url}/pages/{self.page_id}/components/{component_id}"
        try:
            response = self._http.patch(
                url,
                json={"component": {"status": component_status}},
                headers={"Authorization": f"OAuth {self.api_key}"},
            )
        except httpx.HTTPError as e:
            logger.error("statuspage_request_failed", component_id=component_id, error=str(e))
            raise ExternalServiceError("Statuspage", str(e)) from e

        if response.is_error:
            logger.error(
                "statuspage_api_error",
                component_id=component_id,
                status_code=response.status_code,
            )
            raise ExternalServiceError(
                "Statuspage",
                f"HTTP {response.status_code}: {response.text[:200]}",
                details={"status_code": response.status_code},
            )

        logger.info("statuspage_component_updated", component_id=component_id, status=component_status)
