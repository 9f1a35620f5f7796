"""Exceptions raised by the report pipeline stages."""

from typing import Optional


class OnCallReportError(Exception):
    """Base class for failures that abort a report run."""

    stage: Optional[str] = None


class IncidentRetrievalError(OnCallReportError):
    """Raised when incidents cannot be fetched from PagerDuty."""

    stage = "retrieve"


class IncidentTransformError(OnCallReportError):
    """Raised when an incident cannot be turned into a report row."""

    stage = "transform"

    def __init__(self, incident_id: str, reason: str):
        self.incident_id = incident_id
        super().__init__(f"Could not process incident {incident_id}: {reason}")


class ReportWriteError(OnCallReportError):
    """Raised when the report file cannot be written."""

    stage = "write"
