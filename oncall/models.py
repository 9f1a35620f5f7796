"""Shared data models used across the pipeline stages."""

from dataclasses import dataclass
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Optional, TypedDict

import pytz

AUTO_RESOLVED = "Auto-resolved"
MERGE_RESOLVE_REASON = "merge_resolve_reason"
RESERVED_COLUMNS = 4


class Reference(TypedDict, total=False):
    """A PagerDuty reference object (user, service, ...)."""

    id: str
    type: str
    summary: str


class ResolveReason(TypedDict, total=False):
    """Why an incident was resolved."""

    type: str
    incident: Reference


class Incident(TypedDict, total=False):
    """The fields of a PagerDuty incident consumed by the report."""

    id: str
    created_at: str
    last_status_change_at: str
    last_status_change_by: Reference
    service: Reference
    urgency: str
    title: str
    html_url: str
    resolve_reason: Optional[ResolveReason]


@dataclass(frozen=True)
class CompensationPolicy:
    """Time windows used to derive hours earned.

    Both windows are inclusive. The late-night window wraps midnight: an hour
    counts as late night when it is <= late_night_end or >= late_night_start.
    """

    timezone: str = "MST"
    business_hours_start: int = 9
    business_hours_end: int = 17
    late_night_start: int = 22
    late_night_end: int = 4

    @property
    def tz(self) -> tzinfo:
        """Get the reference timezone object."""
        return pytz.timezone(self.timezone)

    def is_business_hour(self, hour: int) -> bool:
        return self.business_hours_start <= hour <= self.business_hours_end

    def is_late_night(self, hour: int) -> bool:
        return hour <= self.late_night_end or hour >= self.late_night_start


@dataclass(frozen=True)
class ProcessedRow:
    """One on-call spreadsheet row derived from an incident."""

    resolver: str
    start_date: str
    end_date: str
    urgency: str
    hours_earned: int
    start_time: str
    end_time: str
    duration_hours: str
    service: str
    title: str
    url: str

    def as_csv_row(self) -> list:
        """Get the 16 spreadsheet columns in their fixed order.

        The reconciliation date and the reserved columns stay empty so the
        sheet keeps a stable layout for manual editing downstream.
        """
        return [
            self.resolver,
            self.start_date,
            self.end_date,
            self.urgency,
            self.hours_earned,
            None,  # date reconciled
            self.start_time,
            self.end_time,
            self.duration_hours,
            *([None] * RESERVED_COLUMNS),
            self.service,
            self.title,
            self.url,
        ]


@dataclass
class RunResult:
    """Outcome of a single report run."""

    success: bool
    since: Optional[datetime] = None
    output_path: Optional[Path] = None
    incidents_fetched: int = 0
    rows_written: int = 0
    stage: Optional[str] = None
    error: Optional[str] = None
