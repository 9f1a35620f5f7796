"""Transform PagerDuty incidents into on-call spreadsheet rows."""

import logging
import math
from collections.abc import Iterable
from datetime import datetime
from typing import Optional, Union

from oncall.errors import IncidentTransformError
from oncall.models import (
    AUTO_RESOLVED,
    MERGE_RESOLVE_REASON,
    CompensationPolicy,
    Incident,
    ProcessedRow,
)

logger = logging.getLogger("oncall.transformer")

CRITICAL = "critical alarm"
NON_CRITICAL = "non-critical alarm"
UNKNOWN = "unknown"

URGENCY_LABELS = {
    "high": CRITICAL,
    "low": NON_CRITICAL,
}

DEFAULT_POLICY = CompensationPolicy()

Timestamp = Union[str, datetime]


def parse_timestamp(value: Timestamp, policy: CompensationPolicy = DEFAULT_POLICY) -> datetime:
    """Parse an ISO-8601 timestamp into an aware datetime.

    Timestamps without an offset are taken to be in the reference timezone.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = policy.tz.localize(parsed)
    return parsed


def get_incident_urgency(urgency: Optional[str]) -> str:
    """Get the spreadsheet label for a PagerDuty urgency."""
    return URGENCY_LABELS.get(urgency, UNKNOWN)


def get_incident_duration(start: Timestamp, end: Timestamp) -> int:
    """Get the duration of an incident in whole minutes, rounded up.

    An end before the start yields a negative duration.
    """
    delta = parse_timestamp(end) - parse_timestamp(start)
    return math.ceil(delta.total_seconds() / 60)


def get_hours_earned(
    start: Timestamp,
    end: Timestamp,
    urgency: Optional[str],
    policy: CompensationPolicy = DEFAULT_POLICY,
) -> int:
    """Get the number of on-call hours earned for an incident.

    Only critical incidents earn hours, and only when they start outside
    business hours or on a weekend. Such an incident earns one hour, one more
    when it starts late at night, and two for every hour of duration past
    the first.

    Args:
        start: When the incident was created.
        end: When the incident last changed status.
        urgency: PagerDuty urgency (high/low).
        policy: Business-hours and late-night windows.

    Returns:
        Hours earned.
    """
    if get_incident_urgency(urgency) != CRITICAL:
        return 0

    start = parse_timestamp(start, policy)
    end = parse_timestamp(end, policy)
    local_start = start.astimezone(policy.tz)
    start_hour = local_start.hour
    is_weekend = local_start.weekday() >= 5
    duration_hours = math.ceil(get_incident_duration(start, end) / 60)

    if not is_weekend and policy.is_business_hour(start_hour):
        return 0

    hours_earned = 1

    if policy.is_late_night(start_hour):
        hours_earned += 1

    hours_earned += max(0, (duration_hours - 1) * 2)

    return hours_earned


def is_merged(incident: Incident) -> bool:
    """Check whether an incident was resolved by merging into another.

    Raises:
        TypeError: If resolve_reason is present but not an object.
    """
    resolve_reason = incident.get("resolve_reason")
    if resolve_reason is None:
        return False
    if not isinstance(resolve_reason, dict):
        raise TypeError(
            f"resolve_reason is {type(resolve_reason).__name__}, expected an object"
        )
    return resolve_reason.get("type") == MERGE_RESOLVE_REASON


def _incident_id(incident: Incident) -> str:
    if isinstance(incident, dict):
        return incident.get("id", "<unknown>")
    return "<unknown>"


def get_resolver(incident: Incident) -> str:
    """Get who resolved an incident, or 'Auto-resolved' if its service did."""
    resolver = incident["last_status_change_by"]["summary"]
    if resolver == incident["service"]["summary"]:
        return AUTO_RESOLVED
    return resolver


class IncidentTransformer:
    """Turns incidents into spreadsheet rows under a compensation policy."""

    def __init__(self, policy: Optional[CompensationPolicy] = None):
        """Initialize transformer.

        Args:
            policy: Compensation policy. Defaults to the standard MST windows.
        """
        self.policy = policy or DEFAULT_POLICY

    def process_incident(self, incident: Incident) -> ProcessedRow:
        """Build the spreadsheet row for a single, non-merged incident.

        Raises:
            IncidentTransformError: If the incident is missing fields or has
                unparsable timestamps.
        """
        try:
            tz = self.policy.tz
            start = parse_timestamp(incident["created_at"], self.policy)
            end = parse_timestamp(incident["last_status_change_at"], self.policy)
            local_start = start.astimezone(tz)
            local_end = end.astimezone(tz)
            urgency = incident["urgency"]
            duration = get_incident_duration(start, end)

            return ProcessedRow(
                resolver=get_resolver(incident),
                start_date=local_start.strftime("%Y-%m-%d"),
                end_date=local_end.strftime("%Y-%m-%d"),
                urgency=get_incident_urgency(urgency),
                hours_earned=get_hours_earned(start, end, urgency, self.policy),
                start_time=local_start.strftime("%H:%M:%S"),
                end_time=local_end.strftime("%H:%M:%S"),
                duration_hours=f"{duration / 60:.2f}",
                service=incident["service"]["summary"],
                title=incident["title"],
                url=incident["html_url"],
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise IncidentTransformError(_incident_id(incident), f"{type(e).__name__}: {e}") from e

    def transform(self, incidents: Iterable[Incident]) -> list[ProcessedRow]:
        """Transform incidents into rows, skipping merged ones.

        Args:
            incidents: PagerDuty incidents in retrieval order.

        Returns:
            One row per non-merged incident, in input order.
        """
        rows = []
        merged = 0

        for incident in incidents:
            try:
                skip = is_merged(incident)
            except (TypeError, AttributeError) as e:
                raise IncidentTransformError(
                    _incident_id(incident), f"{type(e).__name__}: {e}"
                ) from e
            if skip:
                merged += 1
                continue
            rows.append(self.process_incident(incident))

        if merged:
            logger.info(f"Skipped {merged} merged incidents")
        return rows


def transform(
    incidents: Iterable[Incident], policy: Optional[CompensationPolicy] = None
) -> list[ProcessedRow]:
    """Transform incidents into rows with the given (or default) policy."""
    return IncidentTransformer(policy).transform(incidents)


def summarize_hours(rows: Iterable[ProcessedRow]) -> dict[str, int]:
    """Total the hours earned per resolver, skipping resolvers with none."""
    totals: dict[str, int] = {}
    for row in rows:
        if row.hours_earned:
            totals[row.resolver] = totals.get(row.resolver, 0) + row.hours_earned
    return totals
