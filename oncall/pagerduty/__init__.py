"""PagerDuty API access."""

from oncall.pagerduty.client import PagerDutyClient, fetch_all_incidents

__all__ = ["PagerDutyClient", "fetch_all_incidents"]
