"""On-call documents - PagerDuty incidents to on-call compensation spreadsheets."""

from oncall.logs import (
    JSONFormatter,
    RunContextFilter,
    current_run_id,
    current_stage,
    log_stage,
    setup_logging,
)

__version__ = "0.1.0"
__all__ = [
    "setup_logging",
    "log_stage",
    "current_run_id",
    "current_stage",
    "RunContextFilter",
    "JSONFormatter",
    "__version__",
]
