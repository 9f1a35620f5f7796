"""Report files: writing new reports and locating the last one."""

from oncall.report.cursor import get_last_run_marker, resolve_since
from oncall.report.writer import ReportWriter, report_filename

__all__ = ["ReportWriter", "report_filename", "get_last_run_marker", "resolve_since"]
