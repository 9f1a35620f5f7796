"""Main entry point and orchestration for on-call documents."""

import argparse
import logging
import sys
from datetime import datetime
from typing import Optional

import pytz

from oncall import current_run_id, log_stage, setup_logging
from oncall.config import Settings, load_settings
from oncall.errors import OnCallReportError
from oncall.models import RunResult
from oncall.pagerduty import PagerDutyClient
from oncall.report import ReportWriter, resolve_since
from oncall.transformer import IncidentTransformer, summarize_hours

logger = logging.getLogger("oncall.main")


class OnCallReporter:
    """Runs the retrieve, transform and write pipeline once."""

    def __init__(self, api_key: str, settings: Optional[Settings] = None):
        """Initialize the reporter.

        Args:
            api_key: PagerDuty REST API key.
            settings: Optional settings override.
        """
        self.settings = settings or load_settings()
        self.tz = pytz.timezone(self.settings.timezone)

        self.client = PagerDutyClient(api_key, **self.settings.get_pagerduty_config())
        self.transformer = IncidentTransformer(self.settings.get_compensation_policy())
        self.writer = ReportWriter(
            output_dir=self.settings.output_dir,
            timezone=self.settings.timezone,
        )

    def run(self, since: Optional[datetime] = None, now: Optional[datetime] = None) -> RunResult:
        """Generate one report.

        Either the whole pipeline succeeds and one CSV is written, or a failed
        result names the stage that broke and nothing is written.

        Args:
            since: Start of the reporting window. Defaults to the timestamp
                of the last report, or the configured lookback.
            now: Current moment, used for the report name.

        Returns:
            RunResult describing the outcome.
        """
        now = (now or datetime.now(pytz.utc)).astimezone(self.tz)
        run_id_token = current_run_id.set(now.strftime("%Y%m%dT%H%M%S"))

        try:
            if since is None:
                try:
                    with log_stage("resume"):
                        since = resolve_since(
                            self.settings.output_dir,
                            lookback_days=self.settings.lookback_days,
                            now=now,
                            timezone=self.settings.timezone,
                        )
                except OSError as e:
                    logger.error(f"Could not read report directory: {e}")
                    return RunResult(success=False, stage="resume", error=str(e))

            logger.info(f"Getting incidents since {since.isoformat()}")
            incidents: list = []
            try:
                with log_stage("retrieve"):
                    incidents = self.client.fetch_all_incidents(since)
                with log_stage("transform"):
                    rows = self.transformer.transform(incidents)
                with log_stage("write"):
                    path = self.writer.write_report(rows, now=now)
            except OnCallReportError as e:
                logger.error(f"Report run failed during {e.stage}: {e}")
                return RunResult(
                    success=False,
                    since=since,
                    incidents_fetched=len(incidents),
                    stage=e.stage,
                    error=str(e),
                )

            for resolver, hours in sorted(summarize_hours(rows).items()):
                logger.info(f"{resolver}: {hours} hours earned")

            return RunResult(
                success=True,
                since=since,
                output_path=path,
                incidents_fetched=len(incidents),
                rows_written=len(rows),
            )
        finally:
            current_run_id.reset(run_id_token)

    def close(self) -> None:
        """Clean up resources."""
        if hasattr(self, "client"):
            self.client.close()

    def __enter__(self) -> "OnCallReporter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _parse_date(value: str) -> datetime:
    """Parse a --since value in YYYY-MM-DD format."""
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="oncall-documents",
        description="Generate the weekly on-call spreadsheet from PagerDuty incidents",
    )
    parser.add_argument(
        "api_key",
        help="Your PagerDuty API key",
    )
    parser.add_argument(
        "--since",
        type=_parse_date,
        help="Fetch incidents since this date (YYYY-MM-DD) instead of the last report",
    )
    parser.add_argument(
        "--output-dir",
        help="Directory holding generated reports",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    settings = load_settings()
    if args.output_dir:
        settings.output_dir = args.output_dir
    log_level = "DEBUG" if args.debug else settings.log_level
    setup_logging(log_level, log_format=settings.log_format, timezone=settings.timezone)

    since = None
    if args.since:
        since = pytz.timezone(settings.timezone).localize(args.since)

    with OnCallReporter(args.api_key, settings) as reporter:
        result = reporter.run(since=since)

    if not result.success:
        logger.error(f"No report generated ({result.stage}): {result.error}")
        sys.exit(1)

    logger.info(
        f"Wrote {result.rows_written} rows to {result.output_path}",
        extra={"report_path": result.output_path},
    )


if __name__ == "__main__":
    main()
