"""CSV report writer."""

import csv
import logging
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Optional

import pytz

from oncall.errors import ReportWriteError
from oncall.models import ProcessedRow

logger = logging.getLogger("oncall.report.writer")

TIMESTAMP_FORMAT = "%Y-%m-%d_%H:%M:%S"
REPORT_SUFFIX = "-incidents.csv"


def report_filename(moment: datetime) -> str:
    """Get the report file name for a moment, e.g. 2024-01-08_09:30:00-incidents.csv."""
    return f"{moment.strftime(TIMESTAMP_FORMAT)}{REPORT_SUFFIX}"


class ReportWriter:
    """Writes processed rows to a timestamped CSV file."""

    def __init__(self, output_dir: str = "./output", timezone: str = "MST"):
        """Initialize report writer.

        Args:
            output_dir: Directory to write reports into.
            timezone: Timezone the file name timestamp is taken in.
        """
        self.output_dir = Path(output_dir)
        self.timezone = pytz.timezone(timezone)

    def write_report(self, rows: Iterable[ProcessedRow], now: Optional[datetime] = None) -> Path:
        """Write rows to a new report file.

        The file has no header row. An existing file is never overwritten.

        Args:
            rows: Rows to write, in order.
            now: Moment used for the file name. Defaults to the current time.

        Returns:
            Path of the new report.

        Raises:
            ReportWriteError: If the directory or file cannot be written, or
                a report with the same timestamp already exists.
        """
        moment = (now or datetime.now(pytz.utc)).astimezone(self.timezone)
        path = self.output_dir / report_filename(moment)

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            f = open(path, "x", newline="", encoding="utf-8")
        except FileExistsError as e:
            raise ReportWriteError(f"Report already exists: {path}") from e
        except OSError as e:
            raise ReportWriteError(f"Failed to create report {path}: {e}") from e

        count = 0
        try:
            with f:
                writer = csv.writer(f)
                for row in rows:
                    writer.writerow(row.as_csv_row())
                    count += 1
        except OSError as e:
            # Runs leave a complete report or none
            path.unlink(missing_ok=True)
            raise ReportWriteError(f"Failed to write report {path}: {e}") from e

        logger.info(f"Generated new csv: {path} ({count} rows)", extra={"report_path": path})
        return path
