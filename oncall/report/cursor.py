"""Resume cursor: derive the next run's start date from existing reports."""

import logging
import os
import re
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Union

import pytz

from oncall.report.writer import REPORT_SUFFIX, TIMESTAMP_FORMAT

logger = logging.getLogger("oncall.report.cursor")

REPORT_PATTERN = re.compile(
    r"^(\d{4}-\d{2}-\d{2}_\d{2}:\d{2}:\d{2})" + re.escape(REPORT_SUFFIX) + "$"
)

FileLister = Callable[[Path], Iterable[str]]


def list_report_dir(directory: Path) -> list[str]:
    """List file names in a report directory. A missing directory is empty."""
    try:
        return os.listdir(directory)
    except FileNotFoundError:
        return []


def get_last_run_marker(
    directory: Union[str, Path],
    list_files: Optional[FileLister] = None,
    timezone: str = "MST",
) -> Optional[datetime]:
    """Get the timestamp of the most recent report in a directory.

    Report names embed a zero-padded timestamp, so the lexicographically
    greatest name is the latest report. Names that are not reports are ignored.

    Args:
        directory: Report directory.
        list_files: Callable returning file names in the directory.
        timezone: Timezone the file name timestamps are in.

    Returns:
        Aware datetime of the latest report, or None if there is none.
    """
    lister = list_files or list_report_dir
    stamps = sorted(
        match.group(1)
        for match in (REPORT_PATTERN.match(name) for name in lister(Path(directory)))
        if match
    )
    if not stamps:
        return None

    latest = datetime.strptime(stamps[-1], TIMESTAMP_FORMAT)
    return pytz.timezone(timezone).localize(latest)


def resolve_since(
    directory: Union[str, Path],
    lookback_days: int = 7,
    now: Optional[datetime] = None,
    list_files: Optional[FileLister] = None,
    timezone: str = "MST",
) -> datetime:
    """Get the start of the reporting window.

    Args:
        directory: Report directory.
        lookback_days: Window length when no previous report exists.
        now: Current moment. Defaults to the current time.
        list_files: Callable returning file names in the directory.
        timezone: Timezone of report timestamps.

    Returns:
        The last report's timestamp, or now minus lookback_days.
    """
    marker = get_last_run_marker(directory, list_files=list_files, timezone=timezone)
    if marker is not None:
        logger.info(f"Resuming from last report at {marker.isoformat()}")
        return marker

    now = now or datetime.now(pytz.timezone(timezone))
    logger.info(f"No previous report found, looking back {lookback_days} days")
    return now - timedelta(days=lookback_days)
