"""Logging for report runs.

Every record carries the run id (the report timestamp) and the pipeline stage
it was emitted from, and is stamped in the reference timezone so log lines
line up with report file names.
"""

import contextvars
import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

import pytz

current_run_id: contextvars.ContextVar[str] = contextvars.ContextVar(
    "current_run_id", default="-"
)
current_stage: contextvars.ContextVar[str] = contextvars.ContextVar(
    "current_stage", default="-"
)

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | run=%(run_id)s stage=%(stage)s | %(message)s"


@contextmanager
def log_stage(stage: str) -> Iterator[None]:
    """Tag log records emitted inside the block with a pipeline stage."""
    token = current_stage.set(stage)
    try:
        yield
    finally:
        current_stage.reset(token)


class RunContextFilter(logging.Filter):
    """Injects run_id and stage from contextvars into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = current_run_id.get("-")
        record.stage = current_stage.get("-")
        return True


class ReferenceTimeFormatter(logging.Formatter):
    """Formatter that renders record times in a fixed timezone."""

    def __init__(self, fmt: Optional[str] = None, timezone: str = "MST"):
        super().__init__(fmt=fmt)
        self.tz = pytz.timezone(timezone)

    def record_time(self, record: logging.LogRecord) -> datetime:
        return datetime.fromtimestamp(record.created, tz=pytz.utc).astimezone(self.tz)

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        return self.record_time(record).strftime(datefmt or "%Y-%m-%d %H:%M:%S %Z")


class JSONFormatter(ReferenceTimeFormatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.record_time(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "run_id": getattr(record, "run_id", "-"),
            "stage": getattr(record, "stage", "-"),
            "message": record.getMessage(),
        }
        report_path = getattr(record, "report_path", None)
        if report_path:
            log_entry["report_path"] = str(report_path)
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def setup_logging(
    level: Optional[str] = None, log_format: str = "text", timezone: str = "MST"
) -> logging.Logger:
    """Configure the 'oncall' logger.

    Args:
        level: Log level name. Unknown or missing names fall back to INFO.
        log_format: 'text' for human-readable lines, 'json' for structured.
        timezone: Timezone log timestamps are rendered in.

    Returns:
        Configured logger instance.
    """
    log_level = getattr(logging, (level or "INFO").upper(), logging.INFO)

    if log_format == "json":
        formatter: logging.Formatter = JSONFormatter(timezone=timezone)
    else:
        formatter = ReferenceTimeFormatter(fmt=TEXT_FORMAT, timezone=timezone)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(RunContextFilter())

    logger = logging.getLogger("oncall")
    logger.setLevel(log_level)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False

    return logger
