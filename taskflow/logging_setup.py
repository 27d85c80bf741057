"""Root logger configuration."""
from __future__ import annotations

import json
import logging
import sys
from typing import Optional

from taskflow.config import settings


class JsonFormatter(logging.Formatter):
    """One JSON object per line for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


class _LibraryNoiseFilter(logging.Filter):
    """Keep taskflow logs; let third-party loggers through only at WARNING+."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith("taskflow") or record.name.startswith("uvicorn"):
            return True
        return record.levelno >= logging.WARNING


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Configure the root logger. Call once at startup."""
    level_name = (level or settings.LOG_LEVEL).upper()
    log_format = (log_format or settings.LOG_FORMAT).lower()

    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    # Remove any pre-existing handlers to avoid duplicates
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if log_format == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.addFilter(_LibraryNoiseFilter())
    root.addHandler(handler)

    logging.captureWarnings(True)
