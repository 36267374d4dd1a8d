"""Configure application logging using the Python standard library.

Log records are rendered as one JSON object per line with the fields
``timestamp``, ``level``, ``module`` and ``message``; anything passed
as ``extra={"extra": {...}}`` is merged into the top level.  The
console handler writes to stderr so the interactive prompts on stdout
stay readable.  A rotating file handler is added only when a log
directory is configured.
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from typing import Optional

LOG_FILE_NAME = "cardpay.log"


class JsonFormatter(logging.Formatter):
    """Format log records as JSON strings."""

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "module": record.module,
            "message": record.getMessage(),
        }
        extra = getattr(record, "extra", None)
        # Merge extra dict into top level (avoid nested 'extra')
        if isinstance(extra, dict):
            log_record.update(extra)
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record, default=str)


def configure_logging(log_dir: Optional[str] = None, level: int = logging.WARNING) -> None:
    """Configure the root logger with JSON formatting.

    Args:
        log_dir: Directory for a rotating ``cardpay.log``.  Created if
            missing.  When None only the stderr handler is installed.
        level: Logging level for the root logger and its handlers.
    """
    logger = logging.getLogger()
    logger.setLevel(level)
    # Remove any default handlers (e.g. from basicConfig)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    formatter = JsonFormatter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=os.path.join(log_dir, LOG_FILE_NAME),
            maxBytes=5 * 1024 * 1024,  # 5 MB per log file
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)
