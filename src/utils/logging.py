"""Structured JSON logging configuration."""

import json
import logging
from datetime import datetime, timezone
from typing import Dict, Any

# Attributes every LogRecord carries; anything else arrived through `extra`
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {'message', 'asctime'}


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not callable(value)
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record: time, level, logger, message, then extras."""

    def format(self, record: logging.LogRecord) -> str:
        emitted_at = datetime.fromtimestamp(record.created, timezone.utc)
        log_data: Dict[str, Any] = {
            "timestamp": emitted_at.isoformat().replace('+00:00', 'Z'),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        log_data.update(_extra_fields(record))
        return json.dumps(log_data, default=str)


def setup_structured_logging(level: str = 'INFO'):
    """Route the root logger and uvicorn access logs through JSONFormatter.

    pymongo and uvicorn.access only emit warnings and above.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    for name in ('pymongo', 'uvicorn.access'):
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger('uvicorn.access').handlers = [handler]
