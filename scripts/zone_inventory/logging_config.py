"""JSON-lines logging for inventory runs.

Every record under the ``zone_inventory`` logger becomes one JSON object on
stderr, stamped with the time the event happened. Account, zone and page
context passed through ``extra=`` is copied into the object so a failed
account or zone can be found with a plain ``jq`` filter.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

LOGGER_NAME = "zone_inventory"

# Context attached through ``extra=`` by the aggregator, orchestrator and sinks.
CONTEXT_FIELDS = (
    "tenant",
    "zone",
    "page",
    "rows",
    "zones",
    "duration_s",
    "processed",
    "configured",
)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (name, getattr(record, name))
            for name in CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        )
        if record.exc_info and record.exc_info[1] is not None:
            entry["error_type"] = type(record.exc_info[1]).__name__
            entry["exception"] = self.formatException(record.exc_info)
        # Non-ASCII zone names (IDNs in U-label form) stay readable.
        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging(level: str = "INFO") -> None:
    """Send the inventory's log records to stderr, one JSON object per line.

    Calling it again replaces the handler, so the CLI and the Lambda handler
    can both call it in one process.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False
