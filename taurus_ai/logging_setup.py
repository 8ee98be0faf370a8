"""Logging configuration shared by the HTTP app and the stdio tool server."""

from __future__ import annotations

import json
import logging
import sys
from typing import Optional, TextIO

from taurus_ai.config import TaurusConfig, default_config

EXTRA_FIELDS = ("tool", "request_id", "session_id", "error")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "message": record.getMessage(),
            "name": record.name,
        }
        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(config: TaurusConfig = default_config, *, stream: Optional[TextIO] = None) -> None:
    """
    Install the root handler once, using JSON or plain formatting.

    The stdio transport passes ``sys.stderr`` so stdout stays reserved for
    protocol lines.
    """
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    handler = logging.StreamHandler(stream or sys.stderr)
    if config.log_format.lower() == "json":
        handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=level, handlers=[handler])
