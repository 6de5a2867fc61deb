"""JSON log formatting.

Each record becomes one JSON object per line, tagged with the case that
was running when it was emitted.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord carries; anything else came in through extra=
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

# Added by CaseContextFilter
_CASE_FIELDS = ("case_id", "input_file", "codec_name", "mode")
_FILTER_ATTRS = frozenset(_CASE_FIELDS) | {"case_tag"}


class JSONFormatter(logging.Formatter):
    """Format log records as JSON objects.

    Keys:
    - timestamp: ISO-8601 UTC time the record was created
    - level, logger, message
    - thread: only for records emitted off the main thread (async workers)
    - case: case_id/input_file/codec_name/mode while a case is running
    - context: attributes passed through ``extra=``
    - exception: formatted traceback, if any
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
        }
        if record.name and record.name != "root":
            entry["logger"] = record.name
        if record.threadName and record.threadName != threading.main_thread().name:
            entry["thread"] = record.threadName

        if getattr(record, "case_id", None):
            # codec_name "" means the default encoder and is kept
            entry["case"] = {
                name: getattr(record, name)
                for name in _CASE_FIELDS
                if getattr(record, name, None) is not None
            }

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
            and key not in _FILTER_ATTRS
            and not key.startswith("_")
        }
        if extra:
            entry["context"] = extra

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)
