"""Structured JSON logging callback for request lifecycle events."""

import json
import logging
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger("postline.audit")


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class LoggingCallback:
    """Emits one JSON log line per lifecycle event.

    Each line is a self-contained JSON object with ``event``, ``ts`` and the
    event's fields. Failures log at WARNING, everything else at INFO.
    Logger name: postline.audit (configure in your logging setup)

        runner = RequestRunner(..., callbacks=[LoggingCallback()])
    """

    async def __call__(self, event: str, data: dict[str, Any]) -> None:
        record = {"event": event, "ts": _now(), **{
            k: (str(v)[:200] if not isinstance(v, (int, float, bool, type(None))) else v)
            for k, v in data.items()
        }}
        if event == "request_failed":
            logger.warning(json.dumps(record))
        else:
            logger.info(json.dumps(record))
