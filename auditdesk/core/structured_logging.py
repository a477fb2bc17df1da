"""Small structured logging helper.

Everything logs single-line JSON strings so the output can be consumed by any
log collector without extra dependencies.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from auditdesk.core.request_context import get_request_id


def log_json(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """Emit a single JSON log line with the current request correlation ID."""

    payload: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "event": event,
    }
    request_id = get_request_id()
    if request_id:
        payload["request_id"] = request_id

    payload.update(fields)
    logger.log(level, json.dumps(payload, default=str))
