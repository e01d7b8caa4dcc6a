"""
Helpers for reading telemetry batch bodies posted to the ingestion endpoint.
A body is either one JSON object or a JSON array of messages.
"""

import json
from typing import Any, Optional


def safe_parse_json(raw_body: bytes) -> Optional[Any]:
    """Parse JSON bytes safely. Returns None on error."""
    try:
        return json.loads(raw_body.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def as_batch(data: Any) -> list:
    """A JSON array is already a batch; anything else is a batch of one."""
    if isinstance(data, list):
        return data
    return [data]
