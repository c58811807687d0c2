"""
ingest/parser.py

Converts one raw record from the capture side (browser extension JSON,
camelCase keys) into a typed TrafficRecord dataclass.

Design principles:
  - Synchronous and fast — no I/O, no blocking calls.
  - Best-effort: missing or garbled optional fields fall back to defaults.
    Only a record with no usable ``url`` is rejected (returns None), so the
    caller can count it and move on.  Nothing here raises on bad input.
  - ``tabId`` of -1 (the browser's "no tab" sentinel) or any negative value
    becomes None, marking the record as unassociated traffic.

Accepted input shape:
    {requestId, url, method, statusCode, type, tabId, timeStamp,
     requestHeadersSize, responseHeadersSize, responseHeaders: [{name, value}],
     latencyMs, requestContentLength, responseContentLength}
"""

from __future__ import annotations

import logging
import math
import uuid
from typing import Any, Mapping

from ..metrics import METRICS
from ..models import TrafficRecord

logger = logging.getLogger(__name__)


def _as_int(value: Any, default: int = 0) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return n


def _as_float(value: Any) -> float | None:
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def _parse_tab_id(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    tab = _as_int(value, default=-1)
    return tab if tab >= 0 else None


def _parse_headers(raw: Any) -> list[tuple[str, str]]:
    """Accept [{name, value}], [[name, value]] or {name: value}; skip the rest."""
    if isinstance(raw, Mapping):
        items = [{"name": k, "value": v} for k, v in raw.items()]
    elif isinstance(raw, (list, tuple)):
        items = raw
    else:
        return []

    headers: list[tuple[str, str]] = []
    for item in items:
        if isinstance(item, Mapping):
            name, value = item.get("name"), item.get("value")
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            name, value = item
        else:
            continue
        if not isinstance(name, str) or not name:
            continue
        headers.append((name, "" if value is None else str(value)))
    return headers


def parse_record(raw: Mapping[str, Any]) -> TrafficRecord | None:
    """
    Parse a capture-side record into a TrafficRecord.

    Returns:
        TrafficRecord on success, None if the record has no usable URL.
    """
    METRICS.records_received.inc()
    if not isinstance(raw, Mapping):
        METRICS.records_parse_error.inc()
        logger.debug("Rejected record of type %s", type(raw).__name__)
        return None

    url = raw.get("url")
    if not isinstance(url, str) or not url:
        METRICS.records_parse_error.inc()
        logger.debug("Rejected record without url: %r", raw.get("requestId"))
        return None

    request_id = raw.get("requestId")
    method = raw.get("method")
    rtype = raw.get("type")
    timestamp = _as_float(raw.get("timeStamp"))

    record = TrafficRecord(
        request_id=str(request_id) if request_id is not None else uuid.uuid4().hex,
        url=url,
        method=method if isinstance(method, str) and method else "GET",
        status_code=_as_int(raw.get("statusCode")),
        type=rtype if isinstance(rtype, str) and rtype else "other",
        tab_id=_parse_tab_id(raw.get("tabId")),
        timestamp=timestamp if timestamp is not None else 0.0,
        request_headers_size=max(0, _as_int(raw.get("requestHeadersSize"))),
        response_headers_size=max(0, _as_int(raw.get("responseHeadersSize"))),
        request_content_length=max(0, _as_int(raw.get("requestContentLength"))),
        response_content_length=max(0, _as_int(raw.get("responseContentLength"))),
        latency_ms=_as_float(raw.get("latencyMs")),
        response_headers=_parse_headers(raw.get("responseHeaders")),
    )
    METRICS.bytes_out.inc(record.request_headers_size)
    METRICS.bytes_in.inc(record.response_headers_size)
    return record
