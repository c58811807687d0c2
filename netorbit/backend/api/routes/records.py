"""
api/routes/records.py

POST /api/records — ingestion endpoint for the capture side.

Accepts a single record object or a JSON array of them.  Each record is
parsed best-effort, queued for the vectorizer and accounted in the universe
straight away.  Records without a usable URL are counted as rejected; the
request itself never fails because of one bad record.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends

from ...ingest import TRAFFIC_LOG, parse_record
from ...universe import UniverseAggregator
from ...vectorizer import BatchScheduler
from ..serializers import IngestResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/records", tags=["records"])


def _get_scheduler() -> BatchScheduler:
    from ..main import get_scheduler
    return get_scheduler()


def _get_universe() -> UniverseAggregator:
    from ..main import get_universe
    return get_universe()


@router.post("", response_model=IngestResponse)
async def ingest_records(
    payload: Annotated[dict[str, Any] | list[Any], Body()],
    scheduler: BatchScheduler = Depends(_get_scheduler),
    universe: UniverseAggregator = Depends(_get_universe),
) -> IngestResponse:
    """Queue records for embedding and add them to the universe."""
    raw_records = payload if isinstance(payload, list) else [payload]
    accepted = rejected = 0
    for raw in raw_records:
        record = parse_record(raw)
        if record is None:
            rejected += 1
            continue
        TRAFFIC_LOG.add(record)
        universe.add_packet(record)
        if scheduler.enqueue(record):
            accepted += 1
        else:
            rejected += 1

    if rejected:
        logger.info("Ingest: accepted=%d rejected=%d", accepted, rejected)
    return IngestResponse(
        accepted=accepted,
        rejected=rejected,
        queue_depth=scheduler.queue_depth,
    )
