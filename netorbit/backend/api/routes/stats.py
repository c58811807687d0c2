"""
api/routes/stats.py

GET /api/stats — live counters from ingestion, scheduler, universe and the
pipeline state, plus the most recent records and the per-second traffic
history.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ...ingest import TRAFFIC_LOG
from ...metrics import METRICS
from ...universe import UniverseAggregator
from ...vectorizer import BatchScheduler
from ..serializers import StatsResponse

router = APIRouter(prefix="/stats", tags=["stats"])


def _get_scheduler() -> BatchScheduler:
    from ..main import get_scheduler
    return get_scheduler()


def _get_universe() -> UniverseAggregator:
    from ..main import get_universe
    return get_universe()


@router.get("", response_model=StatsResponse)
async def get_stats(
    scheduler: BatchScheduler = Depends(_get_scheduler),
    universe: UniverseAggregator = Depends(_get_universe),
) -> StatsResponse:
    return StatsResponse(
        metrics=METRICS.as_dict(),
        scheduler=dict(scheduler.stats),
        universe=dict(universe.stats),
        pipeline=scheduler.state.summary(),
        recent=TRAFFIC_LOG.recent(),
        history=TRAFFIC_LOG.history(),
    )
