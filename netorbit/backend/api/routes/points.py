"""
api/routes/points.py

GET /api/points — retained embedding points, oldest first.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from ...vectorizer import BatchScheduler

router = APIRouter(prefix="/points", tags=["points"])


def _get_scheduler() -> BatchScheduler:
    from ..main import get_scheduler
    return get_scheduler()


@router.get("")
async def list_points(
    limit: Annotated[int | None, Query(ge=1, le=10_000)] = None,
    renderable_only: bool = False,
    scheduler: BatchScheduler = Depends(_get_scheduler),
) -> list[dict]:
    """
    Return retained points.

    ``limit`` keeps only the newest N; ``renderable_only`` drops points whose
    embedding is the NaN reset sentinel.
    """
    points = scheduler.points(limit=limit, renderable_only=renderable_only)
    return [p.to_dict() for p in points]
