"""
api/routes/config.py

GET /api/config  — current vectorizer + universe tunables
PUT /api/config  — update runtime tunables (vectorizer: next record,
                   universe: next snapshot)

The whole update is validated before anything is applied, so a request that
is half valid changes nothing.  Rejections come back as HTTP 422.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from ...config import ConfigError
from ...universe import UniverseAggregator
from ...vectorizer import BatchScheduler
from ..serializers import ConfigResponse, ConfigUpdateRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/config", tags=["config"])


def _get_scheduler() -> BatchScheduler:
    from ..main import get_scheduler
    return get_scheduler()


def _get_universe() -> UniverseAggregator:
    from ..main import get_universe
    return get_universe()


def _current(scheduler: BatchScheduler, universe: UniverseAggregator) -> ConfigResponse:
    vec = scheduler.state.config
    return ConfigResponse(
        **vec.model_dump(exclude={"pca_learning_rate", "hash_seed"}),
        **universe.config.model_dump(),
    )


@router.get("", response_model=ConfigResponse)
async def read_config(
    scheduler: BatchScheduler = Depends(_get_scheduler),
    universe: UniverseAggregator = Depends(_get_universe),
) -> ConfigResponse:
    return _current(scheduler, universe)


@router.put("", response_model=ConfigResponse)
async def update_config(
    update: ConfigUpdateRequest,
    scheduler: BatchScheduler = Depends(_get_scheduler),
    universe: UniverseAggregator = Depends(_get_universe),
) -> ConfigResponse:
    """Only provided fields change; others keep their current value."""
    vec_patch, uni_patch = update.split()
    try:
        scheduler.state.config.merged(vec_patch)
        universe.config.merged(uni_patch)
    except ConfigError as exc:
        logger.warning("Config update rejected: %s", exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    if vec_patch:
        scheduler.state.apply_config(vec_patch)
    if uni_patch:
        universe.set_config(**uni_patch)
    return _current(scheduler, universe)
