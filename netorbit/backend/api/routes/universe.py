"""
api/routes/universe.py

GET /api/universe — current UniverseState (pruned, then coagulated).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ...universe import UniverseAggregator

router = APIRouter(prefix="/universe", tags=["universe"])


def _get_universe() -> UniverseAggregator:
    from ..main import get_universe
    return get_universe()


@router.get("")
async def read_universe(
    universe: UniverseAggregator = Depends(_get_universe),
) -> dict:
    return universe.get_state().to_dict()
