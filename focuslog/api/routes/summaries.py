"""
Summaries Route - Daily, weekly and monthly roll-ups

GET reads the cache only. POST generates (cache-first unless ``force``).
The ``date`` parameter is any day inside the period; weekly and monthly
summaries are keyed by the Monday / first of the month.
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from focuslog.api.deps import get_summary_service, get_user_id
from focuslog.api.models import SummaryResponse
from focuslog.services.common import StorageMisconfiguredError
from focuslog.services.summary_service import SummaryService
from focuslog.storage.base import CacheKind, StorageError

logger = logging.getLogger(__name__)

router = APIRouter()

PERIODS = {
    "daily": CacheKind.DAILY,
    "weekly": CacheKind.WEEKLY,
    "monthly": CacheKind.MONTHLY,
}


def _kind(period: str) -> CacheKind:
    if period not in PERIODS:
        raise HTTPException(status_code=404, detail=f"Unknown summary period: {period}")
    return PERIODS[period]


@router.get("/{period}", response_model=SummaryResponse)
async def get_summary(
    period: str,
    day: date | None = Query(None, alias="date"),
    user_id: str = Depends(get_user_id),
    service: SummaryService = Depends(get_summary_service),
):
    kind = _kind(period)
    try:
        outcome = await service.get_cached_summary(user_id, kind, day)
    except StorageError as e:
        logger.error(f"Failed to read {period} summary: {e}")
        raise HTTPException(status_code=500, detail="Failed to read summary")

    if outcome is None:
        return SummaryResponse(
            kind=kind.value,
            date=service.cache_key(kind, day).isoformat(),
            has_enough_data=False,
        )
    return SummaryResponse.from_outcome(outcome)


@router.post("/{period}", response_model=SummaryResponse)
async def generate_summary(
    period: str,
    day: date | None = Query(None, alias="date"),
    force: bool = Query(False),
    user_id: str = Depends(get_user_id),
    service: SummaryService = Depends(get_summary_service),
):
    kind = _kind(period)
    try:
        if kind == CacheKind.DAILY:
            outcome = await service.daily_summary(user_id, day, force=force)
        elif kind == CacheKind.WEEKLY:
            outcome = await service.weekly_summary(user_id, day, force=force)
        else:
            outcome = await service.monthly_summary(user_id, day, force=force)
    except StorageMisconfiguredError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except StorageError as e:
        logger.error(f"{period} summary generation failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate summary")

    return SummaryResponse.from_outcome(outcome)
