"""
Routine Route - Suggested daily routine

Provides endpoints for the routine state machine:
- GET today's (or yesterday's) cached routine
- POST to generate, with caching and a rolling-hour generation cap
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from focuslog.api.deps import get_routine_service, get_user_id
from focuslog.api.models import RoutineResponse
from focuslog.services.common import StorageMisconfiguredError
from focuslog.services.routine_service import RoutineRateLimitError, RoutineService
from focuslog.storage.base import StorageError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=RoutineResponse)
async def get_routine(
    user_id: str = Depends(get_user_id),
    service: RoutineService = Depends(get_routine_service),
):
    """Return the cached routine, or ``routine: null`` if none exists yet."""
    try:
        outcome = await service.get_cached_routine(user_id)
    except StorageError as e:
        logger.error(f"Failed to read routine cache: {e}")
        raise HTTPException(status_code=500, detail="Failed to read routine")

    if outcome is None:
        return RoutineResponse(routine=None, has_enough_data=False)
    return RoutineResponse.from_outcome(outcome)


@router.post("", response_model=RoutineResponse)
async def generate_routine(
    force: bool = Query(False, description="Skip today's cache and the recency window"),
    user_id: str = Depends(get_user_id),
    service: RoutineService = Depends(get_routine_service),
):
    """Generate (or serve) today's routine."""
    try:
        outcome = await service.generate_routine(user_id, force=force)
    except RoutineRateLimitError as e:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=str(e),
            headers={"Retry-After": str(e.retry_after_seconds)},
        )
    except StorageMisconfiguredError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except StorageError as e:
        logger.error(f"Routine generation failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate routine")

    return RoutineResponse.from_outcome(outcome)
