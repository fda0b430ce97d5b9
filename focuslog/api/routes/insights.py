"""
Insights Route - Deterministic focus report and activity logging

- GET /insights/focus: metrics, score and patterns for one day (no AI)
- POST /insights/activities: log an activity record
"""

import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status

from focuslog.api.deps import get_store, get_summary_service, get_user_id
from focuslog.api.models import ActivityCreate, ActivityResponse, FocusReportResponse
from focuslog.insights.models import ActivityRecord, Category
from focuslog.services.common import StorageMisconfiguredError
from focuslog.services.summary_service import SummaryService
from focuslog.storage.base import RecordStore, StorageError

logger = logging.getLogger(__name__)

router = APIRouter()


def _local_naive(moment: datetime | None) -> datetime | None:
    """Stored timestamps are naive local time."""
    if moment is None or moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)


@router.get("/focus", response_model=FocusReportResponse)
async def get_focus_report(
    day: date | None = Query(None, alias="date"),
    user_id: str = Depends(get_user_id),
    service: SummaryService = Depends(get_summary_service),
):
    try:
        report = await service.focus_report(user_id, day)
    except StorageMisconfiguredError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except StorageError as e:
        logger.error(f"Focus report failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to build focus report")

    return FocusReportResponse(**report)


@router.post("/activities", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
async def create_activity(
    request: ActivityCreate,
    user_id: str = Depends(get_user_id),
    store: RecordStore = Depends(get_store),
):
    start_time = _local_naive(request.start_time)
    end_time = _local_naive(request.end_time)
    if end_time is not None and end_time < start_time:
        raise HTTPException(status_code=422, detail="end_time must not precede start_time")

    record = ActivityRecord(
        activity=request.activity,
        start_time=start_time,
        end_time=end_time,
        category=Category.from_raw(request.category),
    )
    try:
        saved = await store.add_record(user_id, record)
    except StorageError as e:
        logger.error(f"Failed to save activity: {e}")
        raise HTTPException(status_code=500, detail="Failed to save activity")

    return ActivityResponse(**saved.to_dict())
