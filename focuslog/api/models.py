"""
Pydantic models for FocusLog API request/response types.

Top-level response flags serialize in camelCase (``hasEnoughData``,
``aiEnriched``); routine and summary bodies keep the snake_case shape
they are cached in.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from focuslog.services.routine_service import RoutineOutcome
from focuslog.services.summary_service import SummaryOutcome


# =============================================================================
# Routine
# =============================================================================


class RoutineBlockModel(BaseModel):
    type: str
    start: str
    end: str
    duration_minutes: int


class SuggestedBreakModel(BaseModel):
    time: str
    duration_minutes: int


class RoutineModel(BaseModel):
    morning: list[RoutineBlockModel] = Field(default_factory=list)
    afternoon: list[RoutineBlockModel] = Field(default_factory=list)
    evening: list[RoutineBlockModel] = Field(default_factory=list)
    suggested_breaks: list[SuggestedBreakModel] = Field(default_factory=list)
    explanation: str = ""


class RoutineResponse(BaseModel):
    """Response for GET/POST /api/routine."""

    model_config = ConfigDict(populate_by_name=True)

    routine: RoutineModel | None = None
    explanation: str = ""
    has_enough_data: bool = Field(default=True, alias="hasEnoughData")
    cached: bool = False
    saved: bool = False
    ai_enriched: bool = Field(default=False, alias="aiEnriched")
    date: str | None = None
    message: str | None = None
    patterns: dict[str, Any] | None = None

    @classmethod
    def from_outcome(cls, outcome: RoutineOutcome) -> "RoutineResponse":
        data = outcome.to_dict()
        return cls(
            routine=RoutineModel.model_validate(data["routine"]) if data["routine"] else None,
            explanation=data["explanation"],
            has_enough_data=data["has_enough_data"],
            cached=data["cached"],
            saved=data["saved"],
            ai_enriched=data["ai_enriched"],
            date=data["date"],
            message=data["message"],
            patterns=data["patterns"],
        )


# =============================================================================
# Summaries and insights
# =============================================================================


class SummaryResponse(BaseModel):
    """Response for /api/summaries/*."""

    model_config = ConfigDict(populate_by_name=True)

    kind: str
    date: str | None = None
    summary: dict[str, Any] | None = None
    has_enough_data: bool = Field(default=True, alias="hasEnoughData")
    cached: bool = False
    saved: bool = False
    ai_enriched: bool = Field(default=False, alias="aiEnriched")
    message: str | None = None

    @classmethod
    def from_outcome(cls, outcome: SummaryOutcome) -> "SummaryResponse":
        return cls(**outcome.to_dict())


class FocusReportResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str
    record_count: int = Field(alias="recordCount")
    focus_score: int = Field(alias="focusScore")
    metrics: dict[str, Any]
    patterns: dict[str, Any]


# =============================================================================
# Activities
# =============================================================================


class ActivityCreate(BaseModel):
    """Request to log an activity."""

    activity: str = Field(..., min_length=1, max_length=500)
    start_time: datetime
    end_time: datetime | None = None
    category: str | None = Field(default=None, max_length=100)


class ActivityResponse(BaseModel):
    id: str | None = None
    activity: str
    start_time: str
    end_time: str | None = None
    category: str | None = None


# =============================================================================
# Health
# =============================================================================


class HealthCheck(BaseModel):
    status: str = "healthy"
    version: str
    timestamp: datetime
    ai_enabled: bool = False
