"""
Insight Data Structures

Value objects flowing through the analytics pipeline:

    ActivityRecord -> FocusMetrics -> FocusPatterns -> RoutineRecommendation

Records are validated once at the store boundary (``ActivityRecord.from_dict``)
so the core never handles loosely-shaped rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


DEFAULT_CATEGORY_NAME = "Other"


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string or pass a datetime through. None stays None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    raise ValueError(f"Unsupported timestamp value: {value!r}")


class EnergyLevel(StrEnum):
    """Qualitative energy for a third of the day."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class BlockType(StrEnum):
    """Kinds of blocks a routine can schedule."""

    DEEP_WORK = "deep_work"
    SHALLOW_WORK = "shallow_work"
    ADMIN = "admin"
    BREAK = "break"
    LEARNING = "learning"
    MEETING = "meeting"


class DistractionKind(StrEnum):
    BREAK = "break"
    WASTE = "waste"


# =============================================================================
# Input records
# =============================================================================


@dataclass(frozen=True)
class Category:
    """Semantic label attached to an activity."""

    name: str
    id: str | None = None

    @classmethod
    def from_raw(cls, raw: Any) -> Category | None:
        """
        Normalize the shapes a store may return for a category join.

        Accepts a dict with a ``name``, a list of such dicts (first wins),
        a bare string, or nothing.
        """
        if raw is None:
            return None
        if isinstance(raw, Category):
            return raw
        if isinstance(raw, list):
            return cls.from_raw(raw[0]) if raw else None
        if isinstance(raw, str):
            return cls(name=raw) if raw.strip() else None
        if isinstance(raw, dict):
            name = raw.get("name")
            if not isinstance(name, str) or not name.strip():
                return None
            raw_id = raw.get("id")
            return cls(name=name, id=str(raw_id) if raw_id is not None else None)
        raise ValueError(f"Unsupported category value: {raw!r}")


@dataclass(frozen=True)
class ActivityRecord:
    """A single logged activity. Immutable once fetched."""

    activity: str
    start_time: datetime
    end_time: datetime | None = None
    category: Category | None = None
    id: str | None = None

    @property
    def category_name(self) -> str:
        return self.category.name if self.category else DEFAULT_CATEGORY_NAME

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def effective_end(self, now: datetime | None = None) -> datetime:
        """End time, or ``now`` for an ongoing activity."""
        if self.end_time is not None:
            return self.end_time
        return now or datetime.now(tz=self.start_time.tzinfo)

    def duration_minutes(self, now: datetime | None = None) -> int:
        seconds = (self.effective_end(now) - self.start_time).total_seconds()
        return max(0, int(seconds // 60))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "activity": self.activity,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "category": self.category.name if self.category else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ActivityRecord:
        """
        Build a record from a store row.

        The category may arrive as ``categories`` (joined object or list)
        or as a flat ``category`` / ``category_name`` string.

        Raises:
            ValueError: If ``start_time`` is missing or unparseable
        """
        start_time = parse_timestamp(data.get("start_time"))
        if start_time is None:
            raise ValueError("Activity record is missing start_time")

        raw_category = data.get("categories")
        if raw_category is None:
            raw_category = data.get("category") or data.get("category_name")

        record_id = data.get("id")
        return cls(
            activity=str(data.get("activity") or ""),
            start_time=start_time,
            end_time=parse_timestamp(data.get("end_time")),
            category=Category.from_raw(raw_category),
            id=str(record_id) if record_id is not None else None,
        )


# =============================================================================
# Metrics
# =============================================================================


@dataclass
class FocusMetrics:
    """Quantitative focus metrics. All durations in minutes."""

    total_work_time: int = 0
    deep_work_time: int = 0
    context_switches: int = 0
    longest_work_block: int = 0
    average_block_duration: float = 0.0
    break_frequency: float = 0.0  # breaks per hour of work
    idle_gaps: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_work_time": self.total_work_time,
            "deep_work_time": self.deep_work_time,
            "context_switches": self.context_switches,
            "longest_work_block": self.longest_work_block,
            "average_block_duration": self.average_block_duration,
            "break_frequency": self.break_frequency,
            "idle_gaps": self.idle_gaps,
        }


# =============================================================================
# Patterns
# =============================================================================


@dataclass
class PeakHour:
    hour: int  # 0-23
    productive_minutes: int
    total_minutes: int
    efficiency: float  # 0-1

    def to_dict(self) -> dict[str, Any]:
        return {
            "hour": self.hour,
            "productive_minutes": self.productive_minutes,
            "total_minutes": self.total_minutes,
            "efficiency": round(self.efficiency, 3),
        }


@dataclass
class DeepWorkWindow:
    start: datetime
    end: datetime
    duration_minutes: int
    category: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "duration_minutes": self.duration_minutes,
            "category": self.category,
        }


@dataclass
class DistractionWindow:
    start: datetime
    end: datetime
    duration_minutes: int
    kind: DistractionKind
    record_count: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "duration_minutes": self.duration_minutes,
            "kind": self.kind.value,
            "record_count": self.record_count,
        }


@dataclass
class EnergyCurve:
    morning: EnergyLevel = EnergyLevel.MEDIUM
    afternoon: EnergyLevel = EnergyLevel.MEDIUM
    evening: EnergyLevel = EnergyLevel.MEDIUM
    scores: dict[str, int] = field(default_factory=dict)  # 0-100 per day part

    def to_dict(self) -> dict[str, Any]:
        return {
            "morning": self.morning.value,
            "afternoon": self.afternoon.value,
            "evening": self.evening.value,
            "scores": dict(self.scores),
        }


@dataclass
class FocusPatterns:
    peak_hours: list[PeakHour] = field(default_factory=list)
    deep_work_windows: list[DeepWorkWindow] = field(default_factory=list)
    distraction_windows: list[DistractionWindow] = field(default_factory=list)
    energy_curve: EnergyCurve = field(default_factory=EnergyCurve)

    @property
    def is_empty(self) -> bool:
        return not (self.peak_hours or self.deep_work_windows or self.distraction_windows)

    def to_dict(self) -> dict[str, Any]:
        return {
            "peak_hours": [p.to_dict() for p in self.peak_hours],
            "deep_work_windows": [w.to_dict() for w in self.deep_work_windows],
            "distraction_windows": [w.to_dict() for w in self.distraction_windows],
            "energy_curve": self.energy_curve.to_dict(),
        }


# =============================================================================
# Routine
# =============================================================================


@dataclass
class RoutineBlock:
    type: BlockType
    start: str  # "HH:MM"
    end: str  # "HH:MM"
    duration_minutes: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "start": self.start,
            "end": self.end,
            "duration_minutes": self.duration_minutes,
        }


@dataclass
class SuggestedBreak:
    time: str  # "HH:MM"
    duration_minutes: int

    def to_dict(self) -> dict[str, Any]:
        return {"time": self.time, "duration_minutes": self.duration_minutes}


@dataclass
class RoutineRecommendation:
    morning: list[RoutineBlock] = field(default_factory=list)
    afternoon: list[RoutineBlock] = field(default_factory=list)
    evening: list[RoutineBlock] = field(default_factory=list)
    suggested_breaks: list[SuggestedBreak] = field(default_factory=list)
    explanation: str = ""

    def parts(self) -> dict[str, list[RoutineBlock]]:
        return {"morning": self.morning, "afternoon": self.afternoon, "evening": self.evening}

    def to_dict(self) -> dict[str, Any]:
        return {
            "morning": [b.to_dict() for b in self.morning],
            "afternoon": [b.to_dict() for b in self.afternoon],
            "evening": [b.to_dict() for b in self.evening],
            "suggested_breaks": [b.to_dict() for b in self.suggested_breaks],
            "explanation": self.explanation,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RoutineRecommendation:
        """Rebuild a routine previously produced by ``to_dict``."""

        def blocks(key: str) -> list[RoutineBlock]:
            return [
                RoutineBlock(
                    type=BlockType(b["type"]),
                    start=b["start"],
                    end=b["end"],
                    duration_minutes=int(b["duration_minutes"]),
                )
                for b in data.get(key) or []
            ]

        return cls(
            morning=blocks("morning"),
            afternoon=blocks("afternoon"),
            evening=blocks("evening"),
            suggested_breaks=[
                SuggestedBreak(time=b["time"], duration_minutes=int(b["duration_minutes"]))
                for b in data.get("suggested_breaks") or []
            ],
            explanation=data.get("explanation") or "",
        )
