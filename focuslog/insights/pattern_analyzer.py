"""
Tool: Pattern Analyzer
Purpose: Detect recurring focus structures in activity history

Patterns emerge from observation over a trailing window (7 days by
default). Nothing here asks the user to self-report.

Pattern Types:
- peak_hours: Clock hours with the most productive minutes across days
- deep_work_windows: Stitched runs of deep-work records
- distraction_windows: Stitched runs of break / low-value records
- energy_curve: Morning / afternoon / evening energy from work density

Every detector tolerates sparse or single-day data and returns an empty
structure instead of raising.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import datetime, timedelta

from focuslog.config_models import PatternsConfig
from focuslog.insights.classification import DEFAULT_RULES, ClassificationRules, classify_category
from focuslog.insights.focus_metrics import sort_records
from focuslog.insights.models import (
    ActivityRecord,
    DeepWorkWindow,
    DistractionKind,
    DistractionWindow,
    EnergyCurve,
    EnergyLevel,
    FocusPatterns,
    PeakHour,
)

logger = logging.getLogger(__name__)


# Day thirds used by the energy curve: [start_hour, end_hour)
DAY_PARTS = {
    "morning": (6, 12),
    "afternoon": (12, 18),
    "evening": (18, 24),
}

# Peak-hour efficiency weights; the deep share lifts an hour above plain work
PRODUCTIVE_WEIGHT = 0.75
DEEP_WEIGHT = 0.25

# Energy score weights: work density and deep-work ratio within a day part
ENERGY_DENSITY_WEIGHT = 0.7
ENERGY_DEEP_WEIGHT = 0.3
ENERGY_THRESHOLDS = {"high": 70, "medium": 40}


def filter_window(
    records: list[ActivityRecord], now: datetime | None = None, days: int = 7
) -> list[ActivityRecord]:
    """
    Keep records that started within the trailing ``days`` before ``now``.

    Without ``now`` the window is anchored on the latest record, so a
    historical export is analyzed as of its own last day.
    """
    if not records:
        return []
    reference = now or max(r.start_time for r in records)
    cutoff = reference - timedelta(days=days)
    return [r for r in records if cutoff <= r.start_time <= reference]


def _hour_segments(start: datetime, end: datetime):
    """Yield (hour_of_day, seconds) for each clock hour the interval touches."""
    current = start
    while current < end:
        next_hour = current.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
        segment_end = min(next_hour, end)
        yield current.hour, (segment_end - current).total_seconds()
        current = segment_end


def _hourly_seconds(
    records: list[ActivityRecord], rules: ClassificationRules, now: datetime | None
) -> tuple[dict[int, float], dict[int, float], dict[int, float]]:
    """Total, productive and deep seconds per hour of day."""
    total: dict[int, float] = defaultdict(float)
    productive: dict[int, float] = defaultdict(float)
    deep: dict[int, float] = defaultdict(float)

    for record in records:
        end = record.effective_end(now)
        if end <= record.start_time:
            continue

        classification = classify_category(record.category_name, rules)
        for hour, seconds in _hour_segments(record.start_time, end):
            total[hour] += seconds
            if classification.is_work:
                productive[hour] += seconds
                if classification.is_deep_work:
                    deep[hour] += seconds

    return total, productive, deep


def detect_peak_hours(
    records: list[ActivityRecord],
    rules: ClassificationRules = DEFAULT_RULES,
    now: datetime | None = None,
) -> list[PeakHour]:
    """
    Detect the clock hours where productive work concentrates.

    Each record's duration is split across the hours it spans and summed
    over every day in the input.

    Returns:
        Hours with productive time, most productive minutes first
    """
    if not records:
        return []

    total, productive, deep = _hourly_seconds(records, rules, now)

    peak_hours = []
    for hour, total_seconds in total.items():
        productive_seconds = productive.get(hour, 0.0)
        if total_seconds <= 0 or productive_seconds <= 0:
            continue

        efficiency = (
            PRODUCTIVE_WEIGHT * productive_seconds + DEEP_WEIGHT * deep.get(hour, 0.0)
        ) / total_seconds

        peak_hours.append(
            PeakHour(
                hour=hour,
                productive_minutes=int(productive_seconds // 60),
                total_minutes=int(total_seconds // 60),
                efficiency=min(1.0, efficiency),
            )
        )

    return sorted(peak_hours, key=lambda p: (-p.productive_minutes, -p.efficiency, p.hour))


def _stitch(
    records: list[ActivityRecord], merge_gap_minutes: int, now: datetime | None
) -> list[list[ActivityRecord]]:
    """Group sorted records whose gap to the previous group is small enough."""
    groups: list[list[ActivityRecord]] = []
    group_end: datetime | None = None
    max_gap = timedelta(minutes=merge_gap_minutes)

    for record in sort_records(records):
        end = record.effective_end(now)
        if end <= record.start_time:
            continue

        if groups and group_end is not None and record.start_time - group_end <= max_gap:
            groups[-1].append(record)
            group_end = max(group_end, end)
        else:
            groups.append([record])
            group_end = end

    return groups


def _span(group: list[ActivityRecord], now: datetime | None) -> tuple[datetime, datetime, int]:
    start = group[0].start_time
    end = max(r.effective_end(now) for r in group)
    return start, end, int((end - start).total_seconds() // 60)


def detect_deep_work_windows(
    records: list[ActivityRecord],
    rules: ClassificationRules = DEFAULT_RULES,
    merge_gap_minutes: int = 15,
    min_duration_minutes: int = 45,
    now: datetime | None = None,
) -> list[DeepWorkWindow]:
    """
    Stitch deep-work records into contiguous windows.

    Records separated by at most ``merge_gap_minutes`` join the same window.

    Returns:
        Windows of at least ``min_duration_minutes``, longest first
        (ties: most recent first)
    """
    deep_records = [
        r for r in records if classify_category(r.category_name, rules).is_deep_work
    ]
    if not deep_records:
        return []

    windows = []
    for group in _stitch(deep_records, merge_gap_minutes, now):
        start, end, duration = _span(group, now)
        if duration < min_duration_minutes:
            continue
        windows.append(
            DeepWorkWindow(
                start=start,
                end=end,
                duration_minutes=duration,
                category=group[0].category_name,
            )
        )

    windows.sort(key=lambda w: w.start, reverse=True)
    windows.sort(key=lambda w: w.duration_minutes, reverse=True)
    return windows


def detect_distraction_windows(
    records: list[ActivityRecord],
    rules: ClassificationRules = DEFAULT_RULES,
    merge_gap_minutes: int = 15,
    min_duration_minutes: int = 15,
    min_records: int = 3,
    now: datetime | None = None,
) -> list[DistractionWindow]:
    """
    Detect stretches dominated by breaks or low-value categories.

    A stitched run qualifies when it lasts at least ``min_duration_minutes``
    or packs ``min_records`` separate records (frequent short interruptions).

    Returns:
        Windows in chronological order
    """
    distraction_records = [
        r for r in records if classify_category(r.category_name, rules).is_distraction
    ]
    if not distraction_records:
        return []

    windows = []
    for group in _stitch(distraction_records, merge_gap_minutes, now):
        start, end, duration = _span(group, now)
        if duration < min_duration_minutes and len(group) < min_records:
            continue

        any_waste = any(classify_category(r.category_name, rules).is_low_value for r in group)
        windows.append(
            DistractionWindow(
                start=start,
                end=end,
                duration_minutes=duration,
                kind=DistractionKind.WASTE if any_waste else DistractionKind.BREAK,
                record_count=len(group),
            )
        )

    return windows


def _energy_level(score: int) -> EnergyLevel:
    if score >= ENERGY_THRESHOLDS["high"]:
        return EnergyLevel.HIGH
    if score >= ENERGY_THRESHOLDS["medium"]:
        return EnergyLevel.MEDIUM
    return EnergyLevel.LOW


def detect_energy_curve(
    records: list[ActivityRecord],
    rules: ClassificationRules = DEFAULT_RULES,
    now: datetime | None = None,
) -> EnergyCurve:
    """
    Derive a three-part energy curve.

    Score per part = 100 * (0.7 * work share + 0.3 * deep share of work).
    Parts without any logged time stay at "medium" and get no score.
    Time between 00:00 and 06:00 is ignored.
    """
    if not records:
        return EnergyCurve()

    total, productive, deep = _hourly_seconds(records, rules, now)

    levels: dict[str, EnergyLevel] = {}
    scores: dict[str, int] = {}
    for part, (start_hour, end_hour) in DAY_PARTS.items():
        hours = range(start_hour, end_hour)
        part_total = sum(total.get(h, 0.0) for h in hours)
        if part_total <= 0:
            levels[part] = EnergyLevel.MEDIUM
            continue

        part_work = sum(productive.get(h, 0.0) for h in hours)
        part_deep = sum(deep.get(h, 0.0) for h in hours)
        deep_ratio = part_deep / part_work if part_work > 0 else 0.0

        score = round(
            100 * (ENERGY_DENSITY_WEIGHT * part_work / part_total + ENERGY_DEEP_WEIGHT * deep_ratio)
        )
        scores[part] = score
        levels[part] = _energy_level(score)

    return EnergyCurve(
        morning=levels["morning"],
        afternoon=levels["afternoon"],
        evening=levels["evening"],
        scores=scores,
    )


def distraction_hotspot(windows: list[DistractionWindow]) -> int | None:
    """Most frequent starting hour among distraction windows, if any."""
    if not windows:
        return None
    counts = Counter(w.start.hour for w in windows)
    # Earliest hour wins a tie so the result is stable
    return min(counts, key=lambda hour: (-counts[hour], hour))


def analyze_patterns(
    records: list[ActivityRecord],
    rules: ClassificationRules = DEFAULT_RULES,
    config: PatternsConfig | None = None,
    now: datetime | None = None,
) -> FocusPatterns:
    """Run every detector over the trailing window."""
    if records is None:
        raise TypeError("records must be a list, not None")

    config = config or PatternsConfig()
    window = filter_window(records, now=now, days=config.lookback_days)

    patterns = FocusPatterns(
        peak_hours=detect_peak_hours(window, rules, now=now),
        deep_work_windows=detect_deep_work_windows(
            window,
            rules,
            merge_gap_minutes=config.merge_gap_minutes,
            min_duration_minutes=config.min_deep_work_minutes,
            now=now,
        ),
        distraction_windows=detect_distraction_windows(
            window,
            rules,
            merge_gap_minutes=config.merge_gap_minutes,
            min_duration_minutes=config.distraction_min_minutes,
            min_records=config.distraction_min_records,
            now=now,
        ),
        energy_curve=detect_energy_curve(window, rules, now=now),
    )

    logger.debug(
        f"Patterns over {len(window)} records: {len(patterns.peak_hours)} peak hours, "
        f"{len(patterns.deep_work_windows)} deep windows, "
        f"{len(patterns.distraction_windows)} distraction windows"
    )
    return patterns
