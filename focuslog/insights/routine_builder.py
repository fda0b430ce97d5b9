"""
Tool: Routine Builder
Purpose: Turn detected focus patterns into a structured daily routine

This is the non-AI baseline. It must always produce a non-empty,
internally consistent routine, even with no patterns at all, because it
is what the user sees whenever the language model is unavailable.

Day parts:
    morning    08:00 - 12:00
    afternoon  13:00 - 17:00   (lunch 12:00 - 13:00)
    evening    17:30 - 21:00

Deep work is placed, in order of preference, at:
    1. a detected deep-work window falling in that part of the day
    2. the strongest qualifying peak hour falling in that part
    3. an energy-curve default
"""

from __future__ import annotations

from datetime import datetime

from focuslog.insights.models import (
    BlockType,
    DeepWorkWindow,
    EnergyLevel,
    FocusPatterns,
    PeakHour,
    RoutineBlock,
    RoutineRecommendation,
    SuggestedBreak,
)
from focuslog.insights.pattern_analyzer import distraction_hotspot


MORNING = (8 * 60, 12 * 60)
AFTERNOON = (13 * 60, 17 * 60)
EVENING = (17 * 60 + 30, 21 * 60)

# Time-of-day ranges in which a detected window or peak counts for a part
MORNING_SEARCH = (8 * 60, 12 * 60)
AFTERNOON_SEARCH = (12 * 60, 17 * 60)
EVENING_SEARCH = (17 * 60, 21 * 60)

ADMIN_START = 8 * 60 + 30
MIN_FILLER_MINUTES = 15
MIN_DEEP_BLOCK_MINUTES = 30
PEAK_BLOCK_MINUTES = 120

# A peak hour must clear both to drive scheduling
PEAK_MIN_EFFICIENCY = 0.5
PEAK_MIN_PRODUCTIVE_MINUTES = 30

GENERIC_EXPLANATION = (
    "Based on your activity patterns, here's a recommended routine. "
    "Schedule deep work during your peak focus hours and lighter tasks "
    "when your energy is lower."
)


def format_time(minutes: int) -> str:
    """Minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_time(value: str) -> int:
    """
    "HH:MM" to minutes since midnight.

    Raises:
        ValueError: If the string is not a valid time of day
    """
    hours_str, _, minutes_str = value.strip().partition(":")
    hours, minutes = int(hours_str), int(minutes_str or 0)
    if not (0 <= hours <= 24 and 0 <= minutes < 60) or hours * 60 + minutes > 24 * 60:
        raise ValueError(f"Invalid time of day: {value!r}")
    return hours * 60 + minutes


def _time_of_day(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def _block(block_type: BlockType, start: int, end: int) -> RoutineBlock:
    return RoutineBlock(
        type=block_type,
        start=format_time(start),
        end=format_time(end),
        duration_minutes=end - start,
    )


def normalize_blocks(
    blocks: list[RoutineBlock], bounds: tuple[int, int] | None = None
) -> list[RoutineBlock]:
    """
    Make a block list internally consistent.

    Sorts by start, clips to ``bounds``, trims overlaps against the
    previous block, drops empty blocks and recomputes every duration
    from its start/end.
    """
    normalized: list[RoutineBlock] = []
    previous_end: int | None = None

    for block in sorted(blocks, key=lambda b: parse_time(b.start)):
        start, end = parse_time(block.start), parse_time(block.end)
        if bounds is not None:
            start, end = max(start, bounds[0]), min(end, bounds[1])
        if previous_end is not None:
            start = max(start, previous_end)
        if end <= start:
            continue

        normalized.append(_block(block.type, start, end))
        previous_end = end

    return normalized


def _qualifying_peaks(peak_hours: list[PeakHour]) -> list[PeakHour]:
    return [
        p
        for p in peak_hours
        if p.efficiency > PEAK_MIN_EFFICIENCY and p.productive_minutes > PEAK_MIN_PRODUCTIVE_MINUTES
    ]


def _window_in(windows: list[DeepWorkWindow], search: tuple[int, int]) -> DeepWorkWindow | None:
    """Longest deep-work window starting inside the search range."""
    for window in windows:  # already longest first
        if search[0] <= _time_of_day(window.start) < search[1]:
            return window
    return None


def _peak_in(peaks: list[PeakHour], search: tuple[int, int]) -> PeakHour | None:
    for peak in peaks:
        if search[0] <= peak.hour * 60 < search[1]:
            return peak
    return None


def _deep_span(
    window: DeepWorkWindow | None, peak: PeakHour | None, bounds: tuple[int, int]
) -> tuple[int, int] | None:
    """Clipped (start, end) for a deep block, or None if nothing usable."""
    if window is not None:
        raw_start = _time_of_day(window.start)
        start = max(raw_start, bounds[0])
        end = min(raw_start + window.duration_minutes, bounds[1])
        if end - start >= MIN_DEEP_BLOCK_MINUTES:
            return start, end

    if peak is not None:
        start = max(peak.hour * 60, bounds[0])
        end = min(start + PEAK_BLOCK_MINUTES, bounds[1])
        if end - start >= MIN_DEEP_BLOCK_MINUTES:
            return start, end

    return None


def _morning(patterns: FocusPatterns, peaks: list[PeakHour]) -> list[RoutineBlock]:
    span = _deep_span(
        _window_in(patterns.deep_work_windows, MORNING_SEARCH),
        _peak_in(peaks, MORNING_SEARCH),
        MORNING,
    )

    if span is None:
        if patterns.energy_curve.morning == EnergyLevel.HIGH:
            return [
                _block(BlockType.ADMIN, 8 * 60 + 30, 9 * 60 + 30),
                _block(BlockType.DEEP_WORK, 9 * 60 + 30, 11 * 60 + 30),
                _block(BlockType.SHALLOW_WORK, 11 * 60 + 30, 12 * 60),
            ]
        return [
            _block(BlockType.ADMIN, 9 * 60, 10 * 60),
            _block(BlockType.DEEP_WORK, 10 * 60, 12 * 60),
        ]

    start, end = span
    blocks = []
    if start - ADMIN_START >= MIN_FILLER_MINUTES:
        blocks.append(_block(BlockType.ADMIN, ADMIN_START, start))
    blocks.append(_block(BlockType.DEEP_WORK, start, end))
    if MORNING[1] - end >= MIN_FILLER_MINUTES:
        blocks.append(_block(BlockType.SHALLOW_WORK, end, MORNING[1]))
    return blocks


def _afternoon(patterns: FocusPatterns, peaks: list[PeakHour]) -> list[RoutineBlock]:
    span = _deep_span(
        _window_in(patterns.deep_work_windows, AFTERNOON_SEARCH),
        _peak_in(peaks, AFTERNOON_SEARCH),
        AFTERNOON,
    )

    if span is None:
        if patterns.energy_curve.afternoon == EnergyLevel.HIGH:
            return [
                _block(BlockType.DEEP_WORK, 14 * 60, 16 * 60),
                _block(BlockType.SHALLOW_WORK, 16 * 60, 17 * 60),
            ]
        return [
            _block(BlockType.SHALLOW_WORK, 13 * 60, 15 * 60),
            _block(BlockType.ADMIN, 15 * 60, 16 * 60),
        ]

    start, end = span
    blocks = []
    if start - AFTERNOON[0] >= MIN_FILLER_MINUTES:
        blocks.append(_block(BlockType.SHALLOW_WORK, AFTERNOON[0], start))
    blocks.append(_block(BlockType.DEEP_WORK, start, end))
    if AFTERNOON[1] - end >= MIN_FILLER_MINUTES:
        blocks.append(_block(BlockType.ADMIN, end, AFTERNOON[1]))
    return blocks


def _evening(patterns: FocusPatterns, peaks: list[PeakHour]) -> list[RoutineBlock]:
    energy = patterns.energy_curve.evening

    span = None
    if energy != EnergyLevel.LOW:
        span = _deep_span(
            _window_in(patterns.deep_work_windows, EVENING_SEARCH),
            _peak_in(peaks, EVENING_SEARCH),
            EVENING,
        )

    if span is not None:
        start, end = span
        blocks = []
        if start - EVENING[0] >= MIN_FILLER_MINUTES:
            blocks.append(_block(BlockType.BREAK, EVENING[0], start))
        blocks.append(_block(BlockType.DEEP_WORK, start, end))
        if EVENING[1] - end >= MIN_FILLER_MINUTES:
            blocks.append(_block(BlockType.BREAK, end, EVENING[1]))
        return blocks

    # Wind-down defaults
    if energy == EnergyLevel.HIGH:
        return [
            _block(BlockType.LEARNING, 17 * 60 + 30, 19 * 60),
            _block(BlockType.BREAK, 19 * 60, 20 * 60),
        ]
    if energy == EnergyLevel.MEDIUM:
        return [
            _block(BlockType.LEARNING, 18 * 60, 19 * 60),
            _block(BlockType.BREAK, 19 * 60, 20 * 60),
        ]
    return [_block(BlockType.BREAK, 17 * 60 + 30, 19 * 60)]


def _suggested_breaks(
    patterns: FocusPatterns,
    morning: list[RoutineBlock],
    afternoon: list[RoutineBlock],
) -> list[SuggestedBreak]:
    breaks = {12 * 60: 30}  # lunch

    if afternoon and afternoon[0].duration_minutes > 90:
        first = afternoon[0]
        breaks[parse_time(first.start) + first.duration_minutes // 2] = 15
    else:
        breaks[15 * 60] = 15

    morning_deep = next((b for b in morning if b.type == BlockType.DEEP_WORK), None)
    if morning_deep and morning_deep.duration_minutes > 120:
        breaks.setdefault(parse_time(morning_deep.start) + 60, 10)

    hotspot = distraction_hotspot(patterns.distraction_windows)
    if hotspot is not None and MORNING[0] <= hotspot * 60 < AFTERNOON[1]:
        planned = hotspot * 60
        if all(abs(planned - existing) > 30 for existing in breaks):
            breaks[planned] = 10

    return [
        SuggestedBreak(time=format_time(minute), duration_minutes=duration)
        for minute, duration in sorted(breaks.items())
    ]


def explain_routine(
    patterns: FocusPatterns, suggested_breaks: list[SuggestedBreak] | None = None
) -> str:
    """Deterministic rationale naming whatever the patterns revealed."""
    sentences = []

    peaks = _qualifying_peaks(patterns.peak_hours)
    if peaks:
        sentences.append(f"Your strongest focus hour is {peaks[0].hour:02d}:00.")

    curve = patterns.energy_curve
    high_parts = [
        part
        for part, level in (
            ("morning", curve.morning),
            ("afternoon", curve.afternoon),
            ("evening", curve.evening),
        )
        if level == EnergyLevel.HIGH
    ]
    if high_parts:
        sentences.append(f"Your energy runs highest in the {' and '.join(high_parts)}.")

    if patterns.deep_work_windows:
        longest = patterns.deep_work_windows[0].duration_minutes
        sentences.append(f"Your longest deep-work stretch lasted {longest} minutes.")

    hotspot = distraction_hotspot(patterns.distraction_windows)
    if hotspot is not None:
        sentence = f"Distractions tend to cluster around {hotspot:02d}:00"
        planned = format_time(hotspot * 60)
        if any(b.time == planned for b in suggested_breaks or []):
            sentence += ", so a short planned break sits there"
        sentences.append(sentence + ".")

    sentences.append(GENERIC_EXPLANATION)
    return " ".join(sentences)


def build_routine(patterns: FocusPatterns | None = None) -> RoutineRecommendation:
    """
    Build the baseline routine from detected patterns.

    Args:
        patterns: Detector output; None or empty patterns yield the default routine

    Returns:
        RoutineRecommendation with non-empty morning/afternoon/evening lists
    """
    patterns = patterns or FocusPatterns()
    peaks = _qualifying_peaks(patterns.peak_hours)

    morning = normalize_blocks(_morning(patterns, peaks), MORNING)
    afternoon = normalize_blocks(_afternoon(patterns, peaks), AFTERNOON)
    evening = normalize_blocks(_evening(patterns, peaks), EVENING)

    suggested_breaks = _suggested_breaks(patterns, morning, afternoon)
    return RoutineRecommendation(
        morning=morning,
        afternoon=afternoon,
        evening=evening,
        suggested_breaks=suggested_breaks,
        explanation=explain_routine(patterns, suggested_breaks),
    )
