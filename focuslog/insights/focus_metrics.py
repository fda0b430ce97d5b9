"""
Tool: Focus Metrics
Purpose: Turn raw activity records into deterministic focus metrics

Metrics:
- total_work_time / deep_work_time: minutes in work / deep-work categories
- context_switches: adjacent work records under different category names
- longest_work_block / average_block_duration: stats over merged work blocks
- break_frequency: breaks per hour of work
- idle_gaps: spans over 30 minutes either spent on a non-work record or
  left unlogged between two records

A work block is the maximal run of contiguous work records. It closes on a
context switch or when a non-work record is encountered.
"""

from __future__ import annotations

from datetime import datetime

from focuslog.insights.classification import DEFAULT_RULES, ClassificationRules, classify_category
from focuslog.insights.models import ActivityRecord, FocusMetrics


IDLE_GAP_MINUTES = 30


def sort_records(records: list[ActivityRecord]) -> list[ActivityRecord]:
    """Sort ascending by start time with a deterministic tiebreak."""
    return sorted(
        records,
        key=lambda r: (
            r.start_time,
            r.end_time is None,
            r.end_time or r.start_time,
            r.category_name,
        ),
    )


def calculate_focus_metrics(
    records: list[ActivityRecord],
    rules: ClassificationRules = DEFAULT_RULES,
    now: datetime | None = None,
) -> FocusMetrics:
    """
    Calculate focus metrics from activity records.

    Args:
        records: Activity records in any order
        rules: Keyword table used to classify category names
        now: Reference time for open records (defaults to the current time)

    Returns:
        FocusMetrics (all zero for empty input)

    Raises:
        TypeError: If records is None
    """
    if records is None:
        raise TypeError("records must be a list, not None")

    if not records:
        return FocusMetrics()

    ordered = sort_records(records)

    total_work_time = 0
    deep_work_time = 0
    context_switches = 0
    breaks = 0
    idle_gaps = 0
    work_blocks: list[int] = []
    current_block = 0

    def flush() -> None:
        nonlocal current_block
        if current_block > 0:
            work_blocks.append(current_block)
        current_block = 0

    previous: ActivityRecord | None = None
    previous_is_work = False

    for record in ordered:
        duration = record.duration_minutes(now)
        category_name = record.category_name
        classification = classify_category(category_name, rules)

        if classification.is_work:
            if previous is not None and previous_is_work and previous.category_name != category_name:
                context_switches += 1
                flush()

            total_work_time += duration
            if classification.is_deep_work:
                deep_work_time += duration
            current_block += duration
        else:
            flush()

            if duration > 0 and classification.is_break:
                breaks += 1

            if duration > IDLE_GAP_MINUTES:
                idle_gaps += 1

        # Unlogged time between records, counted independently of the above
        if previous is not None:
            gap_seconds = (record.start_time - previous.effective_end(now)).total_seconds()
            if int(gap_seconds // 60) > IDLE_GAP_MINUTES:
                idle_gaps += 1

        previous = record
        previous_is_work = classification.is_work

    flush()

    average_block = sum(work_blocks) / len(work_blocks) if work_blocks else 0.0
    longest_block = max(work_blocks) if work_blocks else 0

    work_hours = total_work_time / 60
    break_frequency = breaks / work_hours if work_hours > 0 else 0.0

    return FocusMetrics(
        total_work_time=total_work_time,
        deep_work_time=deep_work_time,
        context_switches=context_switches,
        longest_work_block=longest_block,
        average_block_duration=average_block,
        break_frequency=break_frequency,
        idle_gaps=idle_gaps,
    )
