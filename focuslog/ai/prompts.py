"""
Prompt templates.

Prompts carry aggregated statistics only (top categories, biggest blocks,
metrics, pattern summaries). Raw per-record data is never sent, which keeps
prompt size bounded regardless of how much a user logged.
"""

from __future__ import annotations

import json
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from focuslog.insights.models import ActivityRecord, FocusMetrics, FocusPatterns, RoutineRecommendation


TOP_CATEGORIES = 3
BIGGEST_BLOCKS = 3
SUMMARY_EXCERPT_CHARS = 100
WEEKLY_EXCERPT_CHARS = 120


@dataclass
class RecordAggregate:
    total_activities: int = 0
    total_minutes: int = 0
    top_categories: list[tuple[str, int]] = field(default_factory=list)
    biggest_blocks: list[tuple[str, str, int]] = field(default_factory=list)  # activity, category, minutes


def aggregate_records(records: list[ActivityRecord], now: datetime | None = None) -> RecordAggregate:
    """Compact statistics: top categories by time and the biggest blocks."""
    category_minutes: dict[str, int] = defaultdict(int)
    blocks: list[tuple[str, str, int]] = []

    for record in records:
        minutes = record.duration_minutes(now)
        category_minutes[record.category_name] += minutes
        if minutes > 0:
            blocks.append((record.activity, record.category_name, minutes))

    top = sorted(category_minutes.items(), key=lambda item: (-item[1], item[0]))
    biggest = sorted(blocks, key=lambda b: (-b[2], b[0]))

    return RecordAggregate(
        total_activities=len(records),
        total_minutes=sum(category_minutes.values()),
        top_categories=top[:TOP_CATEGORIES],
        biggest_blocks=biggest[:BIGGEST_BLOCKS],
    )


def _hours(minutes: float) -> str:
    return f"{minutes / 60:.1f}h"


def _bullets(lines: list[str], empty: str = "None") -> str:
    return "\n".join(f"- {line}" for line in lines) if lines else f"- {empty}"


def _excerpt(text: str, limit: int) -> str:
    text = (text or "").strip()
    return text if len(text) <= limit else f"{text[:limit]}..."


def build_daily_prompt(
    records: list[ActivityRecord],
    metrics: FocusMetrics,
    focus_score: int,
    now: datetime | None = None,
) -> str:
    aggregate = aggregate_records(records, now)

    categories = [f"{name}: {_hours(minutes)}" for name, minutes in aggregate.top_categories]
    blocks = [f"{activity} [{category}] ({minutes}min)" for activity, category, minutes in aggregate.biggest_blocks]

    return f"""Analyze today's productivity data:

**Aggregated Totals:**
- Total activities: {aggregate.total_activities}
- Total time: {_hours(aggregate.total_minutes)}
- Deep work: {_hours(metrics.deep_work_time)}
- Context switches: {metrics.context_switches}
- Longest work block: {metrics.longest_work_block}min
- Average block: {metrics.average_block_duration:.0f}min
- Focus score: {focus_score}/100

**Top {TOP_CATEGORIES} Categories:**
{_bullets(categories)}

**Biggest Task Blocks:**
{_bullets(blocks)}

Generate a JSON response:
{{
  "summary": "Concise daily summary paragraph (100-150 words)",
  "insights": "2-3 key insights about productivity patterns"
}}"""


def build_weekly_prompt(daily_summaries: list[dict[str, Any]]) -> str:
    scores = [s["focus_score"] for s in daily_summaries if s.get("focus_score") is not None]
    average = sum(scores) / len(scores) if scores else 0

    days = [
        f"{s.get('date', f'Day {i + 1}')} (Focus: {s.get('focus_score', 'N/A')}): "
        f"{_excerpt(s.get('summary', ''), SUMMARY_EXCERPT_CHARS)}"
        for i, s in enumerate(daily_summaries)
    ]

    return f"""Analyze weekly productivity patterns from {len(daily_summaries)} days:

**Weekly Overview:**
{_bullets(days)}

**Average Focus Score:** {average:.0f}

Generate a JSON response:
{{
  "summary": "Weekly summary paragraph (150-200 words)",
  "insights": "3-5 insights about patterns, best hours, distractions, improvements"
}}"""


def build_monthly_prompt(weekly_summaries: list[dict[str, Any]]) -> str:
    weeks = [
        f"Week of {s.get('date', i + 1)}: {_excerpt(s.get('summary', ''), WEEKLY_EXCERPT_CHARS)}"
        for i, s in enumerate(weekly_summaries)
    ]

    return f"""Analyze monthly productivity trends from {len(weekly_summaries)} weeks:

**Monthly Overview:**
{_bullets(weeks)}

Generate a JSON response:
{{
  "summary": "Monthly summary paragraph (200-250 words)",
  "insights": "4-6 strategic insights about trends, optimizations, high-impact tasks"
}}"""


def summarize_patterns(patterns: FocusPatterns) -> dict[str, str]:
    """One line per detector, as embedded in the routine prompt."""
    peaks = ", ".join(
        f"{p.hour:02d}:00 ({p.productive_minutes}min productive, {p.efficiency * 100:.0f}% efficiency)"
        for p in patterns.peak_hours[:5]
    )
    windows = ", ".join(
        f"{w.start.strftime('%H:%M')} ({w.duration_minutes}min)" for w in patterns.deep_work_windows[:3]
    )
    curve = patterns.energy_curve
    distractions = (
        f"{len(patterns.distraction_windows)} distraction periods detected"
        if patterns.distraction_windows
        else "Minimal distractions"
    )

    return {
        "peak_hours": peaks or "None detected",
        "deep_work_windows": windows or "None detected",
        "energy": f"Morning {curve.morning}, Afternoon {curve.afternoon}, Evening {curve.evening}",
        "distractions": distractions,
    }


def build_routine_prompt(patterns: FocusPatterns, baseline: RoutineRecommendation) -> str:
    summary = summarize_patterns(patterns)

    return f"""Analyze this productivity data from the past 7 days and generate an optimized daily routine.

**Focus Patterns:**
- Peak hours: {summary["peak_hours"]}
- Deep work windows: {summary["deep_work_windows"]}
- Energy levels: {summary["energy"]}
- Distractions: {summary["distractions"]}

**Baseline Routine:**
{json.dumps(baseline.to_dict(), indent=2)}

Generate a JSON response with an optimized routine and explanation.
Block types: deep_work, shallow_work, admin, break, learning, meeting.
Times are "HH:MM" (24h). Morning is 08:00-12:00, afternoon 13:00-17:00, evening 17:30-21:00.
{{
  "routine": {{
    "morning": [{{"type": "deep_work", "start": "09:00", "end": "11:00", "duration_minutes": 120}}],
    "afternoon": [],
    "evening": [],
    "suggested_breaks": [{{"time": "12:00", "duration_minutes": 30}}]
  }},
  "explanation": "Two or three sentences on why this routine fits the user's patterns."
}}"""
