"""
Tool: Coach
Purpose: Language-model enrichment with a deterministic fallback

Use cases:
    run_routine_coach   - refine the baseline routine
    run_daily_summary   - narrative for one day
    run_weekly_summary  - narrative from daily summaries
    run_monthly_summary - narrative from weekly summaries

Every use case returns a populated result. A null model response, a
rate limit, malformed JSON or any provider error all resolve to the
deterministic output; only the prose changes tone. Scores are never
taken from the model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from focuslog.ai.client import AIRateLimitError, TextGenerator
from focuslog.ai.parsing import parse_json_response
from focuslog.ai.prompts import (
    aggregate_records,
    build_daily_prompt,
    build_monthly_prompt,
    build_routine_prompt,
    build_weekly_prompt,
)
from focuslog.insights.models import (
    ActivityRecord,
    BlockType,
    FocusMetrics,
    FocusPatterns,
    RoutineBlock,
    RoutineRecommendation,
    SuggestedBreak,
)
from focuslog.insights.routine_builder import format_time, normalize_blocks, parse_time

logger = logging.getLogger(__name__)


PERSONALIZED_EXPLANATION = "Here's a personalized routine based on your productivity patterns."


@dataclass
class EnrichmentResult:
    """Outcome of one model call. ``payload`` is None on any failure."""

    payload: dict[str, Any] | None = None
    rate_limited: bool = False


async def request_json(generator: TextGenerator | None, prompt: str) -> EnrichmentResult:
    """
    Call the model and decode a JSON object. Never raises.

    A provider rate limit is reported through ``rate_limited`` so the
    caller can pick a softer fallback.
    """
    if generator is None:
        return EnrichmentResult()

    try:
        text = await generator.generate(prompt, json_mode=True)
        payload = parse_json_response(text)
    except AIRateLimitError as e:
        logger.warning(f"AI provider rate limited: {e}")
        return EnrichmentResult(rate_limited=True)
    except Exception as e:
        logger.warning(f"AI call failed, using deterministic output: {e}")
        return EnrichmentResult()

    if payload is None:
        logger.info("AI response empty or not JSON, using deterministic output")
    return EnrichmentResult(payload=payload)


def _text(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if isinstance(value, list):
        value = "\n".join(str(item) for item in value if item)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


# =============================================================================
# Routine coaching
# =============================================================================


@dataclass
class CoachedRoutine:
    routine: RoutineRecommendation
    ai_enriched: bool = False
    rate_limited: bool = False


def coerce_blocks(raw: Any) -> list[RoutineBlock] | None:
    """Validate model-provided blocks; None when nothing usable remains."""
    if not isinstance(raw, list):
        return None

    blocks = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        try:
            block_type = BlockType(str(item.get("type", "")).strip().lower())
            start = parse_time(str(item["start"]))
            end = parse_time(str(item["end"]))
        except (KeyError, ValueError):
            continue
        blocks.append(
            RoutineBlock(
                type=block_type,
                start=format_time(start),
                end=format_time(end),
                duration_minutes=end - start,
            )
        )

    # Durations are recomputed from start/end; the model's own figure is ignored
    return normalize_blocks(blocks) or None


def coerce_breaks(raw: Any) -> list[SuggestedBreak] | None:
    if not isinstance(raw, list):
        return None

    by_time: dict[int, int] = {}
    for item in raw:
        if not isinstance(item, dict):
            continue
        try:
            minute = parse_time(str(item["time"]))
            duration = int(item.get("duration_minutes", item.get("duration")))
        except (KeyError, TypeError, ValueError, OverflowError):
            continue
        if duration > 0:
            by_time.setdefault(minute, duration)

    if not by_time:
        return None
    return [
        SuggestedBreak(time=format_time(minute), duration_minutes=duration)
        for minute, duration in sorted(by_time.items())
    ]


def merge_routine(
    payload: dict[str, Any], baseline: RoutineRecommendation
) -> RoutineRecommendation | None:
    """
    Overlay a model routine on the baseline.

    Missing or invalid parts are taken from the baseline instead of
    rejecting the whole response. Returns None if the payload carries
    no routine object at all.
    """
    routine = payload.get("routine")
    if not isinstance(routine, dict):
        return None

    return RoutineRecommendation(
        morning=coerce_blocks(routine.get("morning")) or baseline.morning,
        afternoon=coerce_blocks(routine.get("afternoon")) or baseline.afternoon,
        evening=coerce_blocks(routine.get("evening")) or baseline.evening,
        suggested_breaks=coerce_breaks(routine.get("suggested_breaks")) or baseline.suggested_breaks,
        explanation=_text(payload, "explanation") or PERSONALIZED_EXPLANATION,
    )


async def run_routine_coach(
    generator: TextGenerator | None,
    patterns: FocusPatterns,
    baseline: RoutineRecommendation,
) -> CoachedRoutine:
    result = await request_json(generator, build_routine_prompt(patterns, baseline))

    if result.payload is not None:
        merged = merge_routine(result.payload, baseline)
        if merged is not None:
            return CoachedRoutine(routine=merged, ai_enriched=True)
        logger.info("AI response had no routine object, using baseline")

    return CoachedRoutine(routine=baseline, ai_enriched=False, rate_limited=result.rate_limited)


# =============================================================================
# Summaries
# =============================================================================


@dataclass
class SummaryResult:
    summary: str
    insights: str = ""
    focus_score: int | None = None
    ai_enriched: bool = False
    rate_limited: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "insights": self.insights,
            "focus_score": self.focus_score,
            "ai_enriched": self.ai_enriched,
        }


def describe_day(
    records: list[ActivityRecord],
    metrics: FocusMetrics,
    focus_score: int,
    now: datetime | None = None,
) -> tuple[str, str]:
    """Deterministic summary and insights for one day."""
    aggregate = aggregate_records(records, now)

    summary = (
        f"You logged {aggregate.total_activities} activities totalling "
        f"{aggregate.total_minutes / 60:.1f}h, with {metrics.total_work_time / 60:.1f}h of work "
        f"and {metrics.deep_work_time / 60:.1f}h of deep work. Focus score: {focus_score}/100."
    )

    insights = []
    if aggregate.top_categories:
        name, minutes = aggregate.top_categories[0]
        insights.append(f"Most of your time went to {name} ({minutes}min).")
    if metrics.longest_work_block:
        insights.append(f"Your longest uninterrupted work block was {metrics.longest_work_block}min.")
    if metrics.context_switches > 2:
        insights.append(f"You switched context {metrics.context_switches} times between work categories.")
    if metrics.idle_gaps:
        insights.append(f"There were {metrics.idle_gaps} idle gaps over 30 minutes.")

    return summary, " ".join(insights)


async def run_daily_summary(
    generator: TextGenerator | None,
    records: list[ActivityRecord],
    metrics: FocusMetrics,
    focus_score: int,
    now: datetime | None = None,
) -> SummaryResult:
    summary, insights = describe_day(records, metrics, focus_score, now)
    result = await request_json(generator, build_daily_prompt(records, metrics, focus_score, now))

    if result.payload is not None and _text(result.payload, "summary"):
        return SummaryResult(
            summary=_text(result.payload, "summary"),
            insights=_text(result.payload, "insights") or insights,
            focus_score=focus_score,
            ai_enriched=True,
        )

    return SummaryResult(
        summary=summary,
        insights=insights,
        focus_score=focus_score,
        rate_limited=result.rate_limited,
    )


def _average_score(summaries: list[dict[str, Any]]) -> int | None:
    scores = [s["focus_score"] for s in summaries if isinstance(s.get("focus_score"), (int, float))]
    return round(sum(scores) / len(scores)) if scores else None


async def run_weekly_summary(
    generator: TextGenerator | None, daily_summaries: list[dict[str, Any]]
) -> SummaryResult:
    average = _average_score(daily_summaries)

    summary = f"This week you have {len(daily_summaries)} summarized days."
    insights = ""
    if average is not None:
        summary += f" Your average focus score was {average}/100."
        scored = [s for s in daily_summaries if isinstance(s.get("focus_score"), (int, float))]
        best = max(scored, key=lambda s: s["focus_score"])
        if best.get("date"):
            insights = f"Your most focused day was {best['date']} ({best['focus_score']}/100)."

    result = await request_json(generator, build_weekly_prompt(daily_summaries))
    if result.payload is not None and _text(result.payload, "summary"):
        return SummaryResult(
            summary=_text(result.payload, "summary"),
            insights=_text(result.payload, "insights") or insights,
            focus_score=average,
            ai_enriched=True,
        )

    return SummaryResult(
        summary=summary, insights=insights, focus_score=average, rate_limited=result.rate_limited
    )


async def run_monthly_summary(
    generator: TextGenerator | None, weekly_summaries: list[dict[str, Any]]
) -> SummaryResult:
    average = _average_score(weekly_summaries)

    summary = f"This month you have {len(weekly_summaries)} summarized weeks."
    if average is not None:
        summary += f" Your average weekly focus score was {average}/100."

    result = await request_json(generator, build_monthly_prompt(weekly_summaries))
    if result.payload is not None and _text(result.payload, "summary"):
        return SummaryResult(
            summary=_text(result.payload, "summary"),
            insights=_text(result.payload, "insights") or "",
            focus_score=average,
            ai_enriched=True,
        )

    return SummaryResult(summary=summary, focus_score=average, rate_limited=result.rate_limited)
