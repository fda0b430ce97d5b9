"""Tests for focuslog/ai/coach.py

Every use case must return a populated result whatever the model does:
nothing, garbage, a partial routine, a rate limit or an exception.
"""

import json
from datetime import datetime, timedelta

import pytest

from focuslog.ai.client import AIProviderError, AIRateLimitError
from focuslog.ai.coach import (
    PERSONALIZED_EXPLANATION,
    coerce_blocks,
    coerce_breaks,
    merge_routine,
    request_json,
    run_daily_summary,
    run_monthly_summary,
    run_routine_coach,
    run_weekly_summary,
)
from focuslog.insights.focus_metrics import calculate_focus_metrics
from focuslog.insights.models import BlockType, FocusPatterns
from focuslog.insights.routine_builder import build_routine
from tests.conftest import FakeTextGenerator


NINE = datetime(2024, 5, 6, 9, 0)


@pytest.fixture
def baseline():
    return build_routine()


# ─────────────────────────────────────────────────────────────────────────────
# Model Call
# ─────────────────────────────────────────────────────────────────────────────


class TestRequestJson:
    """Tests for the guarded model call."""

    @pytest.mark.asyncio
    async def test_no_generator(self):
        result = await request_json(None, "prompt")

        assert result.payload is None
        assert not result.rate_limited

    @pytest.mark.asyncio
    async def test_rate_limit_is_flagged(self):
        generator = FakeTextGenerator(error=AIRateLimitError("429"))

        result = await request_json(generator, "prompt")

        assert result.payload is None
        assert result.rate_limited

    @pytest.mark.asyncio
    async def test_provider_error_is_swallowed(self):
        generator = FakeTextGenerator(error=AIProviderError("boom"))

        result = await request_json(generator, "prompt")

        assert result.payload is None
        assert not result.rate_limited

    @pytest.mark.asyncio
    async def test_decodes_json(self):
        generator = FakeTextGenerator(responses=['```json\n{"summary": "hi"}\n```'])

        result = await request_json(generator, "prompt")

        assert result.payload == {"summary": "hi"}
        assert generator.prompts == ["prompt"]

    @pytest.mark.asyncio
    async def test_undecodable_number_is_swallowed(self):
        generator = FakeTextGenerator(responses=['{"summary": ' + "9" * 5000 + "}"])

        result = await request_json(generator, "prompt")

        assert result.payload is None
        assert not result.rate_limited


# ─────────────────────────────────────────────────────────────────────────────
# Routine Coaching
# ─────────────────────────────────────────────────────────────────────────────


class TestRoutineCoach:
    """Tests for merging a model routine onto the baseline."""

    @pytest.mark.asyncio
    async def test_null_response_keeps_baseline(self, baseline):
        coached = await run_routine_coach(FakeTextGenerator(), FocusPatterns(), baseline)

        assert coached.routine == baseline
        assert not coached.ai_enriched

    @pytest.mark.asyncio
    async def test_rate_limit_keeps_baseline_and_flags(self, baseline):
        generator = FakeTextGenerator(error=AIRateLimitError("429"))

        coached = await run_routine_coach(generator, FocusPatterns(), baseline)

        assert coached.routine == baseline
        assert coached.rate_limited

    @pytest.mark.asyncio
    async def test_partial_routine_is_merged(self, baseline):
        response = {
            "routine": {
                "morning": [{"type": "deep_work", "start": "08:00", "end": "10:00", "duration_minutes": 5}],
            },
            "explanation": "Start early while your focus is fresh.",
        }
        generator = FakeTextGenerator(responses=[json.dumps(response)])

        coached = await run_routine_coach(generator, FocusPatterns(), baseline)

        assert coached.ai_enriched
        assert len(coached.routine.morning) == 1
        assert coached.routine.morning[0].duration_minutes == 120
        assert coached.routine.afternoon == baseline.afternoon
        assert coached.routine.evening == baseline.evening
        assert coached.routine.suggested_breaks == baseline.suggested_breaks
        assert coached.routine.explanation == "Start early while your focus is fresh."

    @pytest.mark.asyncio
    async def test_missing_routine_object_keeps_baseline(self, baseline):
        generator = FakeTextGenerator(responses=['{"explanation": "no routine here"}'])

        coached = await run_routine_coach(generator, FocusPatterns(), baseline)

        assert coached.routine == baseline
        assert not coached.ai_enriched

    def test_merge_defaults_explanation(self, baseline):
        merged = merge_routine({"routine": {}}, baseline)

        assert merged.explanation == PERSONALIZED_EXPLANATION
        assert merged.morning == baseline.morning

    def test_coerce_blocks_drops_invalid_entries(self):
        raw = [
            {"type": "nap", "start": "09:00", "end": "10:00"},
            {"type": "deep_work", "start": "9am", "end": "10:00"},
            {"type": "deep_work", "end": "10:00"},
            "not a dict",
            {"type": "Admin", "start": "10:00", "end": "10:30"},
        ]

        blocks = coerce_blocks(raw)

        assert len(blocks) == 1
        assert blocks[0].type == BlockType.ADMIN
        assert coerce_blocks([{"type": "nap"}]) is None
        assert coerce_blocks("morning") is None

    def test_coerce_breaks_accepts_duration_alias(self):
        breaks = coerce_breaks(
            [
                {"time": "15:00", "duration": 15},
                {"time": "12:00", "duration_minutes": 30},
                {"time": "xx", "duration_minutes": 10},
                {"time": "16:00", "duration_minutes": 0},
            ]
        )

        assert [(b.time, b.duration_minutes) for b in breaks] == [("12:00", 30), ("15:00", 15)]

    def test_coerce_breaks_skips_infinite_duration(self):
        assert coerce_breaks([{"time": "10:00", "duration_minutes": float("inf")}]) is None

    @pytest.mark.asyncio
    async def test_infinite_break_duration_keeps_baseline_breaks(self, baseline):
        text = '{"routine": {"suggested_breaks": [{"time": "10:00", "duration_minutes": Infinity}]}}'

        coached = await run_routine_coach(FakeTextGenerator(responses=[text]), FocusPatterns(), baseline)

        assert coached.routine.suggested_breaks == baseline.suggested_breaks


# ─────────────────────────────────────────────────────────────────────────────
# Summaries
# ─────────────────────────────────────────────────────────────────────────────


class TestSummaries:
    """Tests for daily / weekly / monthly summaries."""

    @pytest.fixture
    def day(self, make_record):
        records = [
            make_record(NINE, 90, "Deep Work", "Report"),
            make_record(NINE + timedelta(minutes=90), 30, "Break", "Walk"),
        ]
        return records, calculate_focus_metrics(records)

    @pytest.mark.asyncio
    async def test_daily_fallback_is_deterministic(self, day):
        records, metrics = day

        result = await run_daily_summary(None, records, metrics, focus_score=77)

        assert not result.ai_enriched
        assert "Focus score: 77/100" in result.summary
        assert "Deep Work (90min)" in result.insights
        assert result.focus_score == 77

    @pytest.mark.asyncio
    async def test_daily_ai_text_never_overrides_score(self, day):
        records, metrics = day
        generator = FakeTextGenerator(
            responses=['{"summary": "Great day.", "insights": ["Keep it up"], "focus_score": 3}']
        )

        result = await run_daily_summary(generator, records, metrics, focus_score=77)

        assert result.ai_enriched
        assert result.summary == "Great day."
        assert result.insights == "Keep it up"
        assert result.focus_score == 77

    @pytest.mark.asyncio
    async def test_weekly_fallback(self):
        dailies = [
            {"date": "2024-05-06", "focus_score": 60},
            {"date": "2024-05-07", "focus_score": 81},
        ]

        result = await run_weekly_summary(None, dailies)

        assert result.focus_score == 70
        assert "2 summarized days" in result.summary
        assert "2024-05-07" in result.insights

    @pytest.mark.asyncio
    async def test_monthly_with_model(self):
        generator = FakeTextGenerator(responses=['{"summary": "Solid month."}'])

        result = await run_monthly_summary(generator, [{"date": "2024-05-06", "focus_score": 64}])

        assert result.ai_enriched
        assert result.summary == "Solid month."
        assert result.focus_score == 64
