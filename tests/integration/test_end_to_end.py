"""
End-to-end flow tests.

A user who logs the same two-hour Deep Work block every morning for a week
should see:
- a high focus score despite the idle gaps between days
- 09:00 as their peak hour and seven 120-minute deep-work windows
- a routine whose morning deep-work block sits exactly at 09:00-11:00
"""

import json

import pytest

from focuslog.cli import analyze
from focuslog.insights.focus_metrics import calculate_focus_metrics
from focuslog.insights.focus_score import calculate_focus_score
from focuslog.insights.models import BlockType, EnergyLevel
from focuslog.insights.pattern_analyzer import analyze_patterns
from focuslog.insights.routine_builder import build_routine
from tests.conftest import FakeTextGenerator


try:
    from fastapi.testclient import TestClient

    HAS_FASTAPI = True
except ImportError:
    HAS_FASTAPI = False


# ─────────────────────────────────────────────────────────────────────────────
# Deterministic Pipeline
# ─────────────────────────────────────────────────────────────────────────────


class TestDeepWorkWeek:
    """Records -> metrics -> score -> patterns -> routine."""

    def test_metrics_and_score(self, deep_work_week, clock):
        metrics = calculate_focus_metrics(deep_work_week, now=clock.now)

        assert metrics.total_work_time == 840
        assert metrics.deep_work_time == 840
        assert metrics.context_switches == 0
        assert metrics.idle_gaps == 6
        # 50 + 20 + 15 + 10 - 15 (idle gaps, capped)
        assert calculate_focus_score(metrics) == 80

    def test_patterns(self, deep_work_week, clock):
        patterns = analyze_patterns(deep_work_week, now=clock.now)

        assert patterns.peak_hours[0].hour == 9
        assert len(patterns.deep_work_windows) == 7
        assert all(w.duration_minutes == 120 for w in patterns.deep_work_windows)
        assert patterns.energy_curve.morning == EnergyLevel.HIGH
        assert patterns.distraction_windows == []

    def test_routine_places_deep_work_at_peak(self, deep_work_week, clock):
        routine = build_routine(analyze_patterns(deep_work_week, now=clock.now))

        deep = [b for b in routine.morning if b.type == BlockType.DEEP_WORK]
        assert [(b.start, b.end) for b in deep] == [("09:00", "11:00")]
        assert "09:00" in routine.explanation

    def test_cli_analyze_matches_pipeline(self, deep_work_week, clock):
        result = analyze(deep_work_week, now=clock.now)

        assert result["success"] is True
        assert result["record_count"] == 7
        assert result["focus_score"] == 80
        assert result["routine"]["morning"][1] == {
            "type": "deep_work",
            "start": "09:00",
            "end": "11:00",
            "duration_minutes": 120,
        }


# ─────────────────────────────────────────────────────────────────────────────
# Through the API
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.skipif(not HAS_FASTAPI, reason="FastAPI not installed")
class TestRoutineFlow:
    """Log a week, generate a routine with the model, read it back."""

    def test_ai_refined_routine_round_trip(self, build_app, store, auth_headers):
        response = {
            "routine": {
                "morning": [
                    {"type": "deep_work", "start": "09:00", "end": "11:00"},
                    {"type": "shallow_work", "start": "11:00", "end": "12:00"},
                ],
                "suggested_breaks": [{"time": "10:00", "duration_minutes": 5}],
            },
            "explanation": "Protect 09:00-11:00; it is your most reliable deep-work slot.",
        }
        generator = FakeTextGenerator(responses=[json.dumps(response)])

        with TestClient(build_app(store, generator=generator)) as client:
            for day in range(6, 13):
                client.post(
                    "/api/insights/activities",
                    json={
                        "activity": "Focus block",
                        "start_time": f"2024-05-{day:02d}T09:00:00",
                        "end_time": f"2024-05-{day:02d}T11:00:00",
                        "category": "Deep Work",
                    },
                    headers=auth_headers,
                )

            generated = client.post("/api/routine", headers=auth_headers).json()
            read_back = client.get("/api/routine", headers=auth_headers).json()

        assert generated["aiEnriched"] is True
        assert generated["explanation"].startswith("Protect 09:00-11:00")
        assert generated["routine"]["suggested_breaks"] == [{"time": "10:00", "duration_minutes": 5}]
        # Parts the model left out come from the baseline
        assert generated["routine"]["afternoon"]
        assert generated["routine"]["evening"]
        assert read_back["cached"] is True
        assert read_back["aiEnriched"] is True
        assert read_back["routine"] == generated["routine"]
        assert "Focus block" not in generator.prompts[0]
