"""Insights - Deterministic focus analytics

Philosophy:
    Every number the user sees must be reproducible from their own log.
    The language model may reword, never recompute.

Components:
    classification.py: Keyword-table category classification
        - work / deep work / break / low value flags
        - case-insensitive substring match

    focus_metrics.py: Single-pass metric engine
        - work and deep-work minutes
        - context switches and merged work blocks
        - break frequency and idle gaps

    focus_score.py: Categorical 0-100 focus score

    pattern_analyzer.py: Recurring structure over a trailing window
        - peak hours
        - deep-work and distraction windows
        - morning / afternoon / evening energy curve

    routine_builder.py: Non-AI routine synthesis
        - deep work placed at detected strengths
        - suggested breaks near distraction hotspots
        - always a complete default routine

Safety Rules:
    1. Sparse input yields empty structures, never an exception
    2. Input order never changes a result
    3. Only programmer error (None instead of a list) raises
"""

from focuslog.insights.classification import DEFAULT_RULES, ClassificationRules, classify_category
from focuslog.insights.focus_metrics import calculate_focus_metrics
from focuslog.insights.focus_score import calculate_focus_score
from focuslog.insights.models import ActivityRecord, FocusMetrics, FocusPatterns, RoutineRecommendation
from focuslog.insights.pattern_analyzer import analyze_patterns
from focuslog.insights.routine_builder import build_routine


__all__ = [
    "DEFAULT_RULES",
    "ActivityRecord",
    "ClassificationRules",
    "FocusMetrics",
    "FocusPatterns",
    "RoutineRecommendation",
    "analyze_patterns",
    "build_routine",
    "calculate_focus_metrics",
    "calculate_focus_score",
    "classify_category",
]
