"""
Deterministic 0-100 focus score.

The weights and thresholds below are part of the scoring contract: two
implementations fed the same metrics must agree on the score.
"""

from decimal import ROUND_HALF_UP, Decimal

from focuslog.insights.models import FocusMetrics


BASE_SCORE = 50


def calculate_focus_score(metrics: FocusMetrics) -> int:
    """Calculate the focus score for a set of metrics."""
    if metrics.total_work_time == 0:
        return 0

    score = float(BASE_SCORE)

    # Deep work ratio (up to +20)
    deep_work_ratio = metrics.deep_work_time / metrics.total_work_time
    score += deep_work_ratio * 20

    # Longest work block (up to +15)
    if metrics.longest_work_block >= 120:
        score += 15
    elif metrics.longest_work_block >= 60:
        score += 10
    elif metrics.longest_work_block >= 30:
        score += 5

    # Average block duration (up to +10)
    if metrics.average_block_duration >= 60:
        score += 10
    elif metrics.average_block_duration >= 30:
        score += 5

    # Context switches (up to -20)
    if metrics.context_switches > 10:
        score -= 20
    elif metrics.context_switches > 5:
        score -= 10
    elif metrics.context_switches > 2:
        score -= 5

    # Idle gaps (up to -15)
    score -= min(metrics.idle_gaps * 5, 15)

    # Break spacing: +10 in the healthy band, -5 for too many
    if 0.5 <= metrics.break_frequency <= 2:
        score += 10
    elif metrics.break_frequency > 2:
        score -= 5

    clamped = max(0.0, min(100.0, score))
    # Half-up rounding, not banker's rounding
    return int(Decimal(str(clamped)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
