"""AI - Optional language-model refinement

The model rewords and reshapes; it never decides. A missing key, a null
response, a 429 or malformed JSON all fall back to deterministic output.

Components:
    client.py: TextGenerator protocol and the Anthropic adapter
    parsing.py: Fenced / chatty JSON extraction
    prompts.py: Aggregated-statistics prompt templates
    coach.py: Routine coaching and daily/weekly/monthly summaries
"""

from focuslog.ai.client import AIError, AIProviderError, AIRateLimitError, AnthropicTextGenerator, TextGenerator
from focuslog.ai.coach import (
    CoachedRoutine,
    EnrichmentResult,
    SummaryResult,
    request_json,
    run_daily_summary,
    run_monthly_summary,
    run_routine_coach,
    run_weekly_summary,
)
from focuslog.ai.parsing import parse_json_response


__all__ = [
    "AIError",
    "AIProviderError",
    "AIRateLimitError",
    "AnthropicTextGenerator",
    "CoachedRoutine",
    "EnrichmentResult",
    "SummaryResult",
    "TextGenerator",
    "parse_json_response",
    "request_json",
    "run_daily_summary",
    "run_monthly_summary",
    "run_routine_coach",
    "run_weekly_summary",
]
