"""Services - Orchestration, caching and rate limiting

The only layer that catches collaborator errors. Store and model failures
become typed outcomes here; the API maps those outcomes to HTTP.

Components:
    routine_service.py: Per-day routine state machine
    summary_service.py: Daily / weekly / monthly roll-ups and focus report
    common.py: Retrying, degrading store access
"""

from focuslog.services.common import StorageMisconfiguredError
from focuslog.services.routine_service import RoutineOutcome, RoutineRateLimitError, RoutineService
from focuslog.services.summary_service import SummaryOutcome, SummaryService


__all__ = [
    "RoutineOutcome",
    "RoutineRateLimitError",
    "RoutineService",
    "StorageMisconfiguredError",
    "SummaryOutcome",
    "SummaryService",
]
