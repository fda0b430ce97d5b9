"""
Tool: Summary Service
Purpose: Daily, weekly and monthly summaries plus the deterministic
focus report

Roll-up chain:
    activity records -> daily summary (cached per day)
    daily summaries  -> weekly summary (cached per week start, Monday)
    weekly summaries -> monthly summary (cached per first of month)

Each level follows the routine rules: serve today's cache unless forced,
fall back to deterministic text when the model is unavailable, and
treat the cache write as best effort.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any

from focuslog.ai.client import TextGenerator
from focuslog.ai.coach import SummaryResult, run_daily_summary, run_monthly_summary, run_weekly_summary
from focuslog.config_models import PatternsConfig
from focuslog.insights.classification import DEFAULT_RULES, ClassificationRules
from focuslog.insights.focus_metrics import calculate_focus_metrics
from focuslog.insights.focus_score import calculate_focus_score
from focuslog.insights.pattern_analyzer import analyze_patterns
from focuslog.services.common import StoreAccess
from focuslog.storage.base import CachedSummary, CacheKind, RecordStore
from focuslog.storage.retry import SCHEMA_RETRY_DELAY_SECONDS

logger = logging.getLogger(__name__)


NO_ACTIVITY_MESSAGE = "No activities logged for this day."
NO_DAILY_MESSAGE = "No daily summaries for this week yet."
NO_WEEKLY_MESSAGE = "No weekly summaries for this month yet."


@dataclass
class SummaryOutcome:
    kind: CacheKind
    date: date
    summary: dict[str, Any] | None = None
    has_enough_data: bool = True
    cached: bool = False
    saved: bool = False
    ai_enriched: bool = False
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "date": self.date.isoformat(),
            "summary": self.summary,
            "has_enough_data": self.has_enough_data,
            "cached": self.cached,
            "saved": self.saved,
            "ai_enriched": self.ai_enriched,
            "message": self.message,
        }


def week_start_for(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def month_bounds(day: date) -> tuple[date, date]:
    start = day.replace(day=1)
    if start.month == 12:
        return start, start.replace(year=start.year + 1, month=1)
    return start, start.replace(month=start.month + 1)


def _from_cache(cache: CachedSummary) -> SummaryOutcome:
    return SummaryOutcome(
        kind=cache.kind,
        date=cache.date,
        summary=cache.payload,
        cached=True,
        saved=True,
        ai_enriched=bool(cache.payload.get("ai_enriched", False)),
    )


def _summary_inputs(caches: list[CachedSummary]) -> list[dict[str, Any]]:
    return [{**cache.payload, "date": cache.date.isoformat()} for cache in caches]


class SummaryService:
    def __init__(
        self,
        store: RecordStore,
        generator: TextGenerator | None = None,
        rules: ClassificationRules = DEFAULT_RULES,
        patterns_config: PatternsConfig | None = None,
        now_fn: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        retry_delay: float = SCHEMA_RETRY_DELAY_SECONDS,
    ):
        self.store = store
        self.generator = generator
        self.rules = rules
        self.patterns_config = patterns_config or PatternsConfig()
        self.now_fn = now_fn
        self.access = StoreAccess(store, retry_delay=retry_delay, sleep=sleep)

    async def _finish(
        self, user_id: str, kind: CacheKind, day: date, result: SummaryResult, extra: dict[str, Any] | None = None
    ) -> SummaryOutcome:
        payload = {**result.to_dict(), **(extra or {})}
        saved = await self.access.save_cache(user_id, kind, day, payload, self.now_fn())
        return SummaryOutcome(
            kind=kind,
            date=day,
            summary=payload,
            saved=saved,
            ai_enriched=result.ai_enriched,
        )

    def cache_key(self, kind: CacheKind, day: date | None = None) -> date:
        """The date a summary of ``kind`` covering ``day`` is cached under."""
        day = day or self.now_fn().date()
        if kind == CacheKind.WEEKLY:
            return week_start_for(day)
        if kind == CacheKind.MONTHLY:
            return month_bounds(day)[0]
        return day

    async def get_cached_summary(
        self, user_id: str, kind: CacheKind, day: date | None = None
    ) -> SummaryOutcome | None:
        """Read-only lookup; never generates."""
        cached = await self.access.get_cache(user_id, kind, self.cache_key(kind, day))
        return _from_cache(cached) if cached is not None else None

    async def daily_summary(
        self, user_id: str, day: date | None = None, force: bool = False
    ) -> SummaryOutcome:
        """Summary of one day's records. Cached per (user, day)."""
        now = self.now_fn()
        day = day or now.date()

        if not force:
            cached = await self.access.get_cache(user_id, CacheKind.DAILY, day)
            if cached is not None:
                return _from_cache(cached)

        day_start = datetime.combine(day, time.min)
        day_end = day_start + timedelta(days=1)
        records = await self.access.fetch_records(user_id, day_start, day_end)
        if not records:
            return SummaryOutcome(
                kind=CacheKind.DAILY, date=day, has_enough_data=False, message=NO_ACTIVITY_MESSAGE
            )

        # Open records on a past day are closed at midnight
        reference = min(now, day_end)
        metrics = calculate_focus_metrics(records, self.rules, now=reference)
        score = calculate_focus_score(metrics)

        result = await run_daily_summary(self.generator, records, metrics, score, now=reference)
        return await self._finish(
            user_id, CacheKind.DAILY, day, result, extra={"metrics": metrics.to_dict()}
        )

    async def weekly_summary(
        self, user_id: str, week_start: date | None = None, force: bool = False
    ) -> SummaryOutcome:
        """Summary built from the week's cached daily summaries."""
        week_start = self.cache_key(CacheKind.WEEKLY, week_start)

        if not force:
            cached = await self.access.get_cache(user_id, CacheKind.WEEKLY, week_start)
            if cached is not None:
                return _from_cache(cached)

        dailies = await self.access.list_caches(
            user_id, CacheKind.DAILY, week_start, week_start + timedelta(days=7)
        )
        if not dailies:
            return SummaryOutcome(
                kind=CacheKind.WEEKLY, date=week_start, has_enough_data=False, message=NO_DAILY_MESSAGE
            )

        result = await run_weekly_summary(self.generator, _summary_inputs(dailies))
        return await self._finish(
            user_id, CacheKind.WEEKLY, week_start, result, extra={"days": len(dailies)}
        )

    async def monthly_summary(
        self, user_id: str, month: date | None = None, force: bool = False
    ) -> SummaryOutcome:
        """Summary built from the month's cached weekly summaries."""
        month_start, next_month = month_bounds(self.cache_key(CacheKind.MONTHLY, month))

        if not force:
            cached = await self.access.get_cache(user_id, CacheKind.MONTHLY, month_start)
            if cached is not None:
                return _from_cache(cached)

        weeklies = await self.access.list_caches(user_id, CacheKind.WEEKLY, month_start, next_month)
        if not weeklies:
            return SummaryOutcome(
                kind=CacheKind.MONTHLY, date=month_start, has_enough_data=False, message=NO_WEEKLY_MESSAGE
            )

        result = await run_monthly_summary(self.generator, _summary_inputs(weeklies))
        return await self._finish(
            user_id, CacheKind.MONTHLY, month_start, result, extra={"weeks": len(weeklies)}
        )

    async def focus_report(self, user_id: str, day: date | None = None) -> dict[str, Any]:
        """
        Deterministic metrics and score for ``day`` plus patterns over the
        trailing window ending that day. No model call, nothing cached.
        """
        now = self.now_fn()
        day = day or now.date()
        day_start = datetime.combine(day, time.min)
        day_end = day_start + timedelta(days=1)
        reference = min(now, day_end)

        lookback_start = day_start - timedelta(days=self.patterns_config.lookback_days)
        window = await self.access.fetch_records(user_id, lookback_start, day_end)
        todays = [r for r in window if day_start <= r.start_time < day_end]

        metrics = calculate_focus_metrics(todays, self.rules, now=reference)
        patterns = analyze_patterns(window, self.rules, self.patterns_config, now=reference)

        return {
            "date": day.isoformat(),
            "record_count": len(todays),
            "metrics": metrics.to_dict(),
            "focus_score": calculate_focus_score(metrics),
            "patterns": patterns.to_dict(),
        }
