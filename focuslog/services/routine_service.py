"""
Tool: Routine Service
Purpose: Serve one routine per user per day, generating it at most as
often as the rate limit allows

States per (user, day):
    NoCache -> Generating -> Cached

Generation path (POST):
    1. Today's cache exists               -> return it (cached)
    2. A routine was written < 10 min ago -> return it (cached)
    3. >= 3 attempts in the rolling hour  -> RoutineRateLimitError
    4. Fetch the 7-day lookback (one retry on schema-cache errors)
    5. No usable records                  -> default routine, has_enough_data=False
    6. Patterns -> baseline -> AI coach
    7. AI rate limited                    -> yesterday's cache if any
    8. Upsert today's row (best effort)

Steps 1 and 2 are skipped with ``force=True``; the rate limit never is.
A per-(user, day) lock serializes concurrent requests so at most one
generation runs for the same key.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any

from focuslog.ai.client import TextGenerator
from focuslog.ai.coach import run_routine_coach
from focuslog.config_models import PatternsConfig, RoutineServiceConfig
from focuslog.insights.classification import DEFAULT_RULES, ClassificationRules
from focuslog.insights.models import ActivityRecord, FocusPatterns, RoutineRecommendation
from focuslog.insights.pattern_analyzer import analyze_patterns
from focuslog.insights.routine_builder import build_routine
from focuslog.services.common import StorageMisconfiguredError, StoreAccess
from focuslog.storage.base import (
    CachedSummary,
    CacheKind,
    RecordStore,
    SchemaCacheError,
    SchemaMissingError,
    StorageError,
)

logger = logging.getLogger(__name__)


INSUFFICIENT_DATA_EXPLANATION = (
    "Track at least 7 days of activities to get personalized routine suggestions."
)
RECENT_MESSAGE = "Using recently generated routine (generated within last 10 minutes)"
AI_RATE_LIMITED_MESSAGE = "Too many AI requests right now. Showing your last saved routine."
RATE_LIMIT_MESSAGE = "You're generating routines too frequently. Try again later."


class RoutineRateLimitError(Exception):
    """The user hit the generation cap for the rolling window."""

    def __init__(self, retry_after_seconds: int, message: str = RATE_LIMIT_MESSAGE):
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


@dataclass
class RoutineOutcome:
    routine: RoutineRecommendation | None
    explanation: str = ""
    has_enough_data: bool = True
    cached: bool = False
    saved: bool = False
    ai_enriched: bool = False
    date: date | None = None
    message: str | None = None
    patterns: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "routine": self.routine.to_dict() if self.routine else None,
            "explanation": self.explanation,
            "has_enough_data": self.has_enough_data,
            "cached": self.cached,
            "saved": self.saved,
            "ai_enriched": self.ai_enriched,
            "date": self.date.isoformat() if self.date else None,
            "message": self.message,
            "patterns": self.patterns,
        }


def routine_cache_payload(routine: RoutineRecommendation, ai_enriched: bool) -> dict[str, Any]:
    return {"routine": routine.to_dict(), "ai_enriched": ai_enriched}


def outcome_from_cache(cache: CachedSummary, message: str | None = None) -> RoutineOutcome:
    routine = RoutineRecommendation.from_dict(cache.payload.get("routine") or {})
    return RoutineOutcome(
        routine=routine,
        explanation=routine.explanation,
        has_enough_data=True,
        cached=True,
        saved=True,
        ai_enriched=bool(cache.payload.get("ai_enriched", False)),
        date=cache.date,
        message=message,
    )


def pattern_overview(patterns: FocusPatterns) -> dict[str, Any]:
    return {
        "peak_hours": [p.to_dict() for p in patterns.peak_hours[:3]],
        "energy_curve": patterns.energy_curve.to_dict(),
        "deep_work_count": len(patterns.deep_work_windows),
    }


@dataclass
class _Locks:
    by_key: dict[tuple[str, date], asyncio.Lock] = field(default_factory=dict)

    def get(self, user_id: str, day: date) -> asyncio.Lock:
        # Drop idle locks from previous days
        for key in [k for k, lock in self.by_key.items() if k[1] != day and not lock.locked()]:
            del self.by_key[key]
        return self.by_key.setdefault((user_id, day), asyncio.Lock())


class RoutineService:
    def __init__(
        self,
        store: RecordStore,
        generator: TextGenerator | None = None,
        config: RoutineServiceConfig | None = None,
        rules: ClassificationRules = DEFAULT_RULES,
        patterns_config: PatternsConfig | None = None,
        now_fn: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.store = store
        self.generator = generator
        self.config = config or RoutineServiceConfig()
        self.rules = rules
        self.patterns_config = patterns_config or PatternsConfig()
        self.now_fn = now_fn
        self.access = StoreAccess(store, retry_delay=self.config.schema_retry_delay_seconds, sleep=sleep)
        self._locks = _Locks()

    # -------------------------------------------------------------------------
    # Read path
    # -------------------------------------------------------------------------

    async def get_cached_routine(self, user_id: str) -> RoutineOutcome | None:
        """Today's cached routine, else yesterday's, else None."""
        today = self.now_fn().date()

        for day in (today, today - timedelta(days=1)):
            cache = await self.access.get_cache(user_id, CacheKind.ROUTINE, day)
            if cache is not None:
                logger.debug(f"Routine cache hit for {user_id} on {day}")
                return outcome_from_cache(cache)

        return None

    # -------------------------------------------------------------------------
    # Generation path
    # -------------------------------------------------------------------------

    async def _retry_after(self, user_id: str, now: datetime, window: timedelta) -> int:
        earliest = None
        try:
            earliest = await self.store.earliest_generation(user_id, CacheKind.ROUTINE, now - window)
        except StorageError as e:
            logger.debug(f"Could not compute retry-after: {e}")
        if earliest is None:
            return int(window.total_seconds())
        return max(1, int((earliest + window - now).total_seconds()))

    async def _check_rate_limit(self, user_id: str, now: datetime) -> None:
        window = timedelta(minutes=self.config.rate_window_minutes)
        try:
            attempts = await self.access.retrying(
                lambda: self.store.count_generations(user_id, CacheKind.ROUTINE, now - window)
            )
        except (SchemaMissingError, SchemaCacheError) as e:
            logger.warning(f"Generation log unavailable, skipping rate limit: {e}")
            return

        if attempts >= self.config.max_generations_per_window:
            retry_after = await self._retry_after(user_id, now, window)
            logger.info(f"Routine rate limit hit for {user_id} ({attempts} attempts)")
            raise RoutineRateLimitError(retry_after_seconds=retry_after)

    async def _fetch_lookback(self, user_id: str, now: datetime) -> list[ActivityRecord]:
        end = datetime.combine(now.date() + timedelta(days=1), time.min)
        start = datetime.combine(now.date() - timedelta(days=self.config.lookback_days), time.min)
        return await self.access.fetch_records(user_id, start, end)

    async def generate_routine(self, user_id: str, force: bool = False) -> RoutineOutcome:
        """
        Run the generation state machine for today.

        Raises:
            RoutineRateLimitError: If the rolling-hour cap is reached
            StorageMisconfiguredError: If the activity table is missing
        """
        today = self.now_fn().date()

        async with self._locks.get(user_id, today):
            now = self.now_fn()

            if not force:
                cached = await self.access.get_cache(user_id, CacheKind.ROUTINE, today)
                if cached is not None:
                    logger.info(f"Serving today's cached routine for {user_id}")
                    return outcome_from_cache(cached)

                recency = timedelta(minutes=self.config.cache_recency_minutes)
                recent = await self.access.read_cache(
                    lambda: self.store.get_latest_cache(user_id, CacheKind.ROUTINE, now - recency)
                )
                if recent is not None:
                    logger.info(f"Serving recently generated routine for {user_id}")
                    return outcome_from_cache(recent, message=RECENT_MESSAGE)

            await self._check_rate_limit(user_id, now)

            records = await self._fetch_lookback(user_id, now)
            if len(records) < self.config.min_records:
                logger.info(f"Not enough activity for {user_id} to build a routine")
                return RoutineOutcome(
                    routine=build_routine(None),
                    explanation=INSUFFICIENT_DATA_EXPLANATION,
                    has_enough_data=False,
                    date=today,
                )

            try:
                await self.store.record_generation(user_id, CacheKind.ROUTINE, now)
            except StorageError as e:
                logger.warning(f"Could not record generation for {user_id}: {e}")

            patterns = analyze_patterns(records, self.rules, self.patterns_config, now=now)
            baseline = build_routine(patterns)
            coached = await run_routine_coach(self.generator, patterns, baseline)

            if coached.rate_limited:
                yesterday = await self.access.get_cache(
                    user_id, CacheKind.ROUTINE, today - timedelta(days=1)
                )
                if yesterday is not None:
                    logger.info(f"AI rate limited, serving yesterday's routine for {user_id}")
                    return outcome_from_cache(yesterday, message=AI_RATE_LIMITED_MESSAGE)

            saved = await self.access.save_cache(
                user_id,
                CacheKind.ROUTINE,
                today,
                routine_cache_payload(coached.routine, coached.ai_enriched),
                now,
            )

            return RoutineOutcome(
                routine=coached.routine,
                explanation=coached.routine.explanation,
                has_enough_data=True,
                cached=False,
                saved=saved,
                ai_enriched=coached.ai_enriched,
                date=today,
                patterns=pattern_overview(patterns),
            )


__all__ = [
    "RoutineOutcome",
    "RoutineRateLimitError",
    "RoutineService",
    "StorageMisconfiguredError",
]
