"""Single retry for transient schema-cache errors."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from focuslog.storage.base import SchemaCacheError

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCHEMA_RETRY_DELAY_SECONDS = 2.0


async def with_schema_retry(
    operation: Callable[[], Awaitable[T]],
    delay: float = SCHEMA_RETRY_DELAY_SECONDS,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run ``operation``; on SchemaCacheError wait ``delay`` and run it once more.

    Only schema-cache errors are retried. A second failure propagates.
    """
    try:
        return await operation()
    except SchemaCacheError as e:
        logger.warning(f"Schema cache error, retrying in {delay}s: {e}")
        await sleep(delay)
        return await operation()
