"""
Defensive JSON extraction from model output.

Models wrap JSON in markdown fences, prefix it with chatter, or append
trailing commentary. ``parse_json_response`` recovers the first JSON
object it can find and returns None for anything else. It never raises.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any


logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)
_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Return the content of the first fenced block, or the text unchanged."""
    match = _FENCE_RE.search(text)
    return match.group(1).strip() if match else text.strip()


def parse_json_response(text: str | None) -> dict[str, Any] | None:
    """
    Extract the first JSON object from model output.

    Args:
        text: Raw model output (may be None)

    Returns:
        The decoded object, or None if no object could be decoded
    """
    if not text or not isinstance(text, str):
        return None

    candidate = strip_code_fences(text)
    start = candidate.find("{")
    if start == -1:
        return None

    decoder = json.JSONDecoder()
    try:
        value, _ = decoder.raw_decode(candidate[start:])
    except (ValueError, RecursionError):
        # Greedy fallback: outermost braces
        match = _OBJECT_RE.search(candidate)
        if not match:
            return None
        try:
            value = json.loads(match.group(0))
        except (ValueError, RecursionError) as e:
            logger.debug(f"Unparseable model output: {e}")
            return None

    return value if isinstance(value, dict) else None
