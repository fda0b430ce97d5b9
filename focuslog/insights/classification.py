"""
Category Classification

Maps a free-text category name onto the flags the analytics need, using a
case-insensitive substring match against a keyword table. The table is a
parameter so callers (and tests) can substitute their own rules.

    "Deep Work"   -> work, deep work
    "Coding"      -> work
    "Coffee Break"-> break
    "Doomscroll Waste" -> low value
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from focuslog.config_models import ClassificationConfig


@dataclass(frozen=True)
class ClassificationRules:
    work_keywords: tuple[str, ...] = ("Work", "Deep Work", "Coding", "Learning")
    deep_work_keywords: tuple[str, ...] = ("deep",)
    break_keywords: tuple[str, ...] = ("Break", "Rest")
    low_value_keywords: tuple[str, ...] = ("Waste", "Distraction")

    @classmethod
    def from_config(cls, config: ClassificationConfig) -> ClassificationRules:
        return cls(
            work_keywords=tuple(config.work_keywords),
            deep_work_keywords=tuple(config.deep_work_keywords),
            break_keywords=tuple(config.break_keywords),
            low_value_keywords=tuple(config.low_value_keywords),
        )


@dataclass(frozen=True)
class Classification:
    is_work: bool
    is_deep_work: bool
    is_break: bool
    is_low_value: bool = False

    @property
    def is_distraction(self) -> bool:
        return self.is_break or self.is_low_value


DEFAULT_RULES = ClassificationRules()


def _matches(name: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword.lower() in name for keyword in keywords)


def classify_category(name: str | None, rules: ClassificationRules = DEFAULT_RULES) -> Classification:
    """Classify a category name. Empty or missing names match nothing."""
    lowered = (name or "").lower()
    if not lowered:
        return Classification(is_work=False, is_deep_work=False, is_break=False)

    return Classification(
        is_work=_matches(lowered, rules.work_keywords),
        is_deep_work=_matches(lowered, rules.deep_work_keywords),
        is_break=_matches(lowered, rules.break_keywords),
        is_low_value=_matches(lowered, rules.low_value_keywords),
    )
