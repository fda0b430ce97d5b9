"""
FocusLog - Focus-pattern analytics and routine synthesis

Turns a window of time-stamped activity records into focus metrics,
a 0-100 focus score, recurring behavioral patterns and a suggested
daily routine, optionally refined by a language model.

Packages:
    insights/: Deterministic core (metrics, score, patterns, routine)
    ai/: Prompt templates, defensive JSON parsing, LLM adapter
    storage/: Record store interface and SQLite implementation
    services/: Orchestration, caching and rate limiting
    api/: FastAPI surface
"""

from pathlib import Path

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent
PACKAGE_ROOT = Path(__file__).parent
DATA_DIR = PROJECT_ROOT / "data"
ARGS_DIR = PROJECT_ROOT / "args"

__version__ = "0.1.0"

__all__ = [
    "ARGS_DIR",
    "DATA_DIR",
    "PACKAGE_ROOT",
    "PROJECT_ROOT",
    "__version__",
]
