from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

from focuslog import ARGS_DIR, DATA_DIR, PROJECT_ROOT

logger = logging.getLogger(__name__)

CONFIG_PATH = ARGS_DIR / "focuslog.yaml"


# =============================================================================
# Classification
# =============================================================================

class ClassificationConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    work_keywords: list[str] = Field(
        default_factory=lambda: ["Work", "Deep Work", "Coding", "Learning"]
    )
    deep_work_keywords: list[str] = Field(default_factory=lambda: ["deep"])
    break_keywords: list[str] = Field(default_factory=lambda: ["Break", "Rest"])
    low_value_keywords: list[str] = Field(default_factory=lambda: ["Waste", "Distraction"])


# =============================================================================
# Pattern detection
# =============================================================================

class PatternsConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    lookback_days: int = Field(default=7, ge=1)
    merge_gap_minutes: int = Field(default=15, ge=0)
    min_deep_work_minutes: int = Field(default=45, ge=1)
    distraction_min_minutes: int = Field(default=15, ge=1)
    distraction_min_records: int = Field(default=3, ge=1)


# =============================================================================
# Orchestration
# =============================================================================

class RoutineServiceConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    lookback_days: int = Field(default=7, ge=1)
    cache_recency_minutes: int = Field(default=10, ge=0)
    max_generations_per_window: int = Field(default=3, ge=1)
    rate_window_minutes: int = Field(default=60, ge=1)
    min_records: int = Field(default=1, ge=1)
    schema_retry_delay_seconds: float = Field(default=2.0, ge=0.0)


# =============================================================================
# AI provider
# =============================================================================

class AIConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    enabled: bool = Field(default=True)
    api_key_env: str = Field(default="ANTHROPIC_API_KEY")
    model: str = Field(default="claude-3-5-haiku-latest")
    max_tokens: int = Field(default=1000, ge=1)
    temperature: float = Field(default=0.3, ge=0.0, le=1.0)
    timeout_seconds: float = Field(default=30.0, gt=0.0)


class StorageConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    db_path: str = Field(default=str(DATA_DIR / "focuslog.db"))

    def resolved_path(self) -> Path:
        path = Path(self.db_path)
        return path if path.is_absolute() else PROJECT_ROOT / path


class ApiConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8080, ge=1, le=65535)
    allowed_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )


# =============================================================================
# Logging
# =============================================================================

class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    level: str = Field(default="INFO")
    format: str = Field(default="console", pattern="^(console|json)$")
    colors: bool = Field(default=True)


class FocusLogConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)
    patterns: PatternsConfig = Field(default_factory=PatternsConfig)
    routine_service: RoutineServiceConfig = Field(default_factory=RoutineServiceConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# load_config
# =============================================================================

def load_config(path: Path | None = None) -> FocusLogConfig:
    """Load and validate args/focuslog.yaml, falling back to defaults."""
    yaml_path = path or CONFIG_PATH

    try:
        if yaml_path.exists():
            with open(yaml_path) as f:
                raw = yaml.safe_load(f) or {}
        else:
            raw = {}

        config = FocusLogConfig.model_validate(raw)
    except Exception as e:
        logger.warning(f"Config validation failed for {yaml_path}: {e}, using defaults")
        config = FocusLogConfig()

    db_override = os.environ.get("FOCUSLOG_DB_PATH")
    if db_override:
        config.storage.db_path = db_override

    return config
