# chuk_ai_tool_intelligence/config.py
from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

# Durable storage root; empty means in-memory only
STORAGE_DIR = os.getenv("CHUK_TOOL_INTEL_STORAGE_DIR", "")

# Pre-loader budget and cache lifetime
MAX_PRELOADS = int(os.getenv("CHUK_TOOL_INTEL_MAX_PRELOADS", "10"))
PRELOAD_TTL_MINUTES = float(os.getenv("CHUK_TOOL_INTEL_PRELOAD_TTL_MINUTES", "30"))
SWEEP_INTERVAL_SECONDS = float(os.getenv("CHUK_TOOL_INTEL_SWEEP_INTERVAL_SECONDS", "30"))

# Feedback adaptation cadence
ADAPTATION_HOURS = float(os.getenv("CHUK_TOOL_INTEL_ADAPTATION_HOURS", "24"))
MIN_FEEDBACK_COUNT = int(os.getenv("CHUK_TOOL_INTEL_MIN_FEEDBACK", "5"))
INSIGHT_CONFIDENCE_THRESHOLD = float(os.getenv("CHUK_TOOL_INTEL_CONFIDENCE_THRESHOLD", "0.8"))
ADAPTATION_CHECK_SECONDS = float(os.getenv("CHUK_TOOL_INTEL_ADAPTATION_CHECK_SECONDS", "3600"))

# Registry
PERFORMANCE_HISTORY_LIMIT = int(os.getenv("CHUK_TOOL_INTEL_HISTORY_LIMIT", "100"))

LOG_LEVEL = os.getenv("CHUK_TOOL_INTEL_LOG_LEVEL", "WARNING")


class EngineConfig(BaseModel):
    """Top-level settings for a ToolIntelligenceEngine."""

    storage_dir: str = Field(default="")
    max_preloads: int = Field(default=10, ge=1)
    preload_ttl_minutes: float = Field(default=30.0, gt=0)
    sweep_interval_seconds: float = Field(default=30.0, gt=0)
    adaptation_hours: float = Field(default=24.0, ge=0)
    min_feedback_count: int = Field(default=5, ge=0)
    insight_confidence_threshold: float = Field(default=0.8, ge=0, le=1)
    adaptation_check_seconds: float = Field(default=3600.0, gt=0)
    performance_history_limit: int = Field(default=100, ge=1)

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Build a config from the CHUK_TOOL_INTEL_* environment variables."""
        return cls(
            storage_dir=STORAGE_DIR,
            max_preloads=MAX_PRELOADS,
            preload_ttl_minutes=PRELOAD_TTL_MINUTES,
            sweep_interval_seconds=SWEEP_INTERVAL_SECONDS,
            adaptation_hours=ADAPTATION_HOURS,
            min_feedback_count=MIN_FEEDBACK_COUNT,
            insight_confidence_threshold=INSIGHT_CONFIDENCE_THRESHOLD,
            adaptation_check_seconds=ADAPTATION_CHECK_SECONDS,
            performance_history_limit=PERFORMANCE_HISTORY_LIMIT,
        )


def setup_logging(level: str | int | None = None) -> None:
    """Apply a log level to the package logger (handlers are left to the host)."""
    logging.getLogger("chuk_ai_tool_intelligence").setLevel(level or LOG_LEVEL)
