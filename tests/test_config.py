# tests/test_config.py
"""Tests for engine configuration."""

import logging

import pytest
from pydantic import ValidationError

from chuk_ai_tool_intelligence import config
from chuk_ai_tool_intelligence.config import EngineConfig, setup_logging


class TestEngineConfig:
    def test_defaults(self):
        cfg = EngineConfig()

        assert cfg.storage_dir == ""
        assert cfg.max_preloads == 10
        assert cfg.preload_ttl_minutes == 30
        assert cfg.min_feedback_count == 5
        assert cfg.insight_confidence_threshold == 0.8

    def test_from_env_reads_module_settings(self, monkeypatch):
        monkeypatch.setattr(config, "MAX_PRELOADS", 3)
        monkeypatch.setattr(config, "STORAGE_DIR", "/var/lib/tool-intel")

        cfg = EngineConfig.from_env()

        assert cfg.max_preloads == 3
        assert cfg.storage_dir == "/var/lib/tool-intel"

    def test_rejects_bad_values(self):
        with pytest.raises(ValidationError):
            EngineConfig(max_preloads=0)
        with pytest.raises(ValidationError):
            EngineConfig(insight_confidence_threshold=1.5)


def test_setup_logging():
    package_logger = logging.getLogger("chuk_ai_tool_intelligence")
    previous = package_logger.level
    try:
        setup_logging("INFO")
        assert package_logger.level == logging.INFO
    finally:
        package_logger.setLevel(previous)
