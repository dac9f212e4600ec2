"""Tests for configuration loading."""

import logging

import pytest
from pydantic import ValidationError

from code_intel.core.config import (
    EngineConfig,
    GraphConfig,
    ThresholdConfig,
    clear_config_cache,
    load_config,
)


class TestLoadConfig:
    def setup_method(self):
        clear_config_cache()

    def test_missing_file_returns_defaults(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            config = load_config(tmp_path / "code-intel.yaml")
        assert config.thresholds.max_cyclomatic == 10
        assert config.graph.default_max_depth == 3
        assert "Config file not found" in caplog.text

    def test_yaml_values_and_env_expansion(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CI_LOG_LEVEL", "debug")
        path = tmp_path / "code-intel.yaml"
        path.write_text(
            "log_level: ${CI_LOG_LEVEL}\n"
            "thresholds:\n  max_cyclomatic: 12\n"
            "scan:\n  exclude_dirs: [vendor]\n"
        )
        config = load_config(path)
        assert config.log_level == "DEBUG"
        assert config.thresholds.max_cyclomatic == 12
        assert config.thresholds.max_cognitive == 15
        assert config.scan.exclude_dirs == ["vendor"]

    def test_cached_until_file_changes(self, tmp_path):
        path = tmp_path / "code-intel.yaml"
        path.write_text("log_level: INFO\n")
        assert load_config(path) is load_config(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "code-intel.yaml"
        path.write_text("")
        assert load_config(path) == EngineConfig()


class TestValidation:
    def test_thresholds_must_be_positive(self):
        with pytest.raises(ValidationError):
            ThresholdConfig(max_cyclomatic=0)

    def test_extension_needs_dot(self):
        with pytest.raises(ValidationError):
            GraphConfig(default_extension="ts")

    def test_log_level_name(self):
        with pytest.raises(ValidationError):
            EngineConfig(log_level="loud")
