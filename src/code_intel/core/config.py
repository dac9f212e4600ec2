"""Configuration loading and validation."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class ThresholdConfig(BaseModel):
    """Pass/fail limits for complexity metrics."""
    max_cyclomatic: int = 10
    max_cognitive: int = 15
    max_halstead_difficulty: float = 10.0

    @field_validator('max_cyclomatic', 'max_cognitive', 'max_halstead_difficulty')
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError(f"thresholds must be > 0, got {v}")
        return v


class ScanConfig(BaseModel):
    """Which files the source cache reads."""
    # Matched as path segments, e.g. "/node_modules/" anywhere in the relative path
    exclude_dirs: List[str] = Field(default_factory=lambda: [
        "node_modules", ".git", "venv", ".venv", "__pycache__",
        "dist", "build", ".dart_tool",
    ])
    max_file_size: int = 500_000  # bytes

    @field_validator('max_file_size')
    @classmethod
    def validate_max_file_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_file_size must be >= 1, got {v}")
        return v


class GraphConfig(BaseModel):
    """Dependency graph defaults."""
    default_max_depth: int = 3
    default_extension: str = ".ts"
    mermaid_max_nodes: int = 20
    cluster_preview_files: int = 5

    @field_validator('default_extension')
    @classmethod
    def validate_extension(cls, v: str) -> str:
        if not v.startswith("."):
            raise ValueError(f"default_extension must start with '.', got '{v}'")
        return v


class ReportConfig(BaseModel):
    """Text rendering limits."""
    max_results: int = 20


class ComplexityConfig(BaseModel):
    """Directory-level complexity scan settings."""
    max_path_files: int = 20
    skip_dirs: List[str] = Field(default_factory=lambda: ["node_modules", "dist"])


class EngineConfig(BaseSettings):
    """Main engine configuration."""
    thresholds: ThresholdConfig = Field(default_factory=ThresholdConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    graph: GraphConfig = Field(default_factory=GraphConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    complexity: ComplexityConfig = Field(default_factory=ComplexityConfig)
    log_level: str = "INFO"

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"log_level must be a logging level name, got '{v}'")
        return level

    class Config:
        env_prefix = "CODE_INTEL_"


CONFIG_PATH = Path("code-intel.yaml")

_config_cache: Dict[str, tuple] = {}


def _get_cached_or_load(resolved_path: Path, loader):
    """Return cached config if file mtime unchanged, else reload."""
    key = str(resolved_path)
    try:
        current_mtime = resolved_path.stat().st_mtime
    except FileNotFoundError:
        _config_cache.pop(key, None)
        return None

    cached = _config_cache.get(key)
    if cached is not None:
        cached_result, cached_mtime = cached
        if cached_mtime == current_mtime:
            return cached_result

    result = loader(resolved_path)
    _config_cache[key] = (result, current_mtime)
    return result


def _load_config_from_file(config_path: Path) -> EngineConfig:
    """Internal loader for engine config (no caching)."""
    with open(config_path) as f:
        data = yaml.safe_load(f) or {}
    data = _expand_env_vars(data)
    return EngineConfig(**data)


def load_config(config_path: Path = CONFIG_PATH) -> EngineConfig:
    """Load engine configuration from YAML file.

    Uses mtime-based caching: the cached config is returned while the file is unchanged.
    """
    if not config_path.exists():
        logger.warning(
            f"Config file not found: {config_path}. Using default configuration."
        )
        return EngineConfig()

    resolved = config_path.resolve()
    result = _get_cached_or_load(resolved, _load_config_from_file)
    return result if result is not None else EngineConfig()


def clear_config_cache() -> None:
    """Clear the module-level config cache. Useful for tests."""
    _config_cache.clear()


def _expand_env_vars(data: Any, _path: str = "") -> Any:
    """Recursively expand ``${VAR}`` string values from the environment."""
    if isinstance(data, dict):
        return {k: _expand_env_vars(v, f"{_path}.{k}" if _path else k) for k, v in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item, f"{_path}[{i}]") for i, item in enumerate(data)]
    elif isinstance(data, str) and data.startswith("${") and data.endswith("}"):
        env_var = data[2:-1]
        value = os.environ.get(env_var)
        if value is None:
            logger.warning(
                f"Environment variable '{env_var}' not set (referenced at config path: {_path or 'root'}). "
                f"The literal string '{data}' will be used."
            )
            return data
        return value
    return data
