"""Configuration loading, schema, and defaults."""

from diffgate.config.loader import ConfigError, load_config, validate_config
from diffgate.config.schema import (
    AnalysisConfig,
    ClassificationConfig,
    DiffGateConfig,
    LimitsConfig,
    OutputConfig,
    WeightsConfig,
)

__all__ = [
    "AnalysisConfig",
    "ClassificationConfig",
    "ConfigError",
    "DiffGateConfig",
    "LimitsConfig",
    "OutputConfig",
    "WeightsConfig",
    "load_config",
    "validate_config",
]
