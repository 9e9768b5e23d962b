"""Configuration schemas."""

from selfplay.configs.schema import (
    EngineConfig,
    GameConfig,
    LoggingConfig,
    OutputConfig,
    SelfPlayConfig,
    config_from_dict,
    config_to_dict,
    parse_thinking_time,
)

__all__ = [
    "EngineConfig",
    "GameConfig",
    "LoggingConfig",
    "OutputConfig",
    "SelfPlayConfig",
    "config_from_dict",
    "config_to_dict",
    "parse_thinking_time",
]
