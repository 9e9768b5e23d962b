"""Shared utilities for selfplay."""

from selfplay.utils.config import load_config, load_selfplay_config, save_config
from selfplay.utils.logging import setup_logging

__all__ = ["load_config", "load_selfplay_config", "save_config", "setup_logging"]
