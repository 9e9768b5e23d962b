"""Configuration loading utilities."""

from pathlib import Path
from typing import Any

from omegaconf import DictConfig, OmegaConf

from selfplay.configs.schema import SelfPlayConfig, config_from_dict, config_to_dict


def load_config(
    config_path: str | Path | None = None, overrides: list[str] | None = None
) -> DictConfig:
    """Load a configuration file with optional overrides.

    Args:
        config_path: Path to the YAML configuration file. None starts from
            an empty config, so everything comes from the overrides.
        overrides: Optional list of CLI-style overrides (e.g., ["game.thinking_time=500"]).

    Returns:
        Merged configuration as a DictConfig.
    """
    if config_path is None:
        config = OmegaConf.create({})
    else:
        config_path = Path(config_path)
        if not config_path.exists():
            msg = f"Config file not found: {config_path}"
            raise FileNotFoundError(msg)
        config = OmegaConf.load(config_path)

    if overrides:
        override_conf = OmegaConf.from_dotlist(overrides)
        config = OmegaConf.merge(config, override_conf)

    return config


def load_selfplay_config(
    config_path: str | Path | None = None, overrides: list[str] | None = None
) -> SelfPlayConfig:
    """Load a YAML file and convert it to a typed ``SelfPlayConfig``."""
    return config_from_dict(load_config(config_path, overrides))


def save_config(config: SelfPlayConfig | DictConfig | dict[str, Any], path: str | Path) -> None:
    """Save a configuration to a YAML file.

    Args:
        config: Configuration to save.
        path: Path to save the configuration to.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(config, SelfPlayConfig):
        config = config_to_dict(config)
    if isinstance(config, dict):
        config = OmegaConf.create(config)

    OmegaConf.save(config, path)
