"""Typed configuration schemas for self-play.

These dataclasses are the single source of truth for every option. YAML
files loaded with ``load_config`` are converted with ``config_from_dict``.
"""

from dataclasses import asdict, dataclass, field
from typing import Any

import chess
from loguru import logger
from omegaconf import DictConfig, OmegaConf

DEFAULT_THINKING_TIME = 1_000


@dataclass
class EngineConfig:
    """Configuration for the engine process."""

    path: str | None = None  # Required; there is no default engine
    args: list[str] = field(default_factory=list)
    handshake_timeout_ms: int = 5_000


@dataclass
class GameConfig:
    """Configuration for the self-play loop."""

    fen: str | None = None  # None = standard starting position
    thinking_time: int = DEFAULT_THINKING_TIME  # Milliseconds per move
    bestmove_timeout_ms: int = 75_000
    board_timeout_ms: int = 1_000
    perft_timeout_ms: int = 20_000
    draw_repetitions: int = 3
    max_plies: int | None = None  # None = play until the engine runs out of moves

    def __post_init__(self) -> None:
        """Validate."""
        if self.fen:
            try:
                chess.Board(self.fen)
            except ValueError as e:
                raise ValueError(f"Invalid game.fen {self.fen!r}: {e}") from e
        if self.draw_repetitions < 1:
            msg = f"draw_repetitions must be >= 1, got {self.draw_repetitions}"
            raise ValueError(msg)
        if self.max_plies is not None and self.max_plies < 0:
            msg = f"max_plies must be >= 0, got {self.max_plies}"
            raise ValueError(msg)


@dataclass
class OutputConfig:
    """Where the finished game goes."""

    pgn_path: str | None = None
    event: str = "Self-play"


@dataclass
class LoggingConfig:
    """Configuration for loguru sinks."""

    level: str = "INFO"
    file: str | None = None
    protocol: bool = False  # Log raw UCI traffic at TRACE
    rotation: str = "10 MB"
    retention: str = "1 week"

    def __post_init__(self) -> None:
        """Validate."""
        try:
            logger.level(self.level.upper())
        except ValueError as e:
            raise ValueError(f"Unknown log level {self.level!r}") from e


@dataclass
class SelfPlayConfig:
    """Complete application configuration."""

    engine: EngineConfig = field(default_factory=EngineConfig)
    game: GameConfig = field(default_factory=GameConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def parse_thinking_time(value: Any) -> int:
    """Parse a think time, falling back to the default on bad input."""
    if value is None:
        return DEFAULT_THINKING_TIME
    try:
        thinking_time = int(str(value).strip())
    except ValueError:
        logger.warning(
            f"Invalid thinking time in configuration ({value!r}). "
            f"Using default: {DEFAULT_THINKING_TIME}"
        )
        return DEFAULT_THINKING_TIME
    if thinking_time <= 0:
        logger.warning(
            f"Thinking time must be positive, got {thinking_time}. "
            f"Using default: {DEFAULT_THINKING_TIME}"
        )
        return DEFAULT_THINKING_TIME
    return thinking_time


def config_from_dict(raw: DictConfig | dict[str, Any] | None) -> SelfPlayConfig:
    """Build a ``SelfPlayConfig`` from a loaded YAML mapping.

    Missing sections and keys take their defaults.

    Raises:
        ValueError: If a section has an unknown key or an invalid value.
    """
    if isinstance(raw, DictConfig):
        raw = OmegaConf.to_container(raw, resolve=True)
    raw = dict(raw or {})

    try:
        engine_raw = dict(raw.get("engine") or {})
        engine_raw["args"] = [str(arg) for arg in engine_raw.get("args") or []]
        if engine_raw.get("path") is not None:
            engine_raw["path"] = str(engine_raw["path"])

        game_raw = dict(raw.get("game") or {})
        game_raw["thinking_time"] = parse_thinking_time(game_raw.get("thinking_time"))

        return SelfPlayConfig(
            engine=EngineConfig(**engine_raw),
            game=GameConfig(**game_raw),
            output=OutputConfig(**dict(raw.get("output") or {})),
            logging=LoggingConfig(**dict(raw.get("logging") or {})),
        )
    except TypeError as e:
        raise ValueError(f"Invalid configuration structure: {e}") from e


def config_to_dict(config: SelfPlayConfig) -> dict[str, Any]:
    """Convert a config back to plain dicts (for saving or logging)."""
    return asdict(config)
