"""Logging setup for self-play.

Two streams share loguru: the game log (moves, boards, reports) and the raw
UCI traffic between the session and the engine. Traffic records are bound to
``PROTOCOL_CHANNEL`` and only reach the sinks when ``LoggingConfig.protocol``
is on, independently of the game log level.
"""

import sys
from pathlib import Path
from typing import Any

from loguru import logger

from selfplay.configs.schema import LoggingConfig

PROTOCOL_CHANNEL = "uci"

# Use for every line sent to or read from the engine.
protocol_logger = logger.bind(channel=PROTOCOL_CHANNEL)

_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[channel]}</cyan> | "
    "<level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[channel]} | {name}:{line} | {message}"


def _channel_filter(level: str, protocol: bool):
    threshold = logger.level(level).no

    def accept(record: dict[str, Any]) -> bool:
        if record["extra"]["channel"] == PROTOCOL_CHANNEL:
            return protocol
        return record["level"].no >= threshold

    return accept


def setup_logging(config: LoggingConfig | None = None, *, verbose: bool = False) -> None:
    """Configure loguru sinks from the ``logging`` config section.

    Args:
        config: Level, optional log file and whether to log UCI traffic.
        verbose: Lower the game log to DEBUG if it is set higher.
    """
    config = config or LoggingConfig()
    level = config.level.upper()
    if verbose and logger.level(level).no > logger.level("DEBUG").no:
        level = "DEBUG"

    logger.remove()
    logger.configure(extra={"channel": "game"})
    # Sinks accept everything; the filter decides per channel.
    logger.add(
        sys.stderr,
        level="TRACE",
        format=_CONSOLE_FORMAT,
        filter=_channel_filter(level, config.protocol),
        colorize=True,
    )

    if config.file:
        log_file = Path(config.file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level="TRACE",
            format=_FILE_FORMAT,
            filter=_channel_filter(level, config.protocol),
            rotation=config.rotation,
            retention=config.retention,
            compression="gz",
            encoding="utf-8",
        )

    logger.debug(
        f"Game log at {level}, UCI traffic {'on' if config.protocol else 'off'}"
        + (f", file {config.file}" if config.file else "")
    )
