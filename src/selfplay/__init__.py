"""selfplay: let a UCI chess engine play itself and report the game.

- `from selfplay.uci import EngineSession` talks to the engine process
- `from selfplay.game import SelfPlayRunner, run_selfplay` plays a game
- `from selfplay.chess import lan_to_san` converts UCI moves to SAN
"""

__version__ = "0.1.0"

from selfplay.chess import NotationError, lan_to_san
from selfplay.game import GameReport, GameResult, GameTermination, SelfPlayRunner, run_selfplay
from selfplay.uci import EngineSession
from selfplay.utils import load_selfplay_config, setup_logging

__all__ = [
    "EngineSession",
    "GameReport",
    "GameResult",
    "GameTermination",
    "NotationError",
    "SelfPlayRunner",
    "__version__",
    "lan_to_san",
    "load_selfplay_config",
    "run_selfplay",
    "setup_logging",
]
