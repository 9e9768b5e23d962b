"""Self-play game loop, state and reports."""

from selfplay.game.report import GameReport, moves_with_numbers
from selfplay.game.runner import (
    GameResult,
    GameTermination,
    RunnerState,
    SelfPlayRunner,
    SelfPlayStartupError,
    run_selfplay,
    save_report,
)
from selfplay.game.state import GameState, Ply

__all__ = [
    "GameReport",
    "GameResult",
    "GameState",
    "GameTermination",
    "Ply",
    "RunnerState",
    "SelfPlayRunner",
    "SelfPlayStartupError",
    "moves_with_numbers",
    "run_selfplay",
    "save_report",
]
