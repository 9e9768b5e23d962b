"""Mutable state of one self-play game."""

from dataclasses import dataclass, field

import chess

from selfplay.uci.protocol import normalize_fen, position_command, side_to_move_is_black


@dataclass(frozen=True)
class Ply:
    """One move of the game."""

    uci: str
    san: str
    fen_before: str = ""


@dataclass
class GameState:
    """Moves played so far and how often each position was reached.

    The ply list only grows, and position counts never decrease. Positions
    are keyed by their FEN without the halfmove clock and fullmove number.
    """

    start_fen: str = chess.STARTING_FEN
    plies: list[Ply] = field(default_factory=list)
    position_counts: dict[str, int] = field(default_factory=dict)
    black_to_move: bool = field(init=False)

    def __post_init__(self) -> None:
        self.black_to_move = side_to_move_is_black(self.start_fen)

    @property
    def moves(self) -> list[str]:
        """Played moves in UCI notation."""
        return [ply.uci for ply in self.plies]

    @property
    def san_moves(self) -> list[str]:
        return [ply.san for ply in self.plies]

    @property
    def ply_count(self) -> int:
        return len(self.plies)

    def position_command(self) -> str:
        """The ``position`` command describing the current position."""
        return position_command(self.start_fen, self.moves)

    def record_position(self, fen: str) -> int:
        """Count one occurrence of ``fen`` and return its new total."""
        key = normalize_fen(fen)
        count = self.position_counts.get(key, 0) + 1
        self.position_counts[key] = count
        return count

    def occurrences(self, fen: str) -> int:
        return self.position_counts.get(normalize_fen(fen), 0)

    def append(self, ply: Ply) -> None:
        self.plies.append(ply)
