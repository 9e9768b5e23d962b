"""Game reports in PGN form."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

import chess

from selfplay.uci.protocol import side_to_move_is_black


def moves_with_numbers(moves: Sequence[str], black_first: bool = False) -> str:
    """Render a move list with move numbers.

    Numbering starts at 1. When black moves first the opening move is
    written as a continuation, ``1... e5 2. Nf3 ...``.

    Args:
        moves: Moves in play order, in any notation.
        black_first: Whether the first move was played by black.

    Returns:
        The movetext, e.g. ``1. e4 e5 2. Nf3``.
    """
    parts = []
    move_number = 1
    for i, move in enumerate(moves):
        white_to_move = (i % 2 == 0) != black_first
        if i == 0 and black_first:
            parts.append(f"{move_number}...")
            move_number += 1
        elif white_to_move:
            parts.append(f"{move_number}.")
            move_number += 1
        parts.append(move)
    return " ".join(parts)


@dataclass
class GameReport:
    """Finished game: starting position plus the moves played from it."""

    start_fen: str
    san_moves: list[str]
    uci_moves: list[str] = field(default_factory=list)
    termination: str | None = None
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def black_first(self) -> bool:
        return side_to_move_is_black(self.start_fen)

    @property
    def movetext(self) -> str:
        return moves_with_numbers(self.san_moves, self.black_first)

    @property
    def result(self) -> str:
        """PGN result of the final position, ``*`` if it is undecided."""
        board = chess.Board(self.start_fen)
        for move in self.uci_moves:
            board.push_uci(move)
        return board.result(claim_draw=True)

    def render(self) -> str:
        """``[FEN "..."]`` header followed by the numbered movetext."""
        return f'[FEN "{self.start_fen}"]\n{self.movetext}'.strip()

    def to_pgn(
        self,
        white: str = "Engine",
        black: str = "Engine",
        event: str = "Self-play",
        round_num: int = 1,
    ) -> str:
        """Generate a full PGN string for this game."""
        result = self.result
        lines = [
            f'[Event "{event}"]',
            '[Site "Local"]',
            f'[Date "{self.timestamp[:10].replace("-", ".")}"]',
            f'[Round "{round_num}"]',
            f'[White "{white}"]',
            f'[Black "{black}"]',
            f'[Result "{result}"]',
            f'[FEN "{self.start_fen}"]',
            '[SetUp "1"]',
        ]
        if self.termination:
            lines.append(f'[Termination "{self.termination}"]')
        lines.append("")

        move_text = self.movetext
        if move_text:
            move_text += " "
        move_text += result

        lines.append(move_text)
        lines.append("")

        return "\n".join(lines)

    def __str__(self) -> str:
        return self.render()
