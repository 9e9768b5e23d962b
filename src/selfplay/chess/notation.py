"""UCI (long algebraic) to SAN conversion.

The engine only speaks UCI moves such as ``e2e4`` or ``b7a8q``. Game reports
use standard algebraic notation, which needs the position to resolve piece
letters, captures, disambiguation and check marks.
"""

from collections.abc import Iterable

import chess
from loguru import logger


class NotationError(ValueError):
    """Raised when a move cannot be converted to SAN."""

    pass


def lan_to_san(fen: str, board: chess.Board, lan: str) -> str:
    """Convert a UCI move to SAN with a ``+`` or ``#`` suffix.

    The move is applied to a scratch board built from ``fen``; ``board`` is
    only used for disambiguation and is never modified.

    Args:
        fen: Position the move is played from.
        board: Board in the same position, used to render the SAN.
        lan: The move in UCI notation (e.g. "e5f6").

    Returns:
        The move in SAN (e.g. "exf6", "bxa8=Q", "Qxf7#").

    Raises:
        NotationError: If an argument is missing, the FEN is malformed, or
            the move is not legal in the position.
    """
    _validate(fen, board, lan)

    try:
        scratch = chess.Board(fen)
    except ValueError as e:
        raise NotationError(f"Invalid 'fen' {fen!r}: {e}") from e

    logger.trace(f"Board:\n{scratch}")

    try:
        move = chess.Move.from_uci(lan)
    except ValueError as e:
        raise NotationError(f"Invalid LAN move: {lan}") from e

    if not scratch.is_legal(move) or not board.is_legal(move):
        raise NotationError(f"Invalid LAN move: {lan}")

    if scratch.is_en_passant(move):
        san = f"{lan[0]}x{lan[2:4]}"
        logger.info(f"En passant move found: {san}")
    else:
        # The library appends its own check marks; they are recomputed below.
        san = board.san(move).rstrip("+#")

    scratch.push(move)
    if scratch.is_checkmate():
        san += "#"
    elif scratch.is_check():
        san += "+"

    logger.debug(f"LAN: {lan} -> SAN: {san}")
    return san


def uci_line_to_san(fen: str, moves: Iterable[str]) -> list[str]:
    """Convert a sequence of UCI moves played from ``fen`` to SAN.

    Raises:
        NotationError: On the first move that is not legal.
    """
    try:
        board = chess.Board(fen)
    except ValueError as e:
        raise NotationError(f"Invalid 'fen' {fen!r}: {e}") from e

    sans = []
    for lan in moves:
        sans.append(lan_to_san(board.fen(), board, lan))
        board.push_uci(lan)
    return sans


def _validate(fen: str, board: chess.Board, lan: str) -> None:
    if not fen:
        raise NotationError("The 'fen' parameter must not be null or empty")
    if board is None:
        raise NotationError("The 'board' parameter must not be null")
    if not lan:
        raise NotationError("The 'lan' parameter must not be null or empty")
