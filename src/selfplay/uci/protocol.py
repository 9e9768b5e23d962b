"""UCI command builders and response parsers.

The engine answers in plain text lines. Every helper here works on the
accumulated text returned by ``EngineSession.read_until`` and never talks to
the process itself.
"""

import re
from collections.abc import Sequence

# Engine reply when the side to move has no legal move.
NO_MOVE = "(none)"

UCI_OK = "uciok"
BESTMOVE = "bestmove"
FEN_PREFIX = "Fen:"
PERFT_DONE = "Nodes searched"

BOARD_BORDER = "+---+---+---+---+---+---+---+---+"

_COUNTERS_RE = re.compile(r" \d+ \d+$")
_PERFT_LINE_RE = re.compile(r"^([a-h][1-8][a-h][1-8][qrbn]?):\s*\d+")

_GLYPHS = str.maketrans(
    {
        "K": "♔",
        "Q": "♕",
        "R": "♖",
        "B": "♗",
        "N": "♘",
        "P": "♙",
        "k": "♚",
        "q": "♛",
        "r": "♜",
        "b": "♝",
        "n": "♞",
        "p": "♟",
    }
)


def position_command(start_fen: str, moves: Sequence[str] = ()) -> str:
    """Build a ``position fen`` command.

    Args:
        start_fen: FEN of the position the game started from.
        moves: Moves played since then, in UCI notation.

    Returns:
        ``position fen <FEN>`` or ``position fen <FEN> moves m1 m2 ...``.
    """
    command = f"position fen {start_fen}"
    if moves:
        command += " moves " + " ".join(moves)
    return command


def go_movetime_command(thinking_time: int) -> str:
    return f"go movetime {thinking_time}"


def go_perft_command(depth: int = 1) -> str:
    return f"go perft {depth}"


def extract_bestmove(response: str) -> str:
    """Return the move after ``bestmove``, or ``""`` if there is none.

    Only a line that starts with ``bestmove`` counts; ``info`` lines that
    merely mention it are ignored.
    """
    for line in response.splitlines():
        line = line.strip()
        if line.startswith(BESTMOVE):
            parts = line.split()
            return parts[1] if len(parts) > 1 else ""
    return ""


def extract_fen(response: str) -> str:
    """Return the FEN from a ``d`` dump, or ``""`` if the line is missing."""
    for line in response.splitlines():
        line = line.strip()
        if line.startswith(FEN_PREFIX):
            return line[len(FEN_PREFIX):].strip()
    return ""


def normalize_fen(fen: str) -> str:
    """Strip the halfmove clock and fullmove number from a FEN.

    Two positions that differ only in those counters are the same position
    for repetition purposes.
    """
    return _COUNTERS_RE.sub("", fen.strip())


def side_to_move_is_black(fen: str) -> bool:
    """Whether the second field of ``fen`` says black moves first."""
    parts = fen.split()
    return len(parts) > 1 and parts[1] == "b"


def extract_perft_moves(response: str) -> list[str]:
    """Parse the ``<move>: <nodes>`` lines of a ``go perft`` listing."""
    moves = []
    for line in response.splitlines():
        match = _PERFT_LINE_RE.match(line.strip())
        if match:
            moves.append(match.group(1))
    return moves


def extract_board_diagram(response: str, *, glyphs: bool = True) -> str:
    """Cut the ASCII board out of a ``d`` dump.

    The diagram runs from the first border line up to the ``Fen:`` line; the
    file legend is kept, ``Fen:`` and everything after it are dropped.

    Args:
        response: Raw output of the ``d`` command.
        glyphs: Replace piece letters with Unicode chess glyphs.

    Returns:
        The diagram, or ``""`` if no board was found.
    """
    lines = response.splitlines()
    start = next((i for i, line in enumerate(lines) if BOARD_BORDER in line), None)
    if start is None:
        return ""

    board_lines = []
    for line in lines[start:]:
        if line.strip().startswith(FEN_PREFIX):
            break
        board_lines.append(line.rstrip())

    diagram = "\n".join(board_lines).strip()
    if glyphs:
        # Only the squares carry pieces; the legend and border stay ASCII.
        diagram = "\n".join(
            line.translate(_GLYPHS) if line.lstrip().startswith(("|", "+")) else line
            for line in diagram.splitlines()
        )
    return diagram

