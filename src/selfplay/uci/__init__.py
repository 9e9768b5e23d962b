"""UCI engine session and protocol helpers."""

from selfplay.uci.protocol import NO_MOVE, extract_bestmove, extract_fen, normalize_fen
from selfplay.uci.session import (
    EngineOutput,
    EngineSession,
    EngineSessionError,
    ReadStatus,
)

__all__ = [
    "NO_MOVE",
    "EngineOutput",
    "EngineSession",
    "EngineSessionError",
    "ReadStatus",
    "extract_bestmove",
    "extract_fen",
    "normalize_fen",
]
