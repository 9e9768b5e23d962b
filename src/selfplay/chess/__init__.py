"""Chess notation utilities."""

from selfplay.chess.notation import NotationError, lan_to_san, uci_line_to_san

__all__ = [
    "NotationError",
    "lan_to_san",
    "uci_line_to_san",
]
