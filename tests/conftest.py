"""Pytest configuration and shared fixtures."""

import sys
from collections.abc import Callable, Sequence
from pathlib import Path

import chess
import pytest
from loguru import logger

from fake_uci_engine import board_dump, choose_move, parse_position, perft_lines
from selfplay.uci.session import EngineOutput, ReadStatus

FAKE_ENGINE = Path(__file__).parent / "fake_uci_engine.py"


class ScriptedSession:
    """In-process stand-in for ``EngineSession``.

    Answers like the fake engine script, without a subprocess. Every command
    is recorded in ``sent``.
    """

    def __init__(
        self,
        moves: Sequence[str] = (),
        *,
        omit_bestmove: bool = False,
        omit_fen: bool = False,
        fail_on: str | None = None,
        start_ok: bool = True,
    ) -> None:
        self.script = list(moves)
        self.omit_bestmove = omit_bestmove
        self.omit_fen = omit_fen
        self.fail_on = fail_on
        self.start_ok = start_ok
        self.board = chess.Board()
        self.sent: list[str] = []
        self.pending: list[str] = []
        self.running = False
        self.stop_calls = 0

    @property
    def name(self) -> str:
        return "Scripted"

    def start(self, executable_path, args=(), *, handshake_timeout_ms=5_000) -> bool:
        self.running = self.start_ok
        return self.start_ok

    def send(self, command: str) -> bool:
        if self.fail_on is not None and command.startswith(self.fail_on):
            return False
        self.sent.append(command)
        if command == "uci":
            self.pending += ["id name Scripted", "uciok"]
        elif command.startswith("position"):
            self.board = parse_position(command)
        elif command == "d":
            dump = board_dump(self.board)
            if self.omit_fen:
                dump = [line for line in dump if not line.startswith("Fen:")]
            self.pending += dump
        elif command.startswith("go perft"):
            self.pending += perft_lines(self.board)
        elif command.startswith("go"):
            self.pending.append("info depth 1 score cp 0")
            if not self.omit_bestmove:
                self.pending.append(f"bestmove {choose_move(self.board, self.script)}")
        return True

    def read_until(self, expected: str, timeout_ms: int) -> EngineOutput:
        lines = []
        while self.pending:
            line = self.pending.pop(0)
            lines.append(line)
            if expected in line:
                return EngineOutput("".join(f"{x}\n" for x in lines), ReadStatus.MATCHED)
        return EngineOutput("".join(f"{x}\n" for x in lines), ReadStatus.TIMEOUT)

    def stop(self) -> None:
        self.stop_calls += 1
        self.running = False

    def __enter__(self) -> "ScriptedSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()


@pytest.fixture
def scripted_session() -> Callable[..., ScriptedSession]:
    """Factory for scripted engine sessions."""
    return ScriptedSession


@pytest.fixture
def fake_engine() -> Path:
    """Path to the fake UCI engine script."""
    return FAKE_ENGINE


@pytest.fixture
def fake_engine_command(fake_engine: Path) -> Callable[..., tuple[str, list[str]]]:
    """Build (executable, args) that launch the fake engine."""

    def build(moves: Sequence[str] = ()) -> tuple[str, list[str]]:
        args = [str(fake_engine)]
        if moves:
            args.append(f"--moves={','.join(moves)}")
        return sys.executable, args

    return build


@pytest.fixture(autouse=True)
def reset_logging():
    """Keep loguru from holding on to streams replaced during a test."""
    yield
    logger.remove()
    logger.add(sys.stderr, level="WARNING")
