"""Tests for the engine session, against a real subprocess."""

import sys
import time

import chess
import pytest

from selfplay.uci import EngineSession, EngineSessionError, ReadStatus
from selfplay.uci.protocol import extract_bestmove, extract_fen, position_command

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="pexpect.spawn needs a pty")


@pytest.fixture
def session(fake_engine_command):
    """A started session on the fake engine."""
    executable, args = fake_engine_command()
    engine = EngineSession()
    assert engine.start(executable, args)
    yield engine
    engine.stop()


class TestStart:
    """Tests for starting the engine."""

    def test_start_completes_handshake(self, session) -> None:
        """Test a UCI engine starts and stays alive."""
        assert session.is_running

    def test_missing_executable(self, tmp_path) -> None:
        """Test a path that does not exist fails without raising."""
        engine = EngineSession()
        assert engine.start(tmp_path / "no-such-engine") is False
        assert not engine.is_running

    def test_process_without_handshake(self) -> None:
        """Test a process that exits without 'uciok' fails."""
        engine = EngineSession()
        assert engine.start(sys.executable, ["-c", "print('hello')"], handshake_timeout_ms=3_000) is False
        assert not engine.is_running

    def test_start_twice(self, session, fake_engine_command) -> None:
        """Test a running session cannot be started again."""
        executable, args = fake_engine_command()
        with pytest.raises(EngineSessionError):
            session.start(executable, args)


class TestCommands:
    """Tests for send and read_until."""

    def test_board_dump(self, session) -> None:
        """Test a position can be set and read back."""
        assert session.send(f"position fen {chess.STARTING_FEN} moves e2e4")
        assert session.send("d")
        output = session.read_until("Fen:", 2_000)

        assert output.matched
        assert extract_fen(output.text) == (
            "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"
        )

    def test_long_move_history_arrives_intact(self, session) -> None:
        """Test a position command longer than the tty line buffer is not cut."""
        moves = ["g1f3", "g8f6", "f3g1", "f6g8"] * 220 + ["e2e4"]
        expected = chess.Board()
        for move in moves:
            expected.push_uci(move)
        command = position_command(chess.STARTING_FEN, moves)
        assert len(command) > 4096

        assert session.send(command)
        assert session.send("d")
        output = session.read_until("Fen:", 10_000)

        assert output.matched
        assert extract_fen(output.text) == expected.fen()

    def test_bestmove(self, session) -> None:
        """Test a search answers with a move."""
        session.send(f"position fen {chess.STARTING_FEN}")
        session.send("go movetime 10")
        output = session.read_until("bestmove", 5_000)

        assert output.status is ReadStatus.MATCHED
        assert "info depth" in output.text
        assert extract_bestmove(output.text) == "a2a3"

    def test_stderr_is_merged(self, session) -> None:
        """Test output written to stderr is read like stdout."""
        session.send("stderr")
        assert session.read_until("written-to-stderr", 2_000).matched

    def test_deadline_while_engine_is_silent(self, session) -> None:
        """Test the timeout applies even when no line ever arrives."""
        session.send("go infinite")

        started = time.monotonic()
        output = session.read_until("bestmove", 300)
        elapsed = time.monotonic() - started

        assert output.status is ReadStatus.TIMEOUT
        assert output.text == ""
        assert elapsed < 3

    def test_eof(self, session) -> None:
        """Test reading after the engine quit reports EOF."""
        session.send("quit")
        output = session.read_until("bestmove", 3_000)
        assert output.status is ReadStatus.EOF


class TestStop:
    """Tests for shutting the engine down."""

    def test_stop_before_start(self) -> None:
        """Test stop on a fresh session is a no-op."""
        engine = EngineSession()
        engine.stop()
        engine.stop()
        assert not engine.is_running

    def test_stop_is_idempotent(self, session) -> None:
        """Test stop can be called repeatedly."""
        session.stop()
        session.stop()
        assert not session.is_running

    def test_send_after_stop_reports_failure(self, session) -> None:
        """Test a send to a stopped engine reports False instead of raising."""
        session.stop()
        assert session.send("uci") is False
        assert session.read_until("uciok", 100).status is ReadStatus.ERROR

    def test_context_manager_stops(self, fake_engine_command) -> None:
        """Test leaving the with block releases the engine."""
        executable, args = fake_engine_command()
        with EngineSession() as engine:
            assert engine.start(executable, args)
            assert engine.is_running
        assert not engine.is_running
