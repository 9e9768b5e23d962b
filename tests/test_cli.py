"""Tests for the command-line interface."""

import sys

import pytest
from typer.testing import CliRunner

from selfplay import __version__
from selfplay.cli import app

runner = CliRunner()

FOOLS_MATE = ["f2f3", "e7e5", "g2g4", "d8h4"]


class TestVersionAndSan:
    """Tests for the commands that need no engine."""

    def test_version(self) -> None:
        """Test the version is printed."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_san(self) -> None:
        """Test a UCI line is printed as numbered SAN."""
        result = runner.invoke(app, ["san", *FOOLS_MATE])
        assert result.exit_code == 0
        assert "1. f3 e5 2. g4 Qh4#" in result.stdout

    def test_san_from_fen(self) -> None:
        """Test numbering continues when black starts."""
        fen = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"
        result = runner.invoke(app, ["san", "--fen", fen, "e7e5", "g1f3"])
        assert result.exit_code == 0
        assert "1... e5 2. Nf3" in result.stdout

    def test_san_illegal_move(self) -> None:
        """Test an illegal move exits non-zero."""
        result = runner.invoke(app, ["san", "e2e5"])
        assert result.exit_code == 1


class TestRun:
    """Tests for the run command."""

    def test_missing_engine_path(self) -> None:
        """Test a run without an engine path exits with status 1."""
        result = runner.invoke(app, ["run"])
        assert result.exit_code == 1

    def test_missing_config_file(self, tmp_path) -> None:
        """Test a missing config file exits with status 1."""
        result = runner.invoke(app, ["run", "--config", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1

    def test_malformed_fen_is_configuration_error(self, tmp_path) -> None:
        """Test a bad starting FEN stops the run before the engine is launched."""
        result = runner.invoke(
            app, ["run", "-e", str(tmp_path / "no-engine"), "--fen", "not a fen"]
        )
        assert result.exit_code == 1
        assert "Configuration error" in result.stdout
        assert "Startup failed" not in result.stdout

    def test_engine_that_cannot_start(self, tmp_path) -> None:
        """Test an engine path that cannot be launched exits with status 1."""
        result = runner.invoke(app, ["run", "--engine", str(tmp_path / "no-engine")])
        assert result.exit_code == 1

    @pytest.mark.skipif(sys.platform == "win32", reason="pexpect.spawn needs a pty")
    def test_game_until_mate(self, fake_engine_command, tmp_path) -> None:
        """Test a full game against the fake engine prints the report."""
        executable, args = fake_engine_command(FOOLS_MATE)
        pgn_path = tmp_path / "game.pgn"

        result = runner.invoke(
            app,
            [
                "run",
                "--engine",
                executable,
                "--set",
                f"engine.args={args!r}",
                "--set",
                "game.thinking_time=10",
                "--set",
                f"output.pgn_path={pgn_path}",
            ],
        )

        assert result.exit_code == 0, result.stdout
        assert "1. f3 e5 2. g4 Qh4#" in result.stdout
        assert "Qh4# 0-1" in pgn_path.read_text()

    @pytest.mark.skipif(sys.platform == "win32", reason="pexpect.spawn needs a pty")
    def test_draw_by_repetition_exits_zero(self, fake_engine_command) -> None:
        """Test a repetition draw ends the run successfully without a report."""
        executable, args = fake_engine_command(["g1f3", "g8f6", "f3g1", "f6g8"] * 2)

        result = runner.invoke(
            app,
            ["run", "-e", executable, "-s", f"engine.args={args!r}", "-s", "game.thinking_time=10"],
        )

        assert result.exit_code == 0, result.stdout
        assert "Draw by repetition" in result.stdout
        assert "Game over" not in result.stdout
