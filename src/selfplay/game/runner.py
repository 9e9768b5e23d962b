"""Self-play game runner.

Drives a single UCI engine against itself: every ply the engine is told the
current position, asked for its best move, and the move is recorded until the
engine has no move left or a position repeats too often.

The runner never stops the engine or exits the process. It returns a
``GameResult`` whose termination tells the caller how the game ended;
``run_selfplay`` owns the engine session and releases it on every path.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import chess
from loguru import logger

from selfplay.chess.notation import lan_to_san
from selfplay.configs.schema import GameConfig, SelfPlayConfig
from selfplay.game.report import GameReport, moves_with_numbers
from selfplay.game.state import GameState, Ply
from selfplay.uci.protocol import (
    BESTMOVE,
    FEN_PREFIX,
    NO_MOVE,
    PERFT_DONE,
    UCI_OK,
    extract_bestmove,
    extract_board_diagram,
    extract_fen,
    extract_perft_moves,
    go_movetime_command,
    go_perft_command,
    normalize_fen,
    position_command,
)
from selfplay.uci.session import DEFAULT_HANDSHAKE_TIMEOUT_MS, EngineSession
from selfplay.utils.logging import protocol_logger


class SelfPlayStartupError(Exception):
    """Raised when the engine cannot be configured or started."""
    pass


class RunnerState(Enum):
    """Lifecycle of a runner."""

    INITIALIZING = "initializing"
    PLAYING = "playing"
    FINISHED = "finished"


class GameTermination(Enum):
    """How a game ended."""

    NO_LEGAL_MOVE = "no_legal_move"
    # No bestmove line in the engine reply. Ends the game like NO_LEGAL_MOVE.
    MISSING_BESTMOVE = "missing_bestmove"
    THREEFOLD = "threefold_repetition"
    MAX_PLIES = "max_plies"
    ENGINE_ERROR = "engine_error"


@dataclass
class GameResult:
    """Outcome of a self-play game."""

    termination: GameTermination
    state: GameState
    report: GameReport | None

    @property
    def plies(self) -> list[Ply]:
        return list(self.state.plies)

    @property
    def is_draw_by_repetition(self) -> bool:
        return self.termination is GameTermination.THREEFOLD


class SelfPlayRunner:
    """Plays one game of an engine against itself."""

    def __init__(self, session: EngineSession, config: GameConfig | None = None):
        """Initialize the runner.

        Args:
            session: A started engine session. The runner sends commands but
                never stops it.
            config: Game settings; defaults to ``GameConfig()``.
        """
        self.session = session
        self.config = config or GameConfig()
        self.state = GameState(self.config.fen or chess.STARTING_FEN)
        self.runner_state = RunnerState.INITIALIZING

    @property
    def start_fen(self) -> str:
        return self.state.start_fen

    def setup(self) -> None:
        """Handshake, set the starting position and log its legal moves."""
        if self.runner_state is not RunnerState.INITIALIZING:
            raise RuntimeError(f"Cannot set up a runner that is {self.runner_state.value}")

        self.session.send("uci")
        banner = self.session.read_until(UCI_OK, DEFAULT_HANDSHAKE_TIMEOUT_MS)
        protocol_logger.trace(f"Initial engine output:\n{banner.text}")

        if not self.config.fen:
            logger.info(f"FEN not found in configuration. Using default: {self.start_fen}")

        self.session.send(position_command(self.start_fen))
        engine_fen = self.query_fen()
        self.log_legal_moves()

        logger.info(f"Starting game from position FEN: {self.start_fen}")
        logger.info(f"Initial FEN: {engine_fen}")
        self.runner_state = RunnerState.PLAYING

    def query_fen(self) -> str:
        """Ask the engine for its board and return the FEN it reports.

        The board diagram is logged as a side effect. Returns ``""`` if the
        reply has no ``Fen:`` line.
        """
        self.session.send("d")
        output = self.session.read_until(FEN_PREFIX, self.config.board_timeout_ms)

        diagram = extract_board_diagram(output.text)
        if diagram:
            logger.info(f"\n{diagram}")

        fen = extract_fen(output.text)
        logger.debug(f"FEN: {fen}")
        return fen

    def log_legal_moves(self) -> list[str]:
        """Probe the current position with ``go perft 1``."""
        self.session.send(go_perft_command(1))
        output = self.session.read_until(PERFT_DONE, self.config.perft_timeout_ms)
        moves = extract_perft_moves(output.text)
        logger.debug(
            f"All possible moves ({len(moves)}):\n"
            f"------------------------\n{output.text}------------------------"
        )
        return moves

    def play_ply(self) -> GameTermination | None:
        """Play one ply.

        Returns:
            The termination if the game ended, None to keep playing.
        """
        command = self.state.position_command()
        if not self.session.send(command):
            logger.error("Could not send the position to the engine")
            return GameTermination.ENGINE_ERROR

        engine_fen = self.query_fen()
        logger.debug(f"Moves: {moves_with_numbers(self.state.moves, self.state.black_to_move)}")
        logger.trace(f"FEN actual with moves: {command}")
        logger.trace(f"FEN actual: {engine_fen}")

        if engine_fen:
            logger.debug(f"Sanitized FEN: {normalize_fen(engine_fen)}")
            count = self.state.record_position(engine_fen)
            if count >= self.config.draw_repetitions:
                logger.info(
                    f"The same position has been repeated {count} times. "
                    "Stopping the game (Draw)."
                )
                return GameTermination.THREEFOLD
        else:
            logger.warning("Engine did not report a FEN; repetition not tracked for this ply")

        if self.config.max_plies is not None and self.state.ply_count >= self.config.max_plies:
            logger.info(f"Reached the limit of {self.config.max_plies} plies")
            return GameTermination.MAX_PLIES

        if not self.session.send(go_movetime_command(self.config.thinking_time)):
            logger.error("Could not ask the engine for a move")
            return GameTermination.ENGINE_ERROR

        response = self.session.read_until(BESTMOVE, self.config.bestmove_timeout_ms)
        move = extract_bestmove(response.text)
        move_number = self._move_number()
        logger.info(f"Move {move_number} {move}")

        if move == NO_MOVE:
            logger.warning("No valid moves available. Game over.")
            return GameTermination.NO_LEGAL_MOVE
        if not move:
            logger.warning(
                f"Engine reply had no '{BESTMOVE}' line ({response.status.value}). Game over."
            )
            return GameTermination.MISSING_BESTMOVE

        try:
            fen_before = engine_fen or self._replay_fen()
            san = lan_to_san(fen_before, chess.Board(fen_before), move)
        except ValueError as e:
            logger.error(f"Engine played a move that cannot be applied: {e}")
            return GameTermination.ENGINE_ERROR

        logger.info(f"Move {move_number} {san}")
        self.state.append(Ply(uci=move, san=san, fen_before=fen_before))
        return None

    def play(self) -> GameResult:
        """Play until the game ends and return the result."""
        if self.runner_state is RunnerState.INITIALIZING:
            self.setup()
        if self.runner_state is RunnerState.FINISHED:
            raise RuntimeError("Game already finished")

        termination = None
        while termination is None:
            termination = self.play_ply()

        return self._finish(termination)

    def _finish(self, termination: GameTermination) -> GameResult:
        self.runner_state = RunnerState.FINISHED

        report = None
        if termination is not GameTermination.THREEFOLD:
            report = GameReport(
                start_fen=self.start_fen,
                san_moves=self.state.san_moves,
                uci_moves=self.state.moves,
                termination=termination.value,
            )
            logger.info(f"Game report generated:\n{report.render()}")

        return GameResult(termination=termination, state=self.state, report=report)

    def _move_number(self) -> int:
        offset = 1 if self.state.black_to_move else 0
        return (self.state.ply_count + offset) // 2 + 1

    def _replay_fen(self) -> str:
        board = chess.Board(self.start_fen)
        for move in self.state.moves:
            board.push_uci(move)
        return board.fen()


def run_selfplay(
    config: SelfPlayConfig,
    session_factory: Callable[[], EngineSession] = EngineSession,
) -> GameResult:
    """Start the engine, play one game and release the engine.

    Args:
        config: Full application configuration.
        session_factory: Builds the engine session (tests pass a fake).

    Returns:
        The game result. A draw by repetition carries no report.

    Raises:
        SelfPlayStartupError: If no engine path is configured or the engine
            does not complete the handshake.
    """
    engine_path = (config.engine.path or "").strip()
    if not engine_path:
        raise SelfPlayStartupError("Path to the engine executable is not configured.")

    with session_factory() as session:
        started = session.start(
            engine_path,
            config.engine.args,
            handshake_timeout_ms=config.engine.handshake_timeout_ms,
        )
        if not started:
            raise SelfPlayStartupError(f"Can't start the engine at {engine_path}")

        runner = SelfPlayRunner(session, config.game)
        result = runner.play()
        logger.info("Stop the engine...")

    if result.report is not None and config.output.pgn_path:
        save_report(result.report, config.output.pgn_path, event=config.output.event, engine=session.name)

    return result


def save_report(report: GameReport, path: str | Path, *, event: str, engine: str) -> Path:
    """Write the report as PGN, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report.to_pgn(white=engine, black=engine, event=event), encoding="utf-8")
    logger.info(f"Saved game to {path}")
    return path
