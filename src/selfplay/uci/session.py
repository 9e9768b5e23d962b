"""Engine session: a long-lived UCI engine subprocess.

The engine is driven through pexpect, which allocates a pty for the child so
that its stdout and stderr arrive interleaved on a single line-buffered
stream. The pty is switched to raw mode so that command lines of any length
reach the engine intact.

The protocol has no request identifiers, so exactly one command may be
outstanding at a time; callers send a command and then wait for the sentinel
token of its answer.

Unlike a bare ``readline`` loop, ``read_until`` enforces a real deadline: the
wait for every line is bounded by the time left, so a silent engine cannot
hold the caller past the requested timeout.
"""

import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import pexpect
from loguru import logger

from selfplay.uci.protocol import UCI_OK
from selfplay.utils.logging import protocol_logger

DEFAULT_HANDSHAKE_TIMEOUT_MS = 5_000

_NEWLINE = r"\r?\n"


class EngineSessionError(Exception):
    """Raised when the session is used in a way it does not support."""
    pass


class ReadStatus(Enum):
    """Why a ``read_until`` call returned."""

    MATCHED = "matched"
    TIMEOUT = "timeout"
    EOF = "eof"
    ERROR = "error"


@dataclass(frozen=True)
class EngineOutput:
    """Text accumulated by one ``read_until`` call."""

    text: str
    status: ReadStatus

    @property
    def matched(self) -> bool:
        """True if the expected token was seen."""
        return self.status is ReadStatus.MATCHED

    def lines(self) -> list[str]:
        return self.text.splitlines()

    def __contains__(self, item: str) -> bool:
        return item in self.text


class EngineSession:
    """Owns one UCI engine process and its pty.

    Example:
        with EngineSession() as session:
            if not session.start("/usr/bin/stockfish"):
                raise SystemExit(1)
            session.send("go movetime 1000")
            reply = session.read_until("bestmove", 5_000)

    ``stop`` is idempotent and runs on every exit path when the session is
    used as a context manager.
    """

    def __init__(self) -> None:
        self._child: pexpect.spawn | None = None
        self._lock = threading.RLock()
        self._path: Path | None = None

    @property
    def is_running(self) -> bool:
        """Whether the engine process is alive."""
        return self._child is not None and self._child.isalive()

    @property
    def name(self) -> str:
        """Return the engine name."""
        if self._path is None:
            return "UCI(not started)"
        return f"UCI({self._path.name})"

    def start(
        self,
        executable_path: str | Path,
        args: Sequence[str] = (),
        *,
        handshake_timeout_ms: int = DEFAULT_HANDSHAKE_TIMEOUT_MS,
    ) -> bool:
        """Launch the engine and perform the ``uci`` handshake.

        Args:
            executable_path: Path to the engine binary.
            args: Extra command-line arguments for the engine.
            handshake_timeout_ms: How long to wait for ``uciok``.

        Returns:
            True if the engine acknowledged the handshake. On False the
            process (if any) has already been released.

        Raises:
            EngineSessionError: If the session is already running.
        """
        with self._lock:
            if self._child is not None:
                raise EngineSessionError(f"{self.name} is already running")

            self._path = Path(executable_path)
            logger.debug(f"Starting UCI engine: {executable_path} {' '.join(args)}".rstrip())

            try:
                self._child = pexpect.spawn(
                    str(executable_path),
                    list(args),
                    encoding="utf-8",
                    codec_errors="replace",
                    echo=False,
                    timeout=None,
                    preexec_fn=_raw_tty,
                )
            except (pexpect.ExceptionPexpect, OSError) as e:
                logger.error(f"Error starting engine {executable_path}: {e}")
                self._child = None
                return False

            if not self.send("uci"):
                self.stop()
                return False

            response = self.read_until(UCI_OK, handshake_timeout_ms)
            if not response.matched:
                logger.error(
                    f"Error starting engine: did not receive '{UCI_OK}' "
                    f"({response.status.value})"
                )
                self.stop()
                return False

            logger.debug("UCI engine started successfully")
            return True

    def send(self, command: str) -> bool:
        """Send one command line to the engine.

        Write failures are logged and reported through the return value
        rather than raised.

        Returns:
            True if the line was written.
        """
        with self._lock:
            if self._child is None:
                logger.error(f"Cannot send '{command}': engine not running")
                return False

            protocol_logger.trace(f"UCI send: {command}")
            try:
                self._child.sendline(command)
            except (OSError, ValueError) as e:
                logger.error(f"Error sending '{command}' to engine: {e}")
                return False
            return True

    def read_until(self, expected: str, timeout_ms: int) -> EngineOutput:
        """Read lines until one contains ``expected`` or the deadline passes.

        Every line read, including the matching one, is part of the returned
        text. The deadline also bounds the wait for a line that never comes.

        Args:
            expected: Substring that marks the end of the response.
            timeout_ms: Time budget in milliseconds, measured from the call.

        Returns:
            The accumulated output and why reading stopped.
        """
        with self._lock:
            if self._child is None:
                logger.error(f"Cannot read '{expected}': engine not running")
                return EngineOutput("", ReadStatus.ERROR)

            deadline = time.monotonic() + timeout_ms / 1000
            lines: list[str] = []

            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.warning(f"Timeout reached while waiting for '{expected}'")
                    return EngineOutput(_join(lines), ReadStatus.TIMEOUT)

                try:
                    self._child.expect(_NEWLINE, timeout=remaining)
                except pexpect.TIMEOUT:
                    logger.warning(f"Timeout reached while waiting for '{expected}'")
                    return EngineOutput(_join(lines), ReadStatus.TIMEOUT)
                except pexpect.EOF:
                    tail = (self._child.before or "").rstrip("\r")
                    if tail:
                        lines.append(tail)
                    logger.error(f"Engine closed its output while waiting for '{expected}'")
                    status = ReadStatus.MATCHED if tail and expected in tail else ReadStatus.EOF
                    return EngineOutput(_join(lines), status)
                except (OSError, ValueError) as e:
                    logger.error(f"Error reading engine output: {e}")
                    return EngineOutput(_join(lines), ReadStatus.ERROR)

                line = (self._child.before or "").rstrip("\r")
                protocol_logger.trace(f"UCI recv: {line}")
                lines.append(line)
                if expected in line:
                    return EngineOutput(_join(lines), ReadStatus.MATCHED)

    def stop(self) -> None:
        """Shut the engine down.

        Sends ``quit``, closes the pty and terminates the process. Each step
        runs even if an earlier one failed. Safe to call repeatedly and before
        ``start``.
        """
        with self._lock:
            child = self._child
            if child is None:
                return
            self._child = None

            try:
                if child.isalive():
                    child.sendline("quit")
            except (OSError, ValueError) as e:
                logger.warning(f"Error sending quit to engine: {e}")

            try:
                child.close(force=True)
            except (OSError, pexpect.ExceptionPexpect) as e:
                logger.warning(f"Error closing engine pty: {e}")

            try:
                if child.isalive():
                    child.terminate(force=True)
            except (OSError, pexpect.ExceptionPexpect) as e:
                logger.warning(f"Error terminating engine process: {e}")

            logger.info(f"{self.name} stopped")

    def __enter__(self) -> "EngineSession":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.stop()

    def __del__(self) -> None:
        """Destructor - ensure process is cleaned up."""
        if getattr(self, "_child", None) is not None:
            self.stop()


def _raw_tty() -> None:
    # Runs in the child, where fd 0 is the pty. In canonical mode the tty caps
    # an input line at its buffer size (4 KB on Linux, 1 KB on macOS) and drops
    # the rest, while `position ... moves` grows with every ply.
    import tty

    tty.setraw(0)


def _join(lines: list[str]) -> str:
    return "".join(f"{line}\n" for line in lines)
