"""Command-line interface for selfplay."""

import chess
import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from selfplay import __version__
from selfplay.chess.notation import NotationError, uci_line_to_san
from selfplay.game.report import moves_with_numbers
from selfplay.game.runner import SelfPlayStartupError, run_selfplay
from selfplay.uci.protocol import side_to_move_is_black
from selfplay.utils.config import load_selfplay_config
from selfplay.utils.logging import setup_logging

app = typer.Typer(
    name="selfplay",
    help="Let a UCI chess engine play against itself",
    add_completion=False,
)
console = Console()


@app.command()
def version() -> None:
    """Print version information."""
    console.print(f"[bold blue]selfplay[/bold blue] v{__version__}")


@app.command()
def run(
    config: str = typer.Option(None, "--config", "-c", help="YAML config file"),
    overrides: list[str] = typer.Option(
        None, "--set", "-s", help="Config override, e.g. game.thinking_time=500"
    ),
    engine: str = typer.Option(None, "--engine", "-e", help="Engine executable (engine.path)"),
    fen: str = typer.Option(None, "--fen", help="Starting position (game.fen)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
    protocol: bool = typer.Option(False, "--protocol", help="Log UCI traffic (logging.protocol)"),
) -> None:
    """Play one self-play game and print the report."""
    dotlist = list(overrides or [])
    if engine:
        dotlist.append(f"engine.path={engine}")
    if fen:
        dotlist.append(f"game.fen='{fen}'")
    if protocol:
        dotlist.append("logging.protocol=true")

    try:
        cfg = load_selfplay_config(config, dotlist)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        raise typer.Exit(code=1)

    setup_logging(cfg.logging, verbose=verbose)

    try:
        result = run_selfplay(cfg)
    except SelfPlayStartupError as e:
        logger.error(str(e))
        console.print(f"[bold red]Startup failed:[/bold red] {e}")
        raise typer.Exit(code=1)

    if result.report is None:
        console.print(
            f"[yellow]Draw by repetition[/yellow] after {len(result.plies)} plies"
        )
        return

    console.print(
        Panel(
            Text(result.report.render()),
            title=f"Game over: {result.termination.value}",
            border_style="green",
        )
    )


@app.command()
def san(
    moves: list[str] = typer.Argument(..., help="Moves in UCI notation"),
    fen: str = typer.Option(chess.STARTING_FEN, "--fen", help="Position the moves start from"),
) -> None:
    """Convert a UCI move sequence to numbered SAN."""
    try:
        sans = uci_line_to_san(fen, moves)
    except NotationError as e:
        console.print(f"[bold red]{e}[/bold red]")
        raise typer.Exit(code=1)

    console.print(moves_with_numbers(sans, side_to_move_is_black(fen)))


if __name__ == "__main__":
    app()
