"""Main CLI application using Typer."""
import asyncio
import logging
import os
import sys
import termios
import time
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from ..app.config import ShellConfig
from ..supervisor import run_shell
from ..terminal import rawmode

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="kvshell",
    help="Interactive terminal shell for key/value storage engines",
    add_completion=False,
)

# Console for rich output
console = Console()

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(filename)s:%(lineno)d: %(message)s"
LOG_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


def setup_logging(log_path: Path | None) -> None:
    """Send log records to ``log_path``, or discard them.

    Standard error is pointed at the same destination so stray writes from
    libraries cannot corrupt the screen.
    """
    root = logging.getLogger("kvshell")
    root.setLevel(logging.INFO)

    if log_path is None:
        root.addHandler(logging.NullHandler())
        target = open(os.devnull, "w")
    else:
        handler = logging.FileHandler(log_path, mode="w")
        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        formatter.converter = time.gmtime
        handler.setFormatter(formatter)
        root.addHandler(handler)
        target = handler.stream

    os.dup2(target.fileno(), sys.stderr.fileno())


def _terminal_fd() -> int | None:
    """Return the descriptor of standard input if it is a terminal."""
    try:
        fd = sys.stdin.fileno()
    except (AttributeError, OSError, ValueError):
        return None
    return fd if os.isatty(fd) else None


@app.command()
def shell(
    home: str = typer.Option(
        "",
        "--home",
        envvar="KVSHELL_HOME",
        help="Database home to open at startup"
    ),
    open_config: str = typer.Option(
        "",
        "--open-config",
        envvar="KVSHELL_OPEN_CONFIG",
        help="Configuration for the startup open"
    ),
    session_config: str = typer.Option(
        "",
        "--session-config",
        envvar="KVSHELL_SESSION_CONFIG",
        help="Configuration for the startup session"
    ),
    cursor_config: str = typer.Option(
        "",
        "--cursor-config",
        envvar="KVSHELL_CURSOR_CONFIG",
        help="Configuration for the startup cursor"
    ),
    uri: str = typer.Option(
        "",
        "--uri",
        envvar="KVSHELL_URI",
        help="Table to open a cursor on at startup (table:<name>)"
    ),
    backend: str = typer.Option(
        "sqlite",
        "--backend",
        "-b",
        envvar="KVSHELL_BACKEND",
        help="Storage backend (memory or sqlite)"
    ),
    log_path: Path | None = typer.Option(
        None,
        "--log-path",
        envvar="KVSHELL_LOG_PATH",
        help="Write logs to this file"
    ),
):
    """Start an interactive shell on the current terminal."""
    try:
        config = ShellConfig(
            home=home,
            open_config=open_config,
            session_config=session_config,
            cursor_config=cursor_config,
            uri=uri,
            backend=backend,
            log_path=log_path,
        )
    except ValueError as e:
        console.print(f"[red]Error: invalid options: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    fd = _terminal_fd()
    if fd is None:
        console.print("[red]Error: standard input is not a terminal[/red]")
        raise typer.Exit(code=1)

    try:
        setup_logging(config.log_path)
    except OSError as e:
        console.print(f"[red]Error: create log file: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    try:
        width, height = rawmode.get_size(fd)
    except OSError as e:
        console.print(f"[red]Error: get initial size: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    try:
        attributes = rawmode.make_raw(fd)
    except (OSError, termios.error) as e:
        console.print(f"[red]Error: make raw terminal: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    error = asyncio.run(run_shell(
        config,
        fd=fd,
        out=sys.stdout,
        width=width,
        height=height,
        restore_terminal=lambda: rawmode.restore(fd, attributes),
    ))

    if error is not None:
        console.print(f"[red]Error: {escape(str(error))}[/red]")
        raise typer.Exit(code=1)
