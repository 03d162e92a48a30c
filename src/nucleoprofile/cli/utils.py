"""Shared CLI utilities — Rich console, logging, progress and error reporting."""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

console = Console()

# Set by the --verbose flag on the top-level CLI group.
verbose: bool = False


def configure_logging(debug: bool) -> None:
    """Send library log records to the console through Rich.

    Only warnings are shown by default; ``debug`` shows everything.
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def error_handler(func: Callable[..., Any]) -> Callable[..., Any]:
    """Turn exceptions raised by a command into a message and exit code.

    NucleoProfileError exits with 1. Anything else is reported as an
    internal error and exits with 2; --verbose adds the Rich traceback.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        from nucleoprofile.core.exceptions import NucleoProfileError

        try:
            return func(*args, **kwargs)
        except SystemExit:
            raise
        except NucleoProfileError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise SystemExit(1)
        except Exception as e:
            console.print(f"[red]Internal error:[/red] {type(e).__name__}: {e}")
            if verbose:
                console.print_exception()
            else:
                console.print("[dim]Run with --verbose to see the traceback.[/dim]")
            raise SystemExit(2)

    return wrapper


def make_progress() -> Progress:
    """Progress display for per-cell work: spinner, bar, count and elapsed time."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
    )


def cell_progress(progress: Progress, task: TaskID, verb: str) -> Callable[[int, int, str], None]:
    """Progress callback for the dataset methods, naming the current cell."""

    def update(current: int, total: int, cell_name: str) -> None:
        progress.update(
            task, total=total, completed=current, description=f"{verb} {cell_name}",
        )

    return update


def print_messages(title: str, messages: Sequence[str], style: str) -> None:
    """Print a titled, dimmed bullet list; nothing when ``messages`` is empty."""
    if not messages:
        return
    console.print()
    console.print(f"[{style}]{title} ({len(messages)}):[/{style}]")
    for message in messages:
        console.print(f"  [dim]- {message}[/dim]")
