"""
Shared CLI utilities for hammersynth commands.

Provides common functionality used across CLI modules.
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from hammersynth.core.exceptions import HammerSynthError


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Route package log records to standard error through Rich.

    Args:
        verbose: Log DEBUG messages.
        quiet: Log only warnings and errors. Ignored when ``verbose`` is set.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logger = logging.getLogger("hammersynth")
    logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)


def exit_with_error(console: Console, error: HammerSynthError) -> NoReturn:
    """Print a domain error with its suggestion and exit with status 1."""
    console.print(f"[red]Error: {error.message}[/red]")
    if error.suggestion:
        console.print(f"[dim]{error.suggestion}[/dim]")
    raise typer.Exit(code=1) from None


@contextmanager
def spinner_progress(
    description: str,
    console: Console | None = None,
    quiet: bool = False,
) -> Generator[Progress, None, None]:
    """Context manager for spinner-style progress display.

    Creates a standardized spinner progress bar used throughout the CLI.
    The spinner is suppressed when quiet mode is enabled.

    Args:
        description: Task description to display.
        console: Rich Console instance. If None and not quiet, creates one.
        quiet: If True, suppress the progress display entirely.

    Yields:
        Progress instance (even when quiet, for API consistency).
    """
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console if not quiet else None,
        disable=quiet,
    ) as progress:
        progress.add_task(description=description, total=None)
        yield progress


class QuietConsole:
    """Console wrapper that suppresses output in quiet mode.

    This class wraps a Rich Console instance and conditionally suppresses
    print output when quiet mode is enabled. All other console methods
    are delegated to the wrapped instance.

    Example:
        >>> console = Console(stderr=True)
        >>> qc = QuietConsole(console, quiet=True)
        >>> qc.print("This won't be shown")  # Suppressed
    """

    def __init__(self, console: Console, quiet: bool = False):
        """Initialize QuietConsole wrapper.

        Args:
            console: Rich Console instance to wrap.
            quiet: If True, suppress print output.
        """
        self._console = console
        self._quiet = quiet

    @property
    def console(self) -> Console:
        """Access the underlying Rich Console instance.

        Use this when you need to print regardless of quiet mode,
        such as for error messages.
        """
        return self._console

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Print to console unless quiet mode is enabled."""
        if not self._quiet:
            self._console.print(*args, **kwargs)

    def __getattr__(self, name: str) -> Any:
        """Delegate attribute access to wrapped console."""
        return getattr(self._console, name)
