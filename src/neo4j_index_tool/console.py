"""Operator-facing output.

Statements, skips and build progress are printed with Rich so a long
rebuild can be followed from a terminal. The orchestrator and progress
tracker take a Reporter instead of printing directly.
"""

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)
from rich.text import Text


class Reporter:
    """Prints operator progress to a Rich console.

    Example:
        >>> reporter = Reporter()
        >>> reporter.statement("DROP INDEX `idx` IF EXISTS")
        >>> with reporter.build_progress("idx") as update:
        ...     update(50.0)
    """

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the reporter.

        Args:
            console: Console to print to; a new one is created if omitted.
        """
        self.console = console or Console()

    def info(self, message: str) -> None:
        """Print a plain progress message."""
        self.console.print(message, markup=False, highlight=False)

    def statement(self, query: str) -> None:
        """Print a Cypher statement about to be sent."""
        self.console.print(Text(query, style="cyan"))

    def skipped(self, message: str) -> None:
        """Print why an entry was skipped."""
        self.console.print(Text(message, style="yellow"))

    def error(self, message: str) -> None:
        """Print a failure."""
        self.console.print(Text(message, style="red"))

    @contextmanager
    def build_progress(self, name: str) -> Iterator[Callable[[float], None]]:
        """Show a progress bar for one index build.

        Args:
            name: Index or constraint name.

        Yields:
            Callable taking the current population percentage.
        """
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=self.console,
            transient=True,
        ) as progress:
            task = progress.add_task(f"Monitoring {name}", total=100)

            def update(percent: float) -> None:
                progress.update(task, completed=min(percent, 100.0))

            yield update
