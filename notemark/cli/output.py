"""Terminal output handling using Rich library.

All user-facing CLI output goes through OutputHandler. Log records go to
the logging handlers configured by the entry point instead.
"""

from typing import Iterable

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from notemark.content_converter.models import ConversionWarning
from notemark.jobs.models import JobResult


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=True)
        >>> handler.success("Converted 3 notes")
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False, stderr: bool = False):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
            stderr: Write to stderr (keeps stdout free for Markdown)
        """
        self.verbosity = verbosity
        self.console = Console(
            force_terminal=not no_color,
            no_color=no_color,
            highlight=False,
            stderr=stderr,
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {escape(message)}", style="red")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {escape(message)}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(escape(message))

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{escape(message)}[/dim]")

    def print_warnings(self, warnings: Iterable[ConversionWarning]) -> None:
        """Display one line per skipped block."""
        for warning in warnings:
            self.warning(f"Skipped block {warning}")

    def print_summary(self, results: Iterable[JobResult]) -> None:
        """Display the final outcome of each job with color coding.

        Args:
            results: Final result of each message (one per message id)
        """
        results = list(results)
        completed = [r for r in results if r.succeeded]
        failed = [r for r in results if r.is_permanent_failure]

        if self.verbosity >= 1 and results:
            table = Table(title="Jobs")
            table.add_column("Message")
            table.add_column("Document")
            table.add_column("Outcome")
            table.add_column("Skipped blocks", justify="right")
            for result in results:
                message_id, target, outcome = result.describe()
                table.add_row(escape(message_id), escape(target), outcome, str(len(result.warnings)))
            self.console.print(table)

        self.console.print("\n[bold]Conversion Summary:[/bold]")
        self.console.print(f"  [green]✓[/green] Completed: {len(completed)} job(s)")
        if failed:
            self.console.print(f"  [red]✗[/red] Failed: {len(failed)} job(s)")
            for result in failed:
                reason = result.reason.value if result.reason else "unknown"
                self.console.print(escape(f"    {result.message_id}: {reason}: {result.error}"))

        if not results:
            self.console.print("\n[yellow]No jobs to process[/yellow]")
        elif failed:
            self.console.print("\n[red]Processing completed with failures[/red]")
        else:
            self.console.print("\n[green]All jobs completed successfully[/green]")
