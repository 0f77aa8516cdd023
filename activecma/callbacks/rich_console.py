"""
Rich console callback for terminal progress output.

Uses the rich library for colored output, tables and panels.
"""

from .base import OptimizerEvent, EventType
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape
from typing import Optional


class RichConsoleCallback:
    """
    Terminal output using the rich library.

    Features:
    - Start and completion panels
    - Per-generation progress lines every ``every`` generations
    - Warnings for covariance regularizations

    Example:
        >>> callback = RichConsoleCallback(every=10)
        >>> optimizer = ActiveCMAES(callbacks=[callback])
    """

    def __init__(self, verbose: bool = True, every: int = 1, console: Optional[Console] = None):
        """
        Initialize rich console callback.

        Args:
            verbose: If False, only show start/completion and warnings
            every: Print one progress line every ``every`` generations
            console: Console to print to (a new one by default)
        """
        self.console = console or Console()
        self.verbose = verbose
        self.every = max(1, every)

    def __call__(self, event: OptimizerEvent) -> None:
        """Handle event and render to console."""

        if event.event_type == EventType.OPTIMIZATION_START:
            self._handle_start(event)

        elif event.event_type == EventType.GENERATION_COMPLETE:
            if self.verbose and event.iteration % self.every == 0:
                self._handle_generation(event)

        elif event.event_type == EventType.REGULARIZATION:
            self._handle_regularization(event)

        elif event.event_type == EventType.OPTIMIZATION_COMPLETE:
            self._handle_complete(event)

    def _handle_start(self, event: OptimizerEvent) -> None:
        """Display run start banner."""
        self.console.print(Panel(
            f"[bold cyan]Optimization Started[/bold cyan]\n"
            f"Dimension: {event.data.get('dimension', 'N/A')}\n"
            f"Population: {event.data.get('population_size', 'N/A')} "
            f"(mu = {event.data.get('mu', 'N/A')})\n"
            f"Initial step size: {event.data.get('step_size', 'N/A')}",
            title=event.optimizer or "optimizer",
            border_style="cyan"
        ))

    def _handle_generation(self, event: OptimizerEvent) -> None:
        """Display one generation's progress."""
        best_f = event.data.get("best_f", float("nan"))
        sigma = event.data.get("step_size", float("nan"))
        condition = event.data.get("condition_number", float("nan"))
        self.console.print(
            f"[blue]Generation {event.iteration}: best f = {best_f:.6e}, "
            f"sigma = {sigma:.3e}, cond(C) = {condition:.2e}[/blue]"
        )

    def _handle_regularization(self, event: OptimizerEvent) -> None:
        """Display covariance reset warning."""
        self.console.print(Panel(
            f"[bold yellow]Covariance regularized[/bold yellow]\n"
            f"Reason: {escape(str(event.data.get('reason', 'Unknown')))}\n"
            f"Resets so far: {event.data.get('regularizations', 0)}",
            border_style="yellow"
        ))

    def _handle_complete(self, event: OptimizerEvent) -> None:
        """Display completion table."""
        success = event.data.get("success", False)
        table = Table(title=f"Result after {event.iteration} generations")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="magenta")

        for key in ("status", "best_f", "mean_f", "n_function_evals"):
            value = event.data.get(key)
            if isinstance(value, float):
                table.add_row(key, f"{value:.6e}")
            else:
                table.add_row(key, str(value))

        self.console.print(table)
        style = "green" if success else "red"
        self.console.print(f"[bold {style}]{escape(str(event.data.get('message', '')))}[/bold {style}]")
