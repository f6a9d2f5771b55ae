"""Terminal reporter with rich output formatting."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from sonarcov.coverage.summary import iter_packages

if TYPE_CHECKING:
    from sonarcov.coverage.summary import CoverageMetric, SummaryTreeNode

console = Console()

_HIGH_COVERAGE = 80.0
_MEDIUM_COVERAGE = 50.0


class CLIReporter:
    """Rich terminal output for report generation."""

    def __init__(self) -> None:
        """Initialize the CLI reporter."""
        self.console = console

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[dim]{message}[/dim]")

    def print_package_summary(self, root: SummaryTreeNode) -> None:
        """Print a coverage table with one row per package and an overall row."""
        table = Table(title="Coverage Summary", title_style="bold cyan")
        table.add_column("Package", style="bold")
        table.add_column("Lines", justify="right")
        table.add_column("Statements", justify="right")
        table.add_column("Functions", justify="right")
        table.add_column("Branches", justify="right")

        for package in iter_packages(root):
            metrics = package.package_metrics
            if metrics is None:
                continue
            table.add_row(
                _package_label(package, root),
                self._format_metric(metrics.lines),
                self._format_metric(metrics.statements),
                self._format_metric(metrics.functions),
                self._format_metric(metrics.branches),
            )

        table.add_section()
        table.add_row(
            "[bold]All files[/bold]",
            self._format_metric(root.metrics.lines, bold=True),
            self._format_metric(root.metrics.statements, bold=True),
            self._format_metric(root.metrics.functions, bold=True),
            self._format_metric(root.metrics.branches, bold=True),
        )

        self.console.print(table)

    def _format_metric(self, metric: CoverageMetric, *, bold: bool = False) -> str:
        color = self._get_coverage_color(metric.pct)
        style = f"bold {color}" if bold else color
        return f"[{style}]{metric.pct:.1f}%[/{style}] [dim]({metric.covered}/{metric.total})[/dim]"

    def _get_coverage_color(self, percentage: float) -> str:
        """Get a color based on coverage percentage."""
        if percentage >= _HIGH_COVERAGE:
            return "green"
        if percentage >= _MEDIUM_COVERAGE:
            return "yellow"
        return "red"


def _package_label(package: SummaryTreeNode, root: SummaryTreeNode) -> str:
    """Return the package path relative to the tree root."""
    if package is root:
        return "."
    if not root.full_path():
        return package.full_path()
    return os.path.relpath(package.full_path(), root.full_path())


reporter = CLIReporter()
