"""Rich terminal reporter — summary, changed units, verdict."""

from __future__ import annotations

import io
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from diffgate.analysis.models import AnalysisResult, Classification
from diffgate.config.schema import DiffGateConfig

_CLASS_STYLE = {
    Classification.PRODUCTION: "bold white on dark_orange",
    Classification.TEST: "bold black on bright_cyan",
    Classification.BENCHMARK: "bold black on yellow",
    Classification.EXAMPLE: "bold black on bright_green",
    Classification.BUILD_SCRIPT: "bold white on blue",
}


def _class_pill(classification: Classification) -> Text:
    return Text(f" {classification.value.upper()} ", style=_CLASS_STYLE.get(classification, ""))


def render(
    result: AnalysisResult,
    config: DiffGateConfig,
    *,
    console: Optional[Console] = None,
) -> None:
    """Print the analysis to the terminal using Rich."""
    console = console or Console()
    s = result.summary

    console.print()
    console.print("[bold]=== Rust Diff Analysis ===[/bold]")

    totals = Table(show_header=True, header_style="bold", border_style="dim")
    totals.add_column("Category")
    totals.add_column("Units", justify="right")
    totals.add_column("Added", justify="right", style="green")
    totals.add_column("Removed", justify="right", style="red")
    for classification, t in s.by_classification.items():
        totals.add_row(
            classification.value,
            str(t.units),
            f"+{t.lines_added}",
            f"-{t.lines_removed}",
        )
    totals.add_row(
        "untracked", "-", f"+{s.untracked_lines_added}", f"-{s.untracked_lines_removed}"
    )
    console.print(totals)

    console.print(f"[dim]Production:[/dim]     {s.prod_functions} functions, "
                  f"{s.prod_structs} structs/enums, {s.prod_other} other")
    console.print(f"[dim]Weighted score:[/dim] {s.weighted_score}")

    if config.output.include_details and result.changes:
        table = Table(
            title="Changed Units",
            show_lines=False,
            title_style="bold",
            border_style="dim",
        )
        table.add_column("Class", justify="center", width=14)
        table.add_column("Unit", style="cyan", min_width=20)
        table.add_column("Kind")
        table.add_column("File", style="magenta")
        table.add_column("Lines", justify="right")
        for change in result.changes:
            table.add_row(
                _class_pill(change.classification),
                change.unit.qualified_name,
                change.unit.kind.value,
                f"{change.path}:{change.unit.span.start}-{change.unit.span.end}",
                f"+{change.lines_added} -{change.lines_removed}",
            )
        console.print()
        console.print(table)

    if result.scope.skipped_files:
        console.print()
        for skipped in result.scope.skipped_files:
            detail = f": {skipped.detail}" if skipped.detail else ""
            console.print(f"[dim]Skipped[/dim] {escape(skipped.path)} ({skipped.reason.value}{escape(detail)})")

    console.print()
    if result.exceeds_limit:
        console.print("[bold red]❌ LIMIT EXCEEDED[/bold red]")
        for v in result.violated_limits:
            console.print(f"   {v.name}: {v.observed} > {v.threshold}")
    else:
        console.print("[bold green]✅ Within limits.[/bold green]")


def render_text(result: AnalysisResult, config: DiffGateConfig, width: int = 120) -> str:
    """Plain-text rendering, for ``--output`` files and tests."""
    console = Console(file=io.StringIO(), record=True, width=width, color_system=None)
    render(result, config, console=console)
    return console.export_text()
