"""Typer-based CLI for TypeGraph type analysis."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .analyzer import TypeAnalyzer
from .config_manager import load_options
from .exceptions import TypeGraphError
from .models import AnalysisReport, DiagnosticIssue
from .report_export import export_markdown

console = Console()

app = typer.Typer(
    help="🧹 TypeGraph CLI: find unused, duplicated and broken TypeScript types.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

MAX_ROWS = 20


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"TypeGraph CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    )
):
    """TypeGraph CLI: type-debt analysis for TypeScript and Vue projects."""
    pass


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _split(values: Optional[List[str]]) -> Optional[List[str]]:
    if not values:
        return None
    out: List[str] = []
    for value in values:
        out.extend(p.strip() for p in value.split(",") if p.strip())
    return out


def _run(
    root: Path,
    include: Optional[List[str]],
    exclude: Optional[List[str]],
    workers: Optional[int],
    type_check: Optional[bool],
    config_file: Optional[Path],
) -> AnalysisReport:
    overrides: Dict[str, Any] = {
        "include": _split(include),
        "exclude": _split(exclude),
        "workers": workers,
        "type_check": None if type_check is None else str(type_check).lower(),
    }
    try:
        options = load_options(root.resolve(), config_file=config_file, overrides=overrides)
        return TypeAnalyzer(options).analyze()
    except TypeGraphError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _render_bar(percentage: float) -> str:
    """Render a simple text progress bar."""
    filled = int(percentage / 10)
    empty = 10 - filled
    bar = "█" * filled + "░" * empty
    color = _score_color(percentage)
    return f"[{color}]{bar}[/{color}] {percentage:.0f}"


def _score_color(score: float) -> str:
    if score >= 80:
        return "green"
    elif score >= 60:
        return "yellow"
    return "red"


def _issue_table(title: str, issues: List[DiagnosticIssue], style: str) -> Table:
    table = Table(title=title, show_header=True, title_style=f"bold {style}")
    table.add_column("Location", style="cyan")
    table.add_column("Code", width=8)
    table.add_column("Category", width=18)
    table.add_column("Message", min_width=30)
    for issue in issues[:MAX_ROWS]:
        table.add_row(
            f"{issue.file}:{issue.line}",
            issue.code,
            issue.category,
            issue.message.splitlines()[0] if issue.message else "",
        )
    return table


def render_report(report: AnalysisReport, show_warnings: bool = False) -> None:
    stats = report.statistics
    scores = report.scores
    color = _score_color(scores.overall_score)

    console.print(
        Panel.fit(
            f"[bold {color}]{scores.overall_score}[/bold {color}]/100",
            title="[bold]Overall Score[/bold]",
            border_style=color,
        )
    )

    table = Table(title="\nScores", show_header=True, show_lines=False)
    table.add_column("Metric", style="cyan", width=18)
    table.add_column("Score", width=24)
    table.add_column("Details", min_width=30)
    table.add_row(
        "Type Health",
        _render_bar(scores.health_score),
        f"{stats.type_definitions} types, {stats.unused_types} unused, "
        f"{stats.duplicate_definitions} duplicated",
    )
    table.add_row(
        "Validation",
        _render_bar(scores.validation_score),
        f"{stats.total_errors} errors ({stats.critical_errors} critical), "
        f"{stats.total_warnings} warnings",
    )
    table.add_row(
        "Source Files",
        str(stats.source_files),
        f"{stats.usage_references} type references, {stats.ignored_types} ignored, "
        f"{stats.filtered_diagnostics} filtered diagnostics",
    )
    console.print(table)

    if report.duplicates:
        dup_table = Table(title="\nDuplicated Types", show_header=True, title_style="bold yellow")
        dup_table.add_column("Name", style="bold")
        dup_table.add_column("Locations")
        for name, decls in list(report.duplicates.items())[:MAX_ROWS]:
            dup_table.add_row(name, "\n".join(f"{d.file}:{d.line}" for d in decls))
        console.print(dup_table)

    if report.unused_declarations:
        unused_table = Table(title="\nUnused Types", show_header=True, title_style="bold yellow")
        unused_table.add_column("Name", style="bold")
        unused_table.add_column("Kind")
        unused_table.add_column("Location")
        for decl in report.unused_declarations[:MAX_ROWS]:
            unused_table.add_row(decl.name, decl.kind.value, f"{decl.file}:{decl.line}")
        console.print(unused_table)

    if report.errors:
        console.print(_issue_table("\nType Errors", list(report.errors), "red"))
    if show_warnings and report.warnings:
        console.print(_issue_table("\nWarnings", list(report.warnings), "yellow"))

    console.print(
        Panel(
            "\n".join(f"  • {s}" for s in report.suggestions),
            title="[bold yellow]📋 Suggestions[/bold yellow]",
            border_style="yellow",
        )
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("analyze")
def analyze(
    root: Path = typer.Argument(Path("."), help="Project root to analyse."),
    include: Optional[List[str]] = typer.Option(None, "--include", "-i", help="Include glob(s)."),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-e", help="Exclude glob(s)."),
    json_output: Optional[Path] = typer.Option(None, "--json", help="Write the full report as JSON."),
    output_dir: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write a Markdown cleanup report into this directory."
    ),
    threshold: int = typer.Option(0, min=0, max=100, help="Fail when health score is below this."),
    workers: Optional[int] = typer.Option(None, min=1, help="Parallel workers for file analysis."),
    type_check: Optional[bool] = typer.Option(
        None, "--type-check/--no-type-check", help="Run tsc for semantic diagnostics."
    ),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="TOML config file."),
    show_warnings: bool = typer.Option(False, "--warnings", "-w", help="List warnings too."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
):
    """🔍 Analyse type declarations, usages and diagnostics."""
    _configure_logging(verbose)
    console.print(f"\n[bold cyan]🔍 Analysing types under '{root}'...[/bold cyan]\n")
    report = _run(root, include, exclude, workers, type_check, config_file)
    render_report(report, show_warnings=show_warnings)

    if json_output is not None:
        json_output.write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")
        console.print(f"[green]✓[/green] Report written to {json_output}")

    if output_dir is not None:
        report_path = export_markdown(report, output_dir)
        console.print(f"[green]✓[/green] Markdown report written to {report_path}")

    if report.scores.health_score < threshold:
        console.print(
            f"[red]✗[/red] Health score {report.scores.health_score} is below threshold {threshold}"
        )
        raise typer.Exit(1)


@app.command("check")
def check(
    root: Path = typer.Argument(Path("."), help="Project root to check."),
    threshold: int = typer.Option(70, min=0, max=100, help="Minimum type health score."),
    type_check: Optional[bool] = typer.Option(
        None, "--type-check/--no-type-check", help="Run tsc for semantic diagnostics."
    ),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="TOML config file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
):
    """✅ Quick pass/fail check for CI."""
    _configure_logging(verbose)
    report = _run(root, None, None, None, type_check, config_file)
    errors = len(report.errors)
    score = report.scores.health_score

    if errors:
        typer.echo(f"✗ Found {errors} type error(s) (health: {score}/100)")
        raise typer.Exit(1)
    if score < threshold:
        typer.echo(f"✗ Health score {score} is below threshold {threshold}")
        raise typer.Exit(1)
    typer.echo(f"✓ Type check passed (health: {score}/100)")


if __name__ == "__main__":
    app()
