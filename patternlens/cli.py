"""Command-line interface for Patternlens.

A thin harness around the in-process ``analyze()`` call: read a JSON array
of respondent records, run the engine, print a table or JSON.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from patternlens import __version__
from patternlens.analysis.engine import analyze_with_diagnostics
from patternlens.analysis.models import AnalysisResult
from patternlens.analysis.summary import serialize_result
from patternlens.config import load_config
from patternlens.errors import InvalidRecordError
from patternlens.logging import setup_logging

app = typer.Typer(
    name="patternlens",
    help="Multi-dimensional pattern detection for survey respondent data.",
    no_args_is_help=True,
)
console = Console(width=min(100, Console().width))


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"patternlens {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version", "-V",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Multi-dimensional pattern detection for survey respondent data."""


def _load_records(path: Path) -> list:
    """Read a JSON array of records (or ``{"records": [...]}``)."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise InvalidRecordError(f"could not read {path}: {exc}") from exc
    if isinstance(data, dict) and isinstance(data.get("records"), list):
        data = data["records"]
    if not isinstance(data, list):
        raise InvalidRecordError(f"{path} must contain a JSON array of records")
    return data


def _print_table(result: AnalysisResult) -> None:
    if not result.patterns:
        console.print("[dim]No significant patterns detected.[/dim]")
        return

    table = Table(title=f"{len(result.patterns)} pattern(s) from {result.total_records} records")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Type", no_wrap=True)
    table.add_column("Pattern")
    table.add_column("Confidence", justify="right")
    table.add_column("p", justify="right")
    table.add_column("Impact", justify="right")
    table.add_column("Tier")
    for i, pattern in enumerate(result.patterns, start=1):
        table.add_row(
            str(i),
            pattern.archetype.value,
            pattern.title,
            f"{pattern.confidence:.2f} ({pattern.confidence_label})",
            f"{pattern.significance:.2g}",
            f"{pattern.impact:,.2f}",
            pattern.impact_tier,
        )
    console.print(table)


@app.command()
def analyze(
    records_file: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, help="JSON array of respondent records."),
    ],
    outcome: Annotated[
        str | None,
        typer.Option("--outcome", help="Outcome metric, e.g. responseData.purchaseIntent."),
    ] = None,
    min_sample: Annotated[
        int | None,
        typer.Option("--min-sample", help="Minimum records per pair or intersection."),
    ] = None,
    threshold: Annotated[
        float | None,
        typer.Option("--threshold", help="Minimum Cramér's V to report a coupling."),
    ] = None,
    scale: Annotated[
        float | None,
        typer.Option("--scale", help="Impact scale factor (currency or unit multiplier)."),
    ] = None,
    top: Annotated[
        int | None,
        typer.Option("--top", help="Report at most this many patterns."),
    ] = None,
    workers: Annotated[
        int | None,
        typer.Option("--workers", help="Threads for pair evaluation."),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print JSON instead of a table."),
    ] = False,
    output_dir: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Directory for the log file."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging on the terminal."),
    ] = False,
) -> None:
    """Detect superposition, entanglement and interference patterns."""
    setup_logging(output_dir=output_dir, verbose=verbose)

    try:
        config = load_config(
            outcome_metric_selector=outcome,
            min_sample_size=min_sample,
            association_threshold=threshold,
            impact_scale_factor=scale,
            max_patterns=top,
            max_workers=workers,
        )
    except ValidationError as exc:
        console.print(f"[red]Invalid option:[/red] {exc.errors()[0]['msg']}")
        raise typer.Exit(1) from exc

    try:
        result = analyze_with_diagnostics(_load_records(records_file), config)
    except InvalidRecordError as exc:
        console.print(f"[red]Invalid input:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc

    if as_json:
        typer.echo(serialize_result(result))
    else:
        _print_table(result)
