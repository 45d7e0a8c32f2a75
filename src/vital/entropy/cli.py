"""Typer CLI for sample entropy computation."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import polars as pl
import typer
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from vital.entropy.config import get_defaults
from vital.entropy.exceptions import DataFormatError, InvalidParameterError, WorkerError
from vital.entropy.logging_config import configure_logging
from vital.entropy.sampen import compute_sample_entropy
from vital.entropy.vitals import batch_vital_entropies, read_vital_glob, write_entropies_csv

app = typer.Typer(help="vital-entropy CLI")
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Sample entropy for physiological time series."""
    configure_logging(logging.DEBUG if verbose else logging.WARNING)


@app.command("sampen")
def sampen(
    series_path: Path = typer.Argument(..., help="Path to CSV/Parquet/JSON series"),
    column: str = typer.Option("value", help="Column holding the samples"),
    m: Optional[int] = typer.Option(None, "--m", help="Embedding dimension"),
    r: Optional[float] = typer.Option(None, "--r", help="Absolute tolerance (excludes --r-fraction)"),
    r_fraction: Optional[float] = typer.Option(None, help="Tolerance as a fraction of the standard deviation"),
    detrend: bool = typer.Option(False, "--detrend", help="Remove a linear trend first"),
    n_jobs: Optional[int] = typer.Option(None, help="Worker processes (default: all cores)"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Compute sample entropy of one series."""
    if r is not None and r_fraction is not None:
        raise typer.BadParameter("Pass either --r or --r-fraction, not both")
    series = _load_series(series_path, column)
    try:
        result = compute_sample_entropy(
            series, m=m, r=r, r_fraction=r_fraction, detrend=detrend, n_jobs=n_jobs
        )
    except InvalidParameterError as exc:
        raise typer.BadParameter(str(exc)) from exc

    if as_json:
        typer.echo(json.dumps(result.to_dict()))
        return

    table = Table(title=f"Sample Entropy: {series_path.name}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Samples", str(result.n_samples))
    table.add_row("m", str(result.m))
    table.add_row("r", f"{result.r:.6g}")
    table.add_row("B (length m)", str(result.b))
    table.add_row("A (length m+1)", str(result.a))
    table.add_row("Status", result.status.value)
    table.add_row("SampEn", "-" if result.value is None else f"{result.value:.6f}")
    console.print(table)


@app.command("vitals")
def vitals(
    pattern: str = typer.Argument(..., help="Glob pattern of per-record vital CSV files"),
    output: Path = typer.Option(..., help="Where to write the entropy CSV"),
    m: Optional[int] = typer.Option(None, "--m", help="Embedding dimension"),
    n_jobs: Optional[int] = typer.Option(None, help="Worker processes (default: all cores)"),
) -> None:
    """Compute SBP/MBP/DBP sample entropy for every record file."""
    config = get_defaults()
    if m is not None:
        if m < 1:
            raise typer.BadParameter("m must be >= 1")
        config = config.model_copy(update={"m": m})

    try:
        records = read_vital_glob(pattern)
    except DataFormatError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    if not records:
        console.print(f"[yellow]No files match {pattern}[/yellow]")
        raise typer.Exit(code=1)

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Computing sample entropy", total=len(records))
        try:
            results = batch_vital_entropies(
                records,
                config=config,
                n_jobs=n_jobs,
                progress=lambda _: progress.advance(task),
            )
        except InvalidParameterError as exc:
            raise typer.BadParameter(str(exc)) from exc
        except WorkerError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(code=1)

    write_entropies_csv(results, output)
    console.print(f"[green]Wrote {len(results)} records to {output}[/green]")


def _load_series(path: Path, column: str) -> list[float]:
    if path.suffix.lower() == ".parquet":
        df = pl.read_parquet(path)
    elif path.suffix.lower() == ".csv":
        df = pl.read_csv(path)
    else:
        with path.open() as f:
            data = json.load(f)
        df = pl.DataFrame(data)
    if column not in df.columns:
        raise typer.BadParameter(f"Expected column '{column}'")
    return df[column].to_list()


if __name__ == "__main__":
    app()
