"""
Report command for analyses of binning runs.

Provides subcommands:
- bin-quality: Chart bin quality against seed-protein distance to the reference genome
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from hammersynth.cli.utils import QuietConsole, configure_logging, spinner_progress
from hammersynth.core.io_utils import OutputFormat, write_dataframe
from hammersynth.core.kmers import DEFAULT_KMER_SIZE
from hammersynth.core.report import (
    report_frame,
    scan_bin_quality,
    tally_by_distance,
    totals_frame,
)

app = typer.Typer(
    name="report",
    help="Analyze binning runs",
    no_args_is_help=True,
)

console = Console(stderr=True)


@app.command(name="bin-quality")
def bin_quality(
    master_dir: Path = typer.Argument(
        ...,
        help="Master directory of binning sub-directories",
        exists=True,
        file_okay=False,
    ),
    totals: Path | None = typer.Option(
        None,
        "--totals",
        help="File to contain a summary of results by distance range",
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Report file (standard output if omitted)"
    ),
    output_format: str = typer.Option(
        "tsv", "--format", "-f", help="Output format: tsv or csv"
    ),
    kmer_size: int = typer.Option(
        DEFAULT_KMER_SIZE, "--kmer-size", help="Protein k-mer size for distances", min=1
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress progress output"),
) -> None:
    """
    Compare bin quality with the PheS distance from each bin to its reference genome.

    For every bin with a seed protein, the distance between the bin's seed
    protein and the reference genome's is reported next to the bin's
    consistency, completeness, contamination and good flag.

    Examples:

        hammersynth report bin-quality Bins -o bins.tbl --totals totals.tbl
    """
    configure_logging(verbose, quiet)
    out = QuietConsole(console, quiet=quiet)

    if output_format not in ("tsv", "csv"):
        console.print(f"[red]Error: unknown output format '{output_format}'[/red]")
        raise typer.Exit(code=1) from None
    fmt: OutputFormat = "csv" if output_format == "csv" else "tsv"

    with spinner_progress(f"Scanning binning runs in {master_dir}...", console, quiet):
        rows = scan_bin_quality(master_dir, kmer_size)

    write_dataframe(report_frame(rows), output, fmt)
    out.print(f"[bold]Bins reported:[/bold] {len(rows)}")

    if totals is not None:
        write_dataframe(totals_frame(tally_by_distance(rows)), totals, fmt)
        out.print(f"[bold]Totals:[/bold] {totals}")
