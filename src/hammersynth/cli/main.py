"""
Main CLI entry point for hammersynth.

Provides subcommands for building and analyzing synthetic samples:
- sample: Build synthetic samples from bins, evaluation reports or neighbor tables
- report: Analyze bin quality against seed-protein distance
"""

from __future__ import annotations

import typer
from rich import print as rprint

from hammersynth import __version__

app = typer.Typer(
    name="hammersynth",
    help="Build synthetic genome samples for hammer classifier testing",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        rprint(f"hammersynth version {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """
    hammersynth: synthetic samples for hammer classifier testing.

    Harvests good genomes from binning runs, evaluation reports and repgen
    neighbor tables, matches them to the closest representative genome, and
    writes their contigs as labelled FASTA.
    """


# Import subcommands
from hammersynth.cli import report, sample

# Register subcommands
app.add_typer(sample.app, name="sample")
app.add_typer(report.app, name="report")


if __name__ == "__main__":
    app()
