"""
Sample commands for building synthetic hammer-test samples.

Provides subcommands:
- build: Harvest genomes from a binning directory and/or an evaluation report
- bins: Harvest genomes from a binning directory only
- rewrite: Re-label a cached genome directory against another repgen database
- neighbors: Build a balanced sample from a precomputed neighbor table
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import typer
from rich.console import Console
from rich.table import Table

from hammersynth.cli.utils import (
    QuietConsole,
    configure_logging,
    exit_with_error,
    spinner_progress,
)
from hammersynth.clients.bvbrc import BVBRCClient
from hammersynth.core.exceptions import HammerSynthError
from hammersynth.core.pipeline import (
    RunContext,
    build_sample_sources,
    prepare_cache_dir,
    run_neighbor_pipeline,
    run_rewrite_pipeline,
    run_sample_pipeline,
)
from hammersynth.core.repgen import RepGenomeDb
from hammersynth.core.sources import DirectoryRewriteSource, RepgenNeighborSource
from hammersynth.core.writer import SampleWriter
from hammersynth.models.config import (
    DEFAULT_MAX_GENOMES,
    DEFAULT_MIN_GENOMES,
    NeighborSampleConfig,
    RewriteConfig,
    SampleConfig,
    SequenceSource,
)

app = typer.Typer(
    name="sample",
    help="Build synthetic samples for hammer testing",
    no_args_is_help=True,
)

# FASTA output may go to stdout, so messages go to stderr
console = Console(stderr=True)

REPDB_HELP = "Representative-genome database (JSON definition or seed-protein FASTA)"


def _load_repdb(
    path: Path,
    kmer_size: int | None,
    threshold: int | None,
    quiet: bool,
) -> RepGenomeDb:
    with spinner_progress("Loading representative genomes...", console, quiet):
        return RepGenomeDb.load(path, kmer_size=kmer_size, threshold=threshold)


def _print_summary(out: QuietConsole, ctx: RunContext, writer: SampleWriter) -> None:
    table = Table(title="Sample Summary")
    table.add_column("Metric", style="bold")
    table.add_column("Count", justify="right")
    table.add_row("Genomes examined", str(ctx.examined))
    table.add_row("Genomes written", str(ctx.written))
    table.add_row("No seed protein", str(ctx.no_seed))
    table.add_row("No acceptable match", str(ctx.no_match))
    table.add_row("Sequences written", str(writer.sequences_written))
    out.print(table)


def _run_harvest(config: SampleConfig, kmer_size: int | None, threshold: int | None, quiet: bool) -> None:
    """Shared body of the build and bins commands."""
    out = QuietConsole(console, quiet=quiet)
    rng = np.random.default_rng(config.seed)
    try:
        prepare_cache_dir(config.cache_dir, config.clear)
        repdb = _load_repdb(config.repdb, kmer_size, threshold, quiet)
        with BVBRCClient() as client:
            sources = build_sample_sources(
                config, client if config.eval_file is not None else None, rng
            )
            with SampleWriter(config.output, config.contig_fraction, rng) as writer:
                ctx = run_sample_pipeline(sources, repdb, writer, config.cache_dir)
    except HammerSynthError as e:
        exit_with_error(console, e)

    _print_summary(out, ctx, writer)
    out.print(f"[bold green]Genomes cached in {config.cache_dir}[/bold green]")


@app.command(name="build")
def build(
    repdb: Path = typer.Argument(..., help=REPDB_HELP),
    cache_dir: Path = typer.Argument(
        ..., help="Genome output directory, later usable as a genome source", file_okay=False
    ),
    bin_dir: Path | None = typer.Option(
        None,
        "--bin-dir",
        help="Master binning directory, containing sample output in each subdirectory",
        exists=True,
        file_okay=False,
    ),
    eval_file: Path | None = typer.Option(
        None,
        "--eval-file",
        help="Genome evaluation report for harvesting mostly-good genomes",
        exists=True,
        dir_okay=False,
    ),
    max_genomes: int = typer.Option(
        DEFAULT_MAX_GENOMES,
        "--max",
        help="Maximum number of genomes to select from a single source",
    ),
    contig_frac: float = typer.Option(
        1.0, "--contig-frac", help="Fraction of contigs per genome to include (0 < f <= 1)"
    ),
    clear: bool = typer.Option(
        False, "--clear", help="Erase the genome output directory before processing"
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output FASTA file (standard output if omitted)"
    ),
    seed: int | None = typer.Option(None, "--seed", help="Random seed for reproducible selection"),
    kmer_size: int | None = typer.Option(None, "--kmer-size", help="Override the database k-mer size"),
    threshold: int | None = typer.Option(
        None, "--threshold", help="Override the database similarity threshold"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress progress output"),
) -> None:
    """
    Build a synthetic sample from bins and/or an evaluation report.

    Mostly-good bins are harvested from every sample subdirectory of the
    binning directory. Genomes from the evaluation report that would be good
    but for a missing SSU rRNA are downloaded from BV-BRC. Every genome is
    matched to its closest representative and its contigs are written as
    labelled FASTA; a GTO copy is cached in CACHE_DIR.

    Examples:

        hammersynth sample build rep200.json genomes/ --bin-dir Bins --eval-file patric.tbl -o sample.fa
    """
    configure_logging(verbose, quiet)
    try:
        config = SampleConfig(
            repdb=repdb,
            cache_dir=cache_dir,
            bin_dir=bin_dir,
            eval_file=eval_file,
            max_genomes=max_genomes,
            contig_fraction=contig_frac,
            clear=clear,
            output=output,
            seed=seed,
        )
    except HammerSynthError as e:
        exit_with_error(console, e)
    _run_harvest(config, kmer_size, threshold, quiet)


@app.command(name="bins")
def bins(
    repdb: Path = typer.Argument(..., help=REPDB_HELP),
    bin_dir: Path = typer.Argument(
        ...,
        help="Binning input directory, containing sample output in each subdirectory",
        exists=True,
        file_okay=False,
    ),
    cache_dir: Path = typer.Argument(
        ..., help="Genome output directory, later usable as a genome source", file_okay=False
    ),
    max_genomes: int = typer.Option(
        DEFAULT_MAX_GENOMES, "--max", help="Maximum number of bins to examine"
    ),
    contig_frac: float = typer.Option(
        1.0, "--contig-frac", help="Fraction of contigs per genome to include (0 < f <= 1)"
    ),
    clear: bool = typer.Option(
        False, "--clear", help="Erase the genome output directory before processing"
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output FASTA file (standard output if omitted)"
    ),
    seed: int | None = typer.Option(None, "--seed", help="Random seed for reproducible selection"),
    kmer_size: int | None = typer.Option(None, "--kmer-size", help="Override the database k-mer size"),
    threshold: int | None = typer.Option(
        None, "--threshold", help="Override the database similarity threshold"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress progress output"),
) -> None:
    """
    Build a synthetic sample from a binning directory only.

    Examples:

        hammersynth sample bins rep200.json Bins genomes/ -o bins.fa
    """
    configure_logging(verbose, quiet)
    try:
        config = SampleConfig(
            repdb=repdb,
            cache_dir=cache_dir,
            bin_dir=bin_dir,
            max_genomes=max_genomes,
            contig_fraction=contig_frac,
            clear=clear,
            output=output,
            seed=seed,
        )
    except HammerSynthError as e:
        exit_with_error(console, e)
    _run_harvest(config, kmer_size, threshold, quiet)


@app.command(name="rewrite")
def rewrite(
    repdb: Path = typer.Argument(..., help=REPDB_HELP),
    genome_dir: Path = typer.Argument(
        ..., help="Genome input directory", exists=True, file_okay=False
    ),
    contig_frac: float = typer.Option(
        1.0, "--contig-frac", help="Fraction of contigs per genome to include (0 < f <= 1)"
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output FASTA file (standard output if omitted)"
    ),
    seed: int | None = typer.Option(None, "--seed", help="Random seed for contig selection"),
    kmer_size: int | None = typer.Option(None, "--kmer-size", help="Override the database k-mer size"),
    threshold: int | None = typer.Option(
        None, "--threshold", help="Override the database similarity threshold"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress progress output"),
) -> None:
    """
    Re-purpose a cached sample genome directory for a different repgen set.

    Each genome is matched to its closest representative in REPDB and
    rewritten with corrected labels. Genomes with no representative above
    the database's similarity threshold are dropped.

    Examples:

        hammersynth sample rewrite rep100.json genomes/ -o sample100.fa
    """
    configure_logging(verbose, quiet)
    out = QuietConsole(console, quiet=quiet)
    try:
        config = RewriteConfig(
            repdb=repdb,
            genome_dir=genome_dir,
            contig_fraction=contig_frac,
            output=output,
            seed=seed,
        )
        db = _load_repdb(config.repdb, kmer_size, threshold, quiet)
        source = DirectoryRewriteSource(config.genome_dir)
        out.print(f"[bold]Genomes to process:[/bold] {len(source)}")
        rng = np.random.default_rng(config.seed)
        with SampleWriter(config.output, config.contig_fraction, rng) as writer:
            ctx = run_rewrite_pipeline(source, db, writer)
    except HammerSynthError as e:
        exit_with_error(console, e)

    _print_summary(out, ctx, writer)


@app.command(name="neighbors")
def neighbors(
    neighbor_file: Path = typer.Argument(
        ...,
        help="Tab-delimited neighbor table (genome_id, genome_name, rep_id, distance)",
        exists=True,
        dir_okay=False,
    ),
    min_genomes: int = typer.Option(
        DEFAULT_MIN_GENOMES,
        "--min-genomes",
        help="Minimum number of genomes to spread across the representatives",
    ),
    sequence_source: SequenceSource = typer.Option(
        SequenceSource.REPRESENTATIVE,
        "--sequence-source",
        help=(
            "Whose contigs to emit for each neighbor: 'representative' emits the "
            "representative genome under each neighbor's label, 'neighbor' emits the neighbor genome itself"
        ),
    ),
    contig_frac: float = typer.Option(
        1.0, "--contig-frac", help="Fraction of contigs per genome to include (0 < f <= 1)"
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output FASTA file (standard output if omitted)"
    ),
    seed: int | None = typer.Option(None, "--seed", help="Random seed for contig selection"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress progress output"),
) -> None:
    """
    Build a balanced sample from a precomputed repgen neighbor table.

    Representatives contribute neighbors in round-robin order until
    --min-genomes picks are planned, and each representative's picks are
    spread evenly over its distance-sorted neighbor list. Contigs are
    downloaded from BV-BRC and labelled with the neighbor's identity and
    distance.

    Examples:

        hammersynth sample neighbors rep200.neighbors.tbl --min-genomes 500 -o balanced.fa
    """
    configure_logging(verbose, quiet)
    out = QuietConsole(console, quiet=quiet)
    try:
        config = NeighborSampleConfig(
            neighbor_file=neighbor_file,
            min_genomes=min_genomes,
            sequence_source=sequence_source,
            contig_fraction=contig_frac,
            output=output,
            seed=seed,
        )
        if config.sequence_source is SequenceSource.REPRESENTATIVE:
            out.print(
                "[yellow]Emitting representative contigs under neighbor labels "
                "(use --sequence-source neighbor for the neighbors' own contigs)[/yellow]"
            )
        rng = np.random.default_rng(config.seed)
        with BVBRCClient() as client:
            source = RepgenNeighborSource(
                config.neighbor_file,
                config.min_genomes,
                client,
                config.sequence_source,
            )
            with SampleWriter(config.output, config.contig_fraction, rng) as writer:
                ctx = run_neighbor_pipeline(source, writer)
    except HammerSynthError as e:
        exit_with_error(console, e)

    _print_summary(out, ctx, writer)
