"""
Genome sources for synthetic sample construction.

Each source discovers candidate genomes in one kind of location, caps the
candidate pool with :func:`~hammersynth.core.sampling.select_bounded`, and
then lazily yields the accepted genomes one at a time through the iterator
protocol. Because the cap is applied at discovery time, a source may yield
fewer genomes than its maximum when later candidates fail quality checks.

Sources:
    BinDirectorySource: mostly-good bin GTOs from a binning master directory
    EvaluationReportSource: mostly-good-but-failing-SSU genomes from an
        evaluation report, downloaded from the genome repository
    RepgenNeighborSource: a balanced per-representative sample driven by a
        precomputed neighbor table
    DirectoryRewriteSource: every GTO cached in a genome directory
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Generic, Protocol, TypeVar

import numpy as np
import polars as pl

from hammersynth.clients.bvbrc import GenomeDetail
from hammersynth.core.exceptions import GenomeFileError, TableFormatError
from hammersynth.core.io_utils import read_tsv
from hammersynth.core.quality import (
    COMPLETENESS,
    CONTAMINATION,
    FINE_CONSISTENCY,
    GOOD,
    GOOD_SEED,
    HYPOTHETICAL,
    RowVerdict,
    classify_evaluation_row,
    is_strict_good,
)
from hammersynth.core.sampling import (
    Neighbor,
    Neighborhood,
    allocate_round_robin,
    select_bounded,
    spacer,
)
from hammersynth.models.config import SequenceSource
from hammersynth.models.genome import Genome

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")

# Binning output genomes: bin.<n>.<taxon>.gto
BIN_GTO_PATTERN = re.compile(r"bin\.\d+\.\d+\.gto")

# Evaluation report column -> quality-bag key
EVAL_ID_COLUMN = "Genome"
EVAL_QUALITY_COLUMNS = {
    "Good": GOOD,
    "Good Seed": GOOD_SEED,
    "Completeness": COMPLETENESS,
    "Contamination": CONTAMINATION,
    "Fine": FINE_CONSISTENCY,
    "Hypothetical": HYPOTHETICAL,
}
EVAL_PROGRESS_INTERVAL = 5000

NEIGHBOR_COLUMNS = ("genome_id", "genome_name", "rep_id", "distance")


class GenomeRepository(Protocol):
    """Anything that can download a genome by ID."""

    def fetch(
        self, genome_id: str, detail: GenomeDetail = GenomeDetail.FULL
    ) -> Genome | None: ...


def is_sample_dir(path: Path) -> bool:
    """Return True for a binning sample subdirectory."""
    return path.is_dir()


def is_bin_gto(path: Path) -> bool:
    """Return True for a binning output GTO file."""
    return path.is_file() and BIN_GTO_PATTERN.fullmatch(path.name) is not None


def is_gto(path: Path) -> bool:
    """Return True for any GTO file."""
    return path.is_file() and path.suffix == ".gto"


@dataclass
class SourceStats:
    """Counters for one source, reported at the end of a run."""

    candidates: int = 0
    selected: int = 0
    returned: int = 0
    skipped: int = 0


class GenomeSource(ABC, Generic[ItemT]):
    """Base class for a lazily iterated, bounded genome source.

    Subclasses implement :meth:`_next_item`, returning None once the source
    is exhausted.
    """

    label = "genome source"

    def __init__(self) -> None:
        self.stats = SourceStats()
        self._done = False

    def __iter__(self) -> Iterator[ItemT]:
        return self

    def __next__(self) -> ItemT:
        if self._done:
            raise StopIteration
        item = self._next_item()
        if item is None:
            self._done = True
            logger.info(
                "%s exhausted: %d returned, %d skipped of %d selected (%d candidates)",
                self.label,
                self.stats.returned,
                self.stats.skipped,
                self.stats.selected,
                self.stats.candidates,
            )
            raise StopIteration
        self.stats.returned += 1
        return item

    @abstractmethod
    def _next_item(self) -> ItemT | None:
        """Return the next accepted item, or None when exhausted."""


class BinDirectorySource(GenomeSource[Genome]):
    """Mostly-good genomes from the sample subdirectories of a binning run.

    Args:
        bin_dir: Master binning directory; each subdirectory is one sample.
        max_genomes: Maximum number of bin files to examine.
        rng: Random generator for the bounded selection.
    """

    label = "Binning source"

    def __init__(
        self,
        bin_dir: Path,
        max_genomes: int,
        rng: np.random.Generator | None = None,
    ) -> None:
        super().__init__()
        sub_dirs = sorted(p for p in bin_dir.iterdir() if is_sample_dir(p))
        logger.info("%d subdirectories found in binning directory %s", len(sub_dirs), bin_dir)
        gto_files = [f for d in sub_dirs for f in sorted(d.iterdir()) if is_bin_gto(f)]
        logger.info("%d bin genomes found in %d samples", len(gto_files), len(sub_dirs))
        selected = select_bounded(gto_files, max_genomes, rng)
        self.stats.candidates = len(gto_files)
        self.stats.selected = len(selected)
        self._files = iter(selected)

    def _next_item(self) -> Genome | None:
        for gto_file in self._files:
            logger.debug("Processing bin %s", gto_file)
            try:
                genome = Genome.load(gto_file)
            except GenomeFileError as e:
                logger.warning("Skipping unreadable bin %s: %s", gto_file, e.message)
                self.stats.skipped += 1
                continue
            if is_strict_good(genome.quality):
                logger.info("Bin %s selected for output", gto_file)
                return genome
            logger.info("Skipping bad bin %s", genome)
            self.stats.skipped += 1
        return None


class EvaluationReportSource(GenomeSource[Genome]):
    """Mostly-good genomes that fail only on SSU, from an evaluation report.

    The report is scanned once at construction; eligible genome IDs are
    capped by random selection and each surviving genome is downloaded at
    full detail when iterated. Download errors propagate.

    Args:
        eval_file: Tab-delimited genome evaluation report.
        max_genomes: Maximum number of genomes to download.
        repository: Genome repository used for downloads.
        rng: Random generator for the bounded selection.

    Raises:
        TableFormatError: If the report has no genome ID column.
        TableReadError: If the report is empty or cannot be parsed.
    """

    label = "Evaluation source"

    def __init__(
        self,
        eval_file: Path,
        max_genomes: int,
        repository: GenomeRepository,
        rng: np.random.Generator | None = None,
    ) -> None:
        super().__init__()
        self._repository = repository
        eligible = self._scan(eval_file)
        logger.info("Randomizing selection of %d eligible genomes", len(eligible))
        selected = select_bounded(eligible, max_genomes, rng)
        self.stats.candidates = len(eligible)
        self.stats.selected = len(selected)
        self._ids = iter(selected)

    @staticmethod
    def _scan(eval_file: Path) -> set[str]:
        """Collect the IDs of all eligible genomes in the report."""
        df = read_tsv(eval_file)
        if EVAL_ID_COLUMN not in df.columns:
            raise TableFormatError(str(eval_file), [EVAL_ID_COLUMN])
        missing = [col for col in EVAL_QUALITY_COLUMNS if col not in df.columns]
        if missing:
            logger.warning(
                "Evaluation report %s has no %s column(s); no genome can qualify",
                eval_file,
                ", ".join(missing),
            )

        logger.info("Scanning %s for mostly-good genomes", eval_file)
        eligible: set[str] = set()
        counts = dict.fromkeys(RowVerdict, 0)
        blank_ids = 0
        for line_count, row in enumerate(df.iter_rows(named=True), start=1):
            genome_id = (row[EVAL_ID_COLUMN] or "").strip()
            if not genome_id:
                blank_ids += 1
                counts[RowVerdict.SKIPPED] += 1
                continue
            quality = {key: row.get(col) for col, key in EVAL_QUALITY_COLUMNS.items()}
            verdict = classify_evaluation_row(quality)
            counts[verdict] += 1
            if verdict is RowVerdict.KEPT:
                eligible.add(genome_id)
            if line_count % EVAL_PROGRESS_INTERVAL == 0:
                logger.info(
                    "%d genomes processed: %d skipped, %d bad, %d kept",
                    line_count,
                    counts[RowVerdict.SKIPPED],
                    counts[RowVerdict.BAD],
                    len(eligible),
                )
        logger.info(
            "%d genomes processed: %d skipped, %d bad, %d eligible",
            df.height,
            counts[RowVerdict.SKIPPED],
            counts[RowVerdict.BAD],
            len(eligible),
        )
        if blank_ids:
            logger.warning("%d rows without a genome ID skipped in %s", blank_ids, eval_file)
        return eligible

    def _next_item(self) -> Genome | None:
        for genome_id in self._ids:
            logger.info("Downloading %s", genome_id)
            genome = self._repository.fetch(genome_id, GenomeDetail.FULL)
            if genome is None:
                logger.warning("Genome %s could not be downloaded; skipping", genome_id)
                self.stats.skipped += 1
                continue
            return genome
        return None


@dataclass(frozen=True)
class NeighborSample:
    """One planned neighbor pick with the genome whose contigs are emitted."""

    genome: Genome
    neighbor: Neighbor
    rep_id: str


def load_neighborhood(neighbor_file: Path) -> Neighborhood:
    """Read a neighbor table into a sorted neighborhood.

    The table is tab-delimited with columns genome_id, genome_name, rep_id
    and distance. Rows where a genome is its own representative are dropped,
    as are rows without a finite numeric distance.

    Raises:
        TableFormatError: If a required column is missing.
        TableReadError: If the table is empty or cannot be parsed.
    """
    df = read_tsv(neighbor_file)
    missing = [col for col in NEIGHBOR_COLUMNS if col not in df.columns]
    if missing:
        raise TableFormatError(str(neighbor_file), missing)

    df = df.with_columns(pl.col("distance").cast(pl.Float64, strict=False))
    bad = df.filter(pl.col("distance").is_null() | ~pl.col("distance").is_finite()).height
    if bad:
        logger.warning("%d neighbor rows without a valid distance ignored", bad)
    df = df.filter(
        pl.col("distance").is_finite() & (pl.col("genome_id") != pl.col("rep_id"))
    )

    neighborhood: Neighborhood = {}
    for row in df.iter_rows(named=True):
        neighborhood.setdefault(row["rep_id"], []).append(
            Neighbor(
                distance=row["distance"],
                genome_id=row["genome_id"],
                name=row["genome_name"] or "",
            )
        )
    for neighbors in neighborhood.values():
        neighbors.sort()
    logger.info(
        "%d neighbors found for %d representatives in %s",
        sum(len(n) for n in neighborhood.values()),
        len(neighborhood),
        neighbor_file,
    )
    return neighborhood


class RepgenNeighborSource(GenomeSource[NeighborSample]):
    """Balanced per-representative sample from a precomputed neighbor table.

    Representatives contribute neighbors round-robin until ``min_genomes``
    picks are planned or every neighbor list is used up; each representative's
    picks are then spread evenly across its distance-sorted neighbor list.

    By default the genome emitted for each pick is the *representative's*
    genome, labelled with the neighbor's identity and distance. Pass
    ``SequenceSource.NEIGHBOR`` to emit the neighbor's own genome instead.

    Args:
        neighbor_file: Tab-delimited neighbor table.
        min_genomes: Number of picks to plan.
        repository: Genome repository used for downloads.
        sequence_source: Whose contigs to emit for each pick.
    """

    label = "Neighbor source"

    def __init__(
        self,
        neighbor_file: Path,
        min_genomes: int,
        repository: GenomeRepository,
        sequence_source: SequenceSource = SequenceSource.REPRESENTATIVE,
    ) -> None:
        super().__init__()
        self._repository = repository
        self.sequence_source = sequence_source
        self.neighborhood = load_neighborhood(neighbor_file)
        self.plan = allocate_round_robin(
            {rep: len(neighbors) for rep, neighbors in self.neighborhood.items()},
            min_genomes,
        )
        picks = [
            (rep_id, neighbor)
            for rep_id in sorted(self.plan)
            for neighbor in spacer(self.neighborhood[rep_id], self.plan[rep_id])
        ]
        self.stats.candidates = sum(len(n) for n in self.neighborhood.values())
        self.stats.selected = len(picks)
        logger.info("%d neighbors selected from %d representatives", len(picks), len(self.plan))
        self._picks = iter(picks)
        self._cached_id: str | None = None
        self._cached: Genome | None = None

    def _genome_for(self, genome_id: str) -> Genome | None:
        if genome_id == self._cached_id:
            return self._cached
        logger.info("Downloading %s", genome_id)
        genome = self._repository.fetch(genome_id, GenomeDetail.CONTIGS)
        self._cached_id = genome_id
        self._cached = genome
        return genome

    def _next_item(self) -> NeighborSample | None:
        for rep_id, neighbor in self._picks:
            if self.sequence_source is SequenceSource.REPRESENTATIVE:
                source_id = rep_id
            else:
                source_id = neighbor.genome_id
            genome = self._genome_for(source_id)
            if genome is None:
                logger.warning("Genome %s could not be downloaded; skipping", source_id)
                self.stats.skipped += 1
                continue
            return NeighborSample(genome=genome, neighbor=neighbor, rep_id=rep_id)
        return None


class DirectoryRewriteSource(GenomeSource[Genome]):
    """Every GTO cached in a genome directory, in file-name order.

    Args:
        genome_dir: Directory of ``*.gto`` files, e.g. the cache written by a
            previous sample build.
    """

    label = "Directory source"

    def __init__(self, genome_dir: Path) -> None:
        super().__init__()
        self._paths = sorted(p for p in genome_dir.iterdir() if is_gto(p))
        self.stats.candidates = self.stats.selected = len(self._paths)
        logger.info("%d genomes found in %s", len(self._paths), genome_dir)
        self._iter = iter(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def _next_item(self) -> Genome | None:
        for path in self._iter:
            return Genome.load(path)
        return None
