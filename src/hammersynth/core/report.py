"""
Bin quality versus seed-protein distance report.

For every bin of every binning run under a master directory, compares the
bin's seed protein with that of the reference genome the binner assigned it
to, and reports the distance next to the bin's quality numbers. Distances
are also tallied into 0.1-wide ranges so the fraction of good bins can be
read off per distance range.

Each binning run is a subdirectory holding the bin genomes (``*.gto`` or
``<n>.<n>.json``) and an evaluation index ``Eval/index.tbl``. Runs without a
readable index are skipped.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import Path

import polars as pl

from hammersynth.core.exceptions import GenomeFileError, TableReadError
from hammersynth.core.io_utils import read_tsv
from hammersynth.core.kmers import DEFAULT_KMER_SIZE, ProteinKmers
from hammersynth.core.quality import as_flag, as_number
from hammersynth.core.repgen import extract_seed_protein
from hammersynth.models.genome import Genome

logger = logging.getLogger(__name__)

INDEX_PATH = Path("Eval") / "index.tbl"
JSON_GENOME_PATTERN = re.compile(r"\d+\.\d+\.json")

# Positional columns of the evaluation index
_BIN_ID, _BIN_NAME, _REF_ID = 1, 2, 3
_CONSISTENCY, _COMPLETENESS, _CONTAMINATION, _GOOD = 9, 10, 11, 14

REPORT_COLUMNS = [
    "sample",
    "bin_id",
    "bin_name",
    "distance",
    "consistency",
    "completeness",
    "contamination",
    "good",
    "bin_protein",
    "ref_protein",
]

# Distance buckets are tenths: bucket b covers (b-1)/10 < d <= b/10
N_BUCKETS = 11


def is_report_genome(path: Path) -> bool:
    """Return True for a genome file in a binning run directory."""
    return path.is_file() and (
        path.suffix == ".gto" or JSON_GENOME_PATTERN.fullmatch(path.name) is not None
    )


@dataclass(frozen=True)
class BinQuality:
    """One report line: a bin, its quality and its distance to its reference."""

    sample: str
    bin_id: str
    bin_name: str
    distance: float
    consistency: float
    completeness: float
    contamination: float
    good: bool
    bin_protein: str
    ref_protein: str


@dataclass
class QualityCounts:
    """Good and bad bin counts per distance bucket."""

    good: list[int] = field(default_factory=lambda: [0] * N_BUCKETS)
    bad: list[int] = field(default_factory=lambda: [0] * N_BUCKETS)

    @staticmethod
    def bucket(distance: float) -> int:
        """Return the bucket whose upper limit is the distance rounded up to a tenth."""
        return min(max(math.ceil(distance * 10), 0), N_BUCKETS - 1)

    def record(self, distance: float, good: bool) -> None:
        b = self.bucket(distance)
        if good:
            self.good[b] += 1
        else:
            self.bad[b] += 1

    def fraction_good(self, b: int) -> float:
        total = self.good[b] + self.bad[b]
        return self.good[b] / total if total else 0.0


def _seed_map(run_dir: Path, kmer_size: int) -> dict[str, ProteinKmers]:
    """Map genome ID to seed-protein k-mers for every genome in a run."""
    seeds: dict[str, ProteinKmers] = {}
    for genome_file in sorted(p for p in run_dir.iterdir() if is_report_genome(p)):
        try:
            genome = Genome.load(genome_file)
        except GenomeFileError as e:
            logger.warning("Skipping %s: %s", genome_file, e.message)
            continue
        logger.debug("Searching for seed protein in %s", genome)
        protein = extract_seed_protein(genome)
        if protein is None:
            logger.warning("No seed protein found in %s", genome)
        else:
            seeds[genome.id] = ProteinKmers(protein, kmer_size)
    return seeds


def scan_bin_quality(
    master_dir: Path,
    kmer_size: int = DEFAULT_KMER_SIZE,
) -> list[BinQuality]:
    """Compute a report line for every bin whose seed proteins are known.

    Args:
        master_dir: Master binning directory.
        kmer_size: Protein k-mer length for distances.

    Returns:
        Report lines, grouped by binning run in directory-name order.
    """
    run_dirs = sorted(p for p in master_dir.iterdir() if p.is_dir())
    logger.info("%d binning subdirectories found in %s", len(run_dirs), master_dir)
    results: list[BinQuality] = []
    for run_dir in run_dirs:
        index_file = run_dir / INDEX_PATH
        if not index_file.is_file():
            logger.warning("No index file found for %s", run_dir)
            continue
        try:
            index = read_tsv(index_file, truncate_ragged_lines=True)
        except TableReadError as e:
            logger.warning("Skipping %s: %s", run_dir, e.message)
            continue
        seeds = _seed_map(run_dir, kmer_size)
        logger.info("Processing bin %s", run_dir.name)
        for row in index.iter_rows():
            if len(row) <= _GOOD:
                logger.warning("Short line in %s ignored", index_file)
                continue
            bin_seed = seeds.get(row[_BIN_ID])
            ref_seed = seeds.get(row[_REF_ID])
            if bin_seed is None or ref_seed is None:
                continue
            metrics = [as_number(row[i]) for i in (_CONSISTENCY, _COMPLETENESS, _CONTAMINATION)]
            if any(m is None for m in metrics):
                logger.warning("Bin %s in %s has invalid quality numbers", row[_BIN_ID], run_dir)
                continue
            consistency, completeness, contamination = metrics
            results.append(
                BinQuality(
                    sample=run_dir.name,
                    bin_id=row[_BIN_ID],
                    bin_name=row[_BIN_NAME] or "",
                    distance=bin_seed.distance(ref_seed),
                    consistency=consistency,
                    completeness=completeness,
                    contamination=contamination,
                    good=as_flag(row[_GOOD]),
                    bin_protein=bin_seed.protein,
                    ref_protein=ref_seed.protein,
                )
            )
    return results


def tally_by_distance(rows: list[BinQuality]) -> QualityCounts:
    """Count good and bad bins per distance bucket."""
    counts = QualityCounts()
    for row in rows:
        counts.record(row.distance, row.good)
    return counts


def report_frame(rows: list[BinQuality]) -> pl.DataFrame:
    """Format report lines as a table of display strings."""
    return pl.DataFrame(
        {
            "sample": [r.sample for r in rows],
            "bin_id": [r.bin_id for r in rows],
            "bin_name": [r.bin_name for r in rows],
            "distance": [f"{r.distance:4.3f}" for r in rows],
            "consistency": [f"{r.consistency:6.2f}" for r in rows],
            "completeness": [f"{r.completeness:6.2f}" for r in rows],
            "contamination": [f"{r.contamination:6.2f}" for r in rows],
            "good": [str(r.good).lower() for r in rows],
            "bin_protein": [r.bin_protein for r in rows],
            "ref_protein": [r.ref_protein for r in rows],
        },
        schema=dict.fromkeys(REPORT_COLUMNS, pl.Utf8),
    )


def totals_frame(counts: QualityCounts) -> pl.DataFrame:
    """Format the per-bucket totals as a table of display strings."""
    buckets = range(N_BUCKETS)
    return pl.DataFrame(
        {
            "upper_limit": [f"{b / 10:4.1f}" for b in buckets],
            "Good": [str(counts.good[b]) for b in buckets],
            "Bad": [str(counts.bad[b]) for b in buckets],
            "Percent": [f"{counts.fraction_good(b) * 100:6.2f}" for b in buckets],
        }
    )
