"""
FASTA writer for synthetic sample contigs.

Each output record is labelled ``<genomeId>:<contigId>`` and carries the
ground truth for the hammer test as a tab-separated comment on the header
line: genome name, closest representative ID and distance to it.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Self, TextIO

import numpy as np

from hammersynth.core.exceptions import InvalidContigFractionError

if TYPE_CHECKING:
    from hammersynth.models.genome import Contig, Genome

logger = logging.getLogger(__name__)


class SampleWriter:
    """Context manager that writes sample contigs to a FASTA file.

    Contigs are included independently, each with probability
    ``contig_fraction``; a fraction of 1.0 writes every contig. The stream is
    flushed and closed when the context exits, whether or not an exception
    was raised. Standard output is flushed but never closed.

    Args:
        output: Output FASTA path, or None for standard output.
        contig_fraction: Probability that any one contig is written.
        rng: Random generator for the per-contig trials.

    Example:
        >>> with SampleWriter(Path("sample.fa"), 0.9) as writer:
        ...     writer.write_genome(genome, "83333.1", 0.12)
    """

    def __init__(
        self,
        output: Path | None = None,
        contig_fraction: float = 1.0,
        rng: np.random.Generator | None = None,
    ) -> None:
        if not 0.0 < contig_fraction <= 1.0:
            raise InvalidContigFractionError(contig_fraction)
        self.output = output
        self.contig_fraction = contig_fraction
        self._rng = rng if rng is not None else np.random.default_rng()
        self.sequences_written = 0
        self.genomes_written = 0
        self._handle: TextIO | None = None

    def __enter__(self) -> Self:
        if self.output is None:
            logger.info("Sequences will be written to the standard output")
            self._handle = sys.stdout
        else:
            logger.info("Sequences will be written to %s", self.output)
            self._handle = self.output.open("w")
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Flush and close the output stream."""
        if self._handle is None:
            return
        if self.output is None:
            self._handle.flush()
        else:
            self._handle.close()
        self._handle = None
        logger.info(
            "%d total sequences written from %d genomes",
            self.sequences_written,
            self.genomes_written,
        )

    def write_genome(self, genome: Genome, rep_id: str, distance: float) -> int:
        """Write a genome's contigs labelled with its closest representative.

        Returns:
            Number of contigs written.
        """
        logger.info("Writing contigs from genome %s", genome)
        return self.write_contigs(genome.id, genome.name, genome.contigs, rep_id, distance)

    def write_contigs(
        self,
        genome_id: str,
        genome_name: str,
        contigs: Iterable[Contig],
        rep_id: str,
        distance: float,
    ) -> int:
        """Write contigs under an explicit genome identity.

        Returns:
            Number of contigs written.
        """
        if self._handle is None:
            msg = "SampleWriter must be used as a context manager"
            raise RuntimeError(msg)
        comment = f"{genome_name}\t{rep_id}\t{distance}"
        written = 0
        for contig in contigs:
            if self._rng.random() < self.contig_fraction:
                self._handle.write(f">{genome_id}:{contig.id} {comment}\n{contig.dna}\n")
                written += 1
        self.sequences_written += written
        self.genomes_written += 1
        return written
