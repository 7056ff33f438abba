"""
Pydantic configuration models for hammersynth.

These models define the options of each sample-building command. They are
built by the CLI from command-line arguments and validated before any
processing begins, so configuration errors are reported up front.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Self

from pydantic import BaseModel, Field, model_validator

from hammersynth.core.exceptions import (
    InvalidContigFractionError,
    InvalidGenomeCountError,
    NoGenomeSourceError,
)

DEFAULT_MAX_GENOMES = 1000
DEFAULT_MIN_GENOMES = 100


class SequenceSource(str, Enum):
    """Which genome's contigs a neighbor sample emits."""

    REPRESENTATIVE = "representative"
    NEIGHBOR = "neighbor"


class SamplingConfig(BaseModel):
    """Options shared by every command that writes sample contigs."""

    output: Path | None = Field(
        default=None,
        description="Output FASTA file (standard output if omitted)",
    )
    contig_fraction: float = Field(
        default=1.0,
        description="Probability that each contig of a genome is written",
    )
    seed: int | None = Field(
        default=None,
        description="Random seed for reproducible selection (random if omitted)",
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_contig_fraction(self) -> Self:
        """Contig fraction must be in (0, 1]."""
        if not 0.0 < self.contig_fraction <= 1.0:
            raise InvalidContigFractionError(self.contig_fraction)
        return self


class SampleConfig(SamplingConfig):
    """Configuration for building a sample from bins and/or an evaluation report.

    Attributes:
        repdb: Representative-genome database file.
        cache_dir: Directory that receives a GTO copy of every genome written.
        bin_dir: Binning master directory (optional source).
        eval_file: Genome evaluation report (optional source).
        max_genomes: Maximum number of genomes selected from each source.
        clear: Erase the cache directory before processing.
    """

    repdb: Path = Field(description="Representative-genome database file")
    cache_dir: Path = Field(description="Genome output directory")
    bin_dir: Path | None = Field(default=None, description="Binning master directory")
    eval_file: Path | None = Field(default=None, description="Genome evaluation report")
    max_genomes: int = Field(
        default=DEFAULT_MAX_GENOMES,
        description="Maximum number of genomes to select from a single source",
    )
    clear: bool = Field(default=False, description="Erase the genome output directory first")

    @model_validator(mode="after")
    def validate_sources(self) -> Self:
        """At least one source and a positive genome cap are required."""
        if self.bin_dir is None and self.eval_file is None:
            raise NoGenomeSourceError
        if self.max_genomes < 1:
            raise InvalidGenomeCountError("max_genomes", self.max_genomes)
        return self


class RewriteConfig(SamplingConfig):
    """Configuration for re-labelling a cached genome directory.

    Attributes:
        repdb: Representative-genome database to match against.
        genome_dir: Directory of cached GTO files.
    """

    repdb: Path = Field(description="Representative-genome database file")
    genome_dir: Path = Field(description="Genome input directory")


class NeighborSampleConfig(SamplingConfig):
    """Configuration for a balanced sample built from a neighbor table.

    Attributes:
        neighbor_file: Tab-delimited table of genome_id, genome_name, rep_id,
            distance.
        min_genomes: Number of genomes to spread across the representatives.
        sequence_source: Whose contigs are emitted for each pick.
    """

    neighbor_file: Path = Field(description="Neighbor table")
    min_genomes: int = Field(
        default=DEFAULT_MIN_GENOMES,
        description="Minimum number of genomes to select across all representatives",
    )
    sequence_source: SequenceSource = Field(
        default=SequenceSource.REPRESENTATIVE,
        description=(
            "Genome whose contigs are emitted for each neighbor: the "
            "representative (the default) or the neighbor itself"
        ),
    )

    @model_validator(mode="after")
    def validate_min_genomes(self) -> Self:
        if self.min_genomes < 1:
            raise InvalidGenomeCountError("min_genomes", self.min_genomes)
        return self
