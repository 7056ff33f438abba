"""
Representative-genome database and nearest-representative matching.

A representative-genome (repgen) database holds one seed protein per
representative genome. A genome is matched to the representative whose seed
protein shares the most protein k-mers with its own; the reported distance is
the Jaccard distance between the two k-mer sets.

The database is loaded once per run, so every distance written to one output
file comes from the same reference snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Self

from Bio import SeqIO
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from hammersynth.core.exceptions import RepGenomeDbError
from hammersynth.core.kmers import DEFAULT_KMER_SIZE, ProteinKmers

if TYPE_CHECKING:
    from hammersynth.models.genome import Genome

logger = logging.getLogger(__name__)

# Functional role of the seed protein (PheS)
SEED_FUNCTION = "Phenylalanyl-tRNA synthetase alpha chain (EC 6.1.1.20)"

DEFAULT_THRESHOLD = 10


class RepresentativeEntry(BaseModel):
    """One representative genome and its reference seed protein."""

    genome_id: str = Field(description="Representative genome ID")
    name: str = Field(default="", description="Representative genome name")
    protein: str = Field(description="Seed protein sequence")

    model_config = ConfigDict(frozen=True)


class RepGenomeDefinition(BaseModel):
    """On-disk JSON layout of a representative-genome database."""

    kmer_size: int = Field(default=DEFAULT_KMER_SIZE, ge=1)
    threshold: int = Field(
        default=DEFAULT_THRESHOLD,
        ge=0,
        description="Minimum shared k-mers for a genome to be represented",
    )
    representatives: list[RepresentativeEntry] = Field(default_factory=list)


@dataclass(frozen=True)
class MatchResult:
    """Closest representative found for a seed protein.

    Attributes:
        genome_id: Representative genome ID, or None if nothing matched.
        distance: Jaccard distance to the representative (1.0 when unmatched).
        similarity: Number of shared k-mers.
        passes_threshold: True if similarity meets the database threshold.
    """

    genome_id: str | None
    distance: float
    similarity: int = 0
    passes_threshold: bool | None = None

    @property
    def found(self) -> bool:
        return self.genome_id is not None


NO_MATCH = MatchResult(genome_id=None, distance=1.0, similarity=0, passes_threshold=False)


def extract_seed_protein(genome: Genome) -> str | None:
    """Find the seed protein of a genome.

    Scans the protein-coding features for the seed-protein role. When there
    are several, the longest translation wins and ties keep the first found.

    Returns:
        The seed protein sequence, or None if the genome has none.
    """
    best: str | None = None
    for function, translation in genome.protein_features():
        if function == SEED_FUNCTION and (best is None or len(translation) > len(best)):
            best = translation
    return best


class RepGenomeDb:
    """In-memory representative-genome database.

    Args:
        representatives: Representative entries, in database order.
        kmer_size: Protein k-mer length used for all comparisons.
        threshold: Minimum similarity for an acceptable match.
    """

    def __init__(
        self,
        representatives: list[RepresentativeEntry],
        kmer_size: int = DEFAULT_KMER_SIZE,
        threshold: int = DEFAULT_THRESHOLD,
    ) -> None:
        self.kmer_size = kmer_size
        self.threshold = threshold
        self._entries = list(representatives)
        self._kmers = [ProteinKmers(e.protein, kmer_size) for e in self._entries]
        self._by_id = {e.genome_id: e for e in self._entries}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, genome_id: object) -> bool:
        return genome_id in self._by_id

    def get(self, genome_id: str) -> RepresentativeEntry | None:
        return self._by_id.get(genome_id)

    @classmethod
    def load(
        cls,
        path: Path,
        kmer_size: int | None = None,
        threshold: int | None = None,
    ) -> Self:
        """Load a database from a JSON definition or a protein FASTA file.

        JSON files (``.json``) carry their own k-mer size and threshold; FASTA
        files use the defaults. Explicit ``kmer_size`` or ``threshold`` values
        override either.

        Raises:
            RepGenomeDbError: If the file is missing, unreadable, malformed or
                defines no representatives.
        """
        if not path.is_file():
            raise RepGenomeDbError(str(path), "file not found or not a regular file")

        logger.info("Loading representative-genome data from %s", path)
        try:
            if path.suffix.lower() == ".json":
                definition = RepGenomeDefinition.model_validate_json(path.read_text())
            else:
                definition = RepGenomeDefinition(
                    representatives=[
                        RepresentativeEntry(
                            genome_id=record.id,
                            name=record.description.removeprefix(record.id).strip(),
                            protein=str(record.seq),
                        )
                        for record in SeqIO.parse(path, "fasta")
                    ]
                )
        except OSError as e:
            raise RepGenomeDbError(str(path), e.strerror or str(e)) from e
        except ValidationError as e:
            raise RepGenomeDbError(str(path), str(e.errors()[0]["msg"])) from e

        if not definition.representatives:
            raise RepGenomeDbError(str(path), "no representatives defined")

        db = cls(
            definition.representatives,
            kmer_size=kmer_size if kmer_size is not None else definition.kmer_size,
            threshold=threshold if threshold is not None else definition.threshold,
        )
        logger.info(
            "%d representatives loaded (K=%d, threshold=%d)",
            len(db),
            db.kmer_size,
            db.threshold,
        )
        return db

    def seed_kmers(self, genome: Genome) -> ProteinKmers | None:
        """Return the k-mer set of a genome's seed protein, or None."""
        protein = extract_seed_protein(genome)
        if protein is None:
            return None
        return ProteinKmers(protein, self.kmer_size)

    def find_closest(self, seed: ProteinKmers) -> MatchResult:
        """Find the representative sharing the most k-mers with ``seed``.

        Ties keep the representative that comes first in the database. A seed
        that shares no k-mers with any representative gives :data:`NO_MATCH`.
        """
        best_index = -1
        best_sim = 0
        for i, rep_kmers in enumerate(self._kmers):
            sim = seed.similarity(rep_kmers)
            if sim > best_sim:
                best_sim = sim
                best_index = i
        if best_index < 0:
            return NO_MATCH
        return MatchResult(
            genome_id=self._entries[best_index].genome_id,
            distance=seed.distance(self._kmers[best_index]),
            similarity=best_sim,
            passes_threshold=best_sim >= self.threshold,
        )
