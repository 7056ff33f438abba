"""
Data models for GTO (genome typed object) files.

A GTO is a JSON document describing one annotated genome: its identity,
contigs, protein-coding features and the quality metrics computed by the
evaluation pipeline. Only the fields the sampling pipeline reads are modelled;
everything else is preserved untouched so a cached copy round-trips.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from hammersynth.core.exceptions import GenomeFileError


class Contig(BaseModel):
    """A single DNA contig.

    Attributes:
        id: Contig identifier, unique within its genome.
        dna: Raw nucleotide sequence.
    """

    id: str = Field(description="Contig identifier")
    dna: str = Field(default="", description="Nucleotide sequence")

    model_config = ConfigDict(frozen=True, extra="allow")


class Feature(BaseModel):
    """An annotated genome feature.

    Attributes:
        id: Feature identifier (e.g. fig|83333.1.peg.1).
        type: Feature type (CDS, peg, rna, ...).
        function: Assigned functional role.
        protein_translation: Amino acid sequence for protein-coding features.
    """

    id: str = Field(description="Feature identifier")
    type: str = Field(default="CDS", description="Feature type")
    function: str = Field(default="", description="Functional assignment")
    protein_translation: str | None = Field(
        default=None, description="Protein sequence (coding features only)"
    )

    model_config = ConfigDict(frozen=True, extra="allow")


class Genome(BaseModel):
    """An annotated genome loaded from a GTO file.

    Attributes:
        id: Genome identifier (e.g. 83333.1).
        scientific_name: Display name of the genome.
        contigs: Ordered DNA contigs.
        features: Annotated features.
        quality: Quality-metadata bag (key -> boolean or numeric value).
    """

    id: str = Field(description="Genome identifier")
    scientific_name: str = Field(default="", description="Genome display name")
    contigs: list[Contig] = Field(default_factory=list)
    features: list[Feature] = Field(default_factory=list)
    quality: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="allow")

    @property
    def name(self) -> str:
        """Display name, falling back to the ID."""
        return self.scientific_name or self.id

    def __str__(self) -> str:
        return f"{self.id} ({self.name})"

    def protein_features(self) -> list[tuple[str, str]]:
        """Return (function, translation) pairs for all protein-coding features."""
        return [
            (feat.function, feat.protein_translation)
            for feat in self.features
            if feat.protein_translation
        ]

    @classmethod
    def load(cls, path: Path) -> Self:
        """Load a genome from a GTO file.

        Args:
            path: Path to the GTO JSON file.

        Returns:
            Parsed genome.

        Raises:
            GenomeFileError: If the file cannot be read or is not a valid GTO.
        """
        try:
            text = path.read_text()
        except OSError as e:
            raise GenomeFileError(str(path), e.strerror or str(e)) from e
        try:
            return cls.model_validate_json(text)
        except ValidationError as e:
            raise GenomeFileError(str(path), str(e.errors()[0]["msg"])) from e

    def save(self, path: Path) -> None:
        """Write this genome to a GTO file."""
        path.write_text(self.model_dump_json(exclude_none=True))
