"""
Pydantic data models for hammersynth.

Provides type-safe models for GTO genomes and command configuration.
"""

from hammersynth.models.config import (
    NeighborSampleConfig,
    RewriteConfig,
    SampleConfig,
    SequenceSource,
)
from hammersynth.models.genome import Contig, Feature, Genome

__all__ = [
    "Contig",
    "Feature",
    "Genome",
    "NeighborSampleConfig",
    "RewriteConfig",
    "SampleConfig",
    "SequenceSource",
]
