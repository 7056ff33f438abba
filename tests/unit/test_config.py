"""Unit tests for command configuration models."""

from __future__ import annotations

from pathlib import Path

import pytest

from hammersynth.core.exceptions import (
    InvalidContigFractionError,
    InvalidGenomeCountError,
    NoGenomeSourceError,
)
from hammersynth.models.config import (
    DEFAULT_MAX_GENOMES,
    DEFAULT_MIN_GENOMES,
    NeighborSampleConfig,
    RewriteConfig,
    SampleConfig,
    SequenceSource,
)


class TestSampleConfig:
    """Tests for SampleConfig validation."""

    def test_defaults(self):
        config = SampleConfig(repdb=Path("rep.json"), cache_dir=Path("out"), bin_dir=Path("Bins"))
        assert config.max_genomes == DEFAULT_MAX_GENOMES
        assert config.contig_fraction == 1.0
        assert config.output is None
        assert config.clear is False
        assert config.seed is None

    def test_eval_file_only(self):
        config = SampleConfig(repdb=Path("r"), cache_dir=Path("o"), eval_file=Path("e.tbl"))
        assert config.bin_dir is None

    def test_no_source(self):
        """Should reject a configuration with neither source."""
        with pytest.raises(NoGenomeSourceError):
            SampleConfig(repdb=Path("r"), cache_dir=Path("o"))

    @pytest.mark.parametrize("value", [0, -5])
    def test_non_positive_max(self, value):
        with pytest.raises(InvalidGenomeCountError) as exc_info:
            SampleConfig(repdb=Path("r"), cache_dir=Path("o"), bin_dir=Path("b"), max_genomes=value)
        assert exc_info.value.param_name == "max_genomes"

    @pytest.mark.parametrize("value", [0.0, -0.1, 1.01])
    def test_invalid_fraction(self, value):
        with pytest.raises(InvalidContigFractionError):
            SampleConfig(
                repdb=Path("r"), cache_dir=Path("o"), bin_dir=Path("b"), contig_fraction=value
            )

    def test_frozen(self):
        config = SampleConfig(repdb=Path("r"), cache_dir=Path("o"), bin_dir=Path("b"))
        with pytest.raises(Exception):  # ValidationError
            config.max_genomes = 5


class TestRewriteConfig:
    """Tests for RewriteConfig."""

    def test_valid(self):
        config = RewriteConfig(repdb=Path("r"), genome_dir=Path("g"), contig_fraction=0.5)
        assert config.contig_fraction == 0.5

    def test_invalid_fraction(self):
        with pytest.raises(InvalidContigFractionError):
            RewriteConfig(repdb=Path("r"), genome_dir=Path("g"), contig_fraction=2.0)


class TestNeighborSampleConfig:
    """Tests for NeighborSampleConfig."""

    def test_defaults(self):
        config = NeighborSampleConfig(neighbor_file=Path("n.tbl"))
        assert config.min_genomes == DEFAULT_MIN_GENOMES
        assert config.sequence_source is SequenceSource.REPRESENTATIVE

    def test_sequence_source_from_string(self):
        config = NeighborSampleConfig(neighbor_file=Path("n.tbl"), sequence_source="neighbor")
        assert config.sequence_source is SequenceSource.NEIGHBOR

    def test_non_positive_min(self):
        with pytest.raises(InvalidGenomeCountError) as exc_info:
            NeighborSampleConfig(neighbor_file=Path("n.tbl"), min_genomes=0)
        assert exc_info.value.param_name == "min_genomes"
