"""
Shared pytest fixtures for hammersynth tests.

Provides seeded genome factories, representative-genome databases and
an in-memory genome repository for unit and integration testing.
"""

from __future__ import annotations

import tempfile
from collections.abc import Iterator
from pathlib import Path

import numpy as np
import pytest

from hammersynth.core.repgen import RepGenomeDb
from tests.factories import (
    REP_A,
    REP_B,
    FakeRepository,
    GenomeFactory,
    random_protein,
    write_repdb,
)


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Temporary directory that is cleaned up after tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random generator."""
    return np.random.default_rng(12345)


@pytest.fixture
def genome_factory() -> GenomeFactory:
    """Seeded GTO genome factory."""
    return GenomeFactory(seed=42)


@pytest.fixture
def rep_proteins() -> dict[str, str]:
    """Seed proteins of two unrelated representative genomes."""
    return {REP_A: random_protein(1), REP_B: random_protein(2)}


@pytest.fixture
def repdb_file(temp_dir: Path, rep_proteins: dict[str, str]) -> Path:
    """JSON representative-genome database with two representatives."""
    return write_repdb(temp_dir / "repdb.json", rep_proteins)


@pytest.fixture
def repdb(repdb_file: Path) -> RepGenomeDb:
    """Loaded two-representative database."""
    return RepGenomeDb.load(repdb_file)


@pytest.fixture
def fake_repository() -> FakeRepository:
    """Empty in-memory genome repository."""
    return FakeRepository()
