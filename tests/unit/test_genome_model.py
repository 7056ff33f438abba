"""Unit tests for GTO genome models."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from hammersynth.core.exceptions import GenomeFileError
from hammersynth.models.genome import Contig, Feature, Genome


class TestGenome:
    """Tests for the Genome model."""

    def test_minimal_document(self):
        genome = Genome.model_validate({"id": "83333.1"})
        assert genome.contigs == []
        assert genome.features == []
        assert genome.quality == {}

    def test_name_falls_back_to_id(self):
        assert Genome(id="83333.1").name == "83333.1"
        assert Genome(id="83333.1", scientific_name="Escherichia coli").name == "Escherichia coli"

    def test_str(self):
        genome = Genome(id="83333.1", scientific_name="Escherichia coli")
        assert str(genome) == "83333.1 (Escherichia coli)"

    def test_protein_features(self):
        genome = Genome(
            id="1.1",
            features=[
                Feature(id="p1", function="role A", protein_translation="MKV"),
                Feature(id="r1", type="rna", function="16S rRNA"),
            ],
        )
        assert genome.protein_features() == [("role A", "MKV")]

    def test_contig_frozen(self):
        contig = Contig(id="c1", dna="ACGT")
        with pytest.raises(Exception):  # ValidationError
            contig.dna = "TTTT"

    def test_unknown_fields_preserved(self, temp_dir: Path):
        """Should round-trip fields the pipeline does not model."""
        path = temp_dir / "g.gto"
        path.write_text(
            json.dumps(
                {
                    "id": "1.1",
                    "domain": "Bacteria",
                    "contigs": [{"id": "c1", "dna": "ACGT", "genetic_code": 11}],
                }
            )
        )
        genome = Genome.load(path)
        out = temp_dir / "copy.gto"
        genome.save(out)
        data = json.loads(out.read_text())
        assert data["domain"] == "Bacteria"
        assert data["contigs"][0]["genetic_code"] == 11


class TestGenomeLoad:
    """Tests for loading GTO files."""

    def test_load(self, temp_dir: Path, genome_factory):
        path = genome_factory.write_gto(temp_dir / "1.1.gto", "1.1", seed_protein="MKV")
        genome = Genome.load(path)
        assert genome.id == "1.1"
        assert len(genome.contigs) == 3
        assert genome.contigs[0].id == "contig_1"

    def test_missing_file(self, temp_dir: Path):
        with pytest.raises(GenomeFileError, match="Invalid genome file"):
            Genome.load(temp_dir / "missing.gto")

    def test_invalid_json(self, temp_dir: Path):
        path = temp_dir / "bad.gto"
        path.write_text("not json at all")
        with pytest.raises(GenomeFileError):
            Genome.load(path)

    def test_missing_id(self, temp_dir: Path):
        path = temp_dir / "noid.gto"
        path.write_text(json.dumps({"scientific_name": "x"}))
        with pytest.raises(GenomeFileError) as exc_info:
            Genome.load(path)
        assert "GTO" in exc_info.value.suggestion
