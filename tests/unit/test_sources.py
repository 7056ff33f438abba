"""Unit tests for genome sources.

Tests discovery, bounded selection and lazy iteration of the binning,
evaluation report, neighbor table and rewrite directory sources.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from hammersynth.clients.bvbrc import GenomeDetail
from hammersynth.core.exceptions import GenomeFileError, TableFormatError, TableReadError
from hammersynth.core.sources import (
    BinDirectorySource,
    DirectoryRewriteSource,
    EvaluationReportSource,
    RepgenNeighborSource,
    is_bin_gto,
    is_gto,
    load_neighborhood,
)
from hammersynth.models.config import SequenceSource
from tests.factories import EVAL_HEADER, NEIGHBOR_HEADER, FakeRepository, write_table

GOOD_BIN = {"mostly_good": True}
BAD_BIN = {"mostly_good": False}


@pytest.fixture
def bin_dir(temp_dir: Path, genome_factory) -> Path:
    """Binning directory with two samples, three good bins and one bad."""
    master = temp_dir / "Bins"
    genome_factory.write_gto(master / "s1" / "bin.1.1234.gto", "1234.1", quality=GOOD_BIN)
    genome_factory.write_gto(master / "s1" / "bin.2.5678.gto", "5678.1", quality=BAD_BIN)
    genome_factory.write_gto(master / "s2" / "bin.1.4321.gto", "4321.1", quality=GOOD_BIN)
    genome_factory.write_gto(master / "s2" / "bin.3.8765.gto", "8765.1", quality=GOOD_BIN)
    # Not bin files
    genome_factory.write_gto(master / "s2" / "ref.gto", "9.1", quality=GOOD_BIN)
    (master / "s2" / "bin.4.1.fa").write_text(">x\nACGT\n")
    (master / "notes.txt").write_text("not a sample")
    return master


def eval_row(genome_id: str, **overrides) -> list:
    """Evaluation report row that passes by default."""
    row = {
        "Genome": genome_id,
        "Name": f"Genome {genome_id}",
        "Good": "0",
        "Good Seed": "1",
        "Completeness": "95.0",
        "Contamination": "1.0",
        "Fine": "93.0",
        "Hypothetical": "15.0",
    }
    row.update(overrides)
    return [row[col] for col in EVAL_HEADER]


class TestFilePredicates:
    """Tests for file-name predicates."""

    def test_bin_gto(self, temp_dir: Path):
        for name, expected in [
            ("bin.1.1234.gto", True),
            ("bin.12.83333.gto", True),
            ("bin.1.gto", False),
            ("bin.a.1.gto", False),
            ("xbin.1.1.gto", False),
            ("bin.1.1.gto.bak", False),
        ]:
            path = temp_dir / name
            path.write_text("{}")
            assert is_bin_gto(path) is expected, name

    def test_directory_is_not_gto(self, temp_dir: Path):
        (temp_dir / "d.gto").mkdir()
        assert is_gto(temp_dir / "d.gto") is False


class TestBinDirectorySource:
    """Tests for the binning directory source."""

    def test_yields_only_good_bins(self, bin_dir: Path, rng):
        source = BinDirectorySource(bin_dir, 10, rng)
        ids = sorted(g.id for g in source)
        assert ids == ["1234.1", "4321.1", "8765.1"]
        assert source.stats.candidates == 4
        assert source.stats.selected == 4
        assert source.stats.returned == 3
        assert source.stats.skipped == 1

    def test_max_caps_examined_files(self, bin_dir: Path, rng):
        """Should examine at most max files, even if some are rejected."""
        source = BinDirectorySource(bin_dir, 2, rng)
        genomes = list(source)
        assert source.stats.selected == 2
        assert len(genomes) <= 2

    def test_unreadable_bin_skipped(self, bin_dir: Path, rng):
        (bin_dir / "s1" / "bin.9.9999.gto").write_text("{broken")
        source = BinDirectorySource(bin_dir, 10, rng)
        assert len(list(source)) == 3
        assert source.stats.skipped == 2

    def test_exhausted_source_stays_exhausted(self, bin_dir: Path, rng):
        source = BinDirectorySource(bin_dir, 10, rng)
        list(source)
        assert list(source) == []

    def test_empty_directory(self, temp_dir: Path, rng):
        assert list(BinDirectorySource(temp_dir, 10, rng)) == []


class TestEvaluationReportSource:
    """Tests for the evaluation report source."""

    def test_downloads_only_eligible_genomes(self, temp_dir: Path, genome_factory, rng):
        report = write_table(
            temp_dir / "eval.tbl",
            EVAL_HEADER,
            [
                eval_row("1.1", Good="1"),
                eval_row("2.1", Contamination="12.5"),
                eval_row("3.1"),
                eval_row("4.1", **{"Good Seed": "0"}),
                eval_row("5.1", Completeness=""),
            ],
        )
        repo = FakeRepository({"3.1": genome_factory.genome("3.1")})
        source = EvaluationReportSource(report, 10, repo, rng)
        assert [g.id for g in source] == ["3.1"]
        assert repo.calls == [("3.1", GenomeDetail.FULL)]

    def test_missing_download_skipped(self, temp_dir: Path, genome_factory, rng):
        report = write_table(temp_dir / "eval.tbl", EVAL_HEADER, [eval_row("1.1"), eval_row("2.1")])
        repo = FakeRepository({"2.1": genome_factory.genome("2.1")})
        source = EvaluationReportSource(report, 10, repo, rng)
        assert [g.id for g in source] == ["2.1"]
        assert sorted(repo.fetched_ids) == ["1.1", "2.1"]
        assert source.stats.skipped == 1

    def test_max_caps_downloads(self, temp_dir: Path, genome_factory, rng):
        ids = [f"{i}.1" for i in range(1, 11)]
        report = write_table(temp_dir / "eval.tbl", EVAL_HEADER, [eval_row(i) for i in ids])
        repo = FakeRepository({i: genome_factory.genome(i) for i in ids})
        source = EvaluationReportSource(report, 3, repo, rng)
        assert len(list(source)) == 3
        assert len(repo.calls) == 3
        assert source.stats.candidates == 10

    def test_duplicate_rows_counted_once(self, temp_dir: Path, genome_factory, rng):
        report = write_table(temp_dir / "eval.tbl", EVAL_HEADER, [eval_row("1.1"), eval_row("1.1")])
        repo = FakeRepository({"1.1": genome_factory.genome("1.1")})
        source = EvaluationReportSource(report, 10, repo, rng)
        assert [g.id for g in source] == ["1.1"]

    def test_downloads_are_lazy(self, temp_dir: Path, rng):
        report = write_table(temp_dir / "eval.tbl", EVAL_HEADER, [eval_row("1.1")])
        repo = FakeRepository()
        EvaluationReportSource(report, 10, repo, rng)
        assert repo.calls == []

    def test_missing_genome_column(self, temp_dir: Path, rng):
        report = write_table(temp_dir / "eval.tbl", ["Id", "Good"], [["1.1", "0"]])
        with pytest.raises(TableFormatError):
            EvaluationReportSource(report, 10, FakeRepository(), rng)

    def test_missing_quality_columns_qualify_nothing(self, temp_dir: Path, rng):
        report = write_table(temp_dir / "eval.tbl", ["Genome", "Good Seed"], [["1.1", "1"]])
        source = EvaluationReportSource(report, 10, FakeRepository(), rng)
        assert list(source) == []

    def test_blank_genome_id_skipped(self, temp_dir: Path, genome_factory, rng):
        report = write_table(temp_dir / "eval.tbl", EVAL_HEADER, [eval_row(""), eval_row("3.1")])
        repo = FakeRepository({"3.1": genome_factory.genome("3.1")})
        source = EvaluationReportSource(report, 10, repo, rng)
        assert source.stats.candidates == 1
        assert [g.id for g in source] == ["3.1"]
        assert repo.fetched_ids == ["3.1"]

    def test_empty_report(self, temp_dir: Path, rng):
        report = temp_dir / "eval.tbl"
        report.write_text("")
        with pytest.raises(TableReadError):
            EvaluationReportSource(report, 10, FakeRepository(), rng)

    def test_row_with_extra_fields(self, temp_dir: Path, rng):
        report = write_table(temp_dir / "eval.tbl", EVAL_HEADER, [eval_row("1.1") + ["extra"]])
        with pytest.raises(TableReadError):
            EvaluationReportSource(report, 10, FakeRepository(), rng)


class TestLoadNeighborhood:
    """Tests for neighbor table parsing."""

    def test_groups_and_sorts(self, temp_dir: Path):
        table = write_table(
            temp_dir / "n.tbl",
            NEIGHBOR_HEADER,
            [
                ["3.1", "Three", "R", "0.30"],
                ["1.1", "One", "R", "0.10"],
                ["9.1", "Nine", "S", "0.05"],
                ["2.1", "Two", "R", "0.10"],
            ],
        )
        hood = load_neighborhood(table)
        assert [n.genome_id for n in hood["R"]] == ["1.1", "2.1", "3.1"]
        assert hood["R"][0].name == "One"
        assert hood["S"][0].distance == pytest.approx(0.05)

    def test_drops_self_and_bad_rows(self, temp_dir: Path):
        table = write_table(
            temp_dir / "n.tbl",
            NEIGHBOR_HEADER,
            [
                ["R", "Rep", "R", "0.0"],
                ["1.1", "One", "R", "far"],
                ["2.1", "Two", "R", "0.2"],
            ],
        )
        assert [n.genome_id for n in load_neighborhood(table)["R"]] == ["2.1"]

    def test_drops_non_finite_distances(self, temp_dir: Path):
        table = write_table(
            temp_dir / "n.tbl",
            NEIGHBOR_HEADER,
            [
                ["1.1", "One", "R", "nan"],
                ["2.1", "Two", "R", "0.2"],
                ["3.1", "Three", "R", "inf"],
                ["4.1", "Four", "R", "0.1"],
            ],
        )
        hood = load_neighborhood(table)
        assert [n.genome_id for n in hood["R"]] == ["4.1", "2.1"]

    def test_missing_columns(self, temp_dir: Path):
        table = write_table(temp_dir / "n.tbl", ["genome_id", "rep_id"], [["1.1", "R"]])
        with pytest.raises(TableFormatError) as exc_info:
            load_neighborhood(table)
        assert exc_info.value.missing == ["genome_name", "distance"]


class TestRepgenNeighborSource:
    """Tests for the balanced neighbor source."""

    @pytest.fixture
    def neighbor_table(self, temp_dir: Path) -> Path:
        return write_table(
            temp_dir / "n.tbl",
            NEIGHBOR_HEADER,
            [
                ["11.1", "A one", "A", "0.1"],
                ["12.1", "A two", "A", "0.2"],
                ["13.1", "A three", "A", "0.3"],
                ["21.1", "B one", "B", "0.1"],
            ],
        )

    @pytest.fixture
    def repo(self, genome_factory) -> FakeRepository:
        ids = ["A", "B", "11.1", "12.1", "13.1", "21.1"]
        return FakeRepository({i: genome_factory.genome(i) for i in ids})

    def test_round_robin_plan(self, neighbor_table: Path, repo):
        source = RepgenNeighborSource(neighbor_table, 3, repo)
        assert source.plan == {"A": 2, "B": 1}
        samples = list(source)
        assert [(s.rep_id, s.neighbor.genome_id) for s in samples] == [
            ("A", "11.1"),
            ("A", "12.1"),
            ("B", "21.1"),
        ]

    def test_representative_contigs_by_default(self, neighbor_table: Path, repo):
        samples = list(RepgenNeighborSource(neighbor_table, 3, repo))
        assert [s.genome.id for s in samples] == ["A", "A", "B"]
        assert all(detail is GenomeDetail.CONTIGS for _, detail in repo.calls)
        # Consecutive picks of one representative share one download
        assert repo.fetched_ids == ["A", "B"]

    def test_neighbor_contigs(self, neighbor_table: Path, repo):
        source = RepgenNeighborSource(neighbor_table, 3, repo, SequenceSource.NEIGHBOR)
        samples = list(source)
        assert [s.genome.id for s in samples] == ["11.1", "12.1", "21.1"]
        assert repo.fetched_ids == ["11.1", "12.1", "21.1"]

    def test_failed_download_skipped(self, neighbor_table: Path, genome_factory):
        repo = FakeRepository({"A": genome_factory.genome("A")})
        source = RepgenNeighborSource(neighbor_table, 10, repo)
        assert [s.rep_id for s in source] == ["A", "A", "A"]
        assert source.stats.skipped == 1

    def test_everything_when_minimum_exceeds_table(self, neighbor_table: Path, repo):
        source = RepgenNeighborSource(neighbor_table, 100, repo)
        assert len(list(source)) == 4


class TestDirectoryRewriteSource:
    """Tests for the rewrite directory source."""

    def test_yields_gtos_in_name_order(self, temp_dir: Path, genome_factory):
        for gid in ["2.1", "1.1", "3.1"]:
            genome_factory.write_gto(temp_dir / f"{gid}.gto", gid)
        (temp_dir / "readme.txt").write_text("x")
        source = DirectoryRewriteSource(temp_dir)
        assert len(source) == 3
        assert [g.id for g in source] == ["1.1", "2.1", "3.1"]

    def test_unreadable_genome_propagates(self, temp_dir: Path):
        (temp_dir / "1.1.gto").write_text("{broken")
        with pytest.raises(GenomeFileError):
            list(DirectoryRewriteSource(temp_dir))
