"""
Synthetic sample pipelines.

Drives genome sources through nearest-representative matching and into a
:class:`~hammersynth.core.writer.SampleWriter`. Three drivers are provided:

- :func:`run_sample_pipeline` for bin and evaluation sources. Genomes are
  written with whatever representative was closest, however distant, and a
  copy of each is cached for later reuse.
- :func:`run_rewrite_pipeline` for re-labelling a cached genome directory
  against another database. Genomes whose best match is below the
  database's similarity threshold are dropped.
- :func:`run_neighbor_pipeline` for neighbor-table samples, which carry
  precomputed distances and need no matching.

Run counters live in a :class:`RunContext` owned by one invocation.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np

from hammersynth.core.exceptions import OutputDirectoryError
from hammersynth.core.sources import (
    BinDirectorySource,
    EvaluationReportSource,
    GenomeRepository,
    GenomeSource,
    NeighborSample,
)

if TYPE_CHECKING:
    from hammersynth.core.repgen import RepGenomeDb
    from hammersynth.core.writer import SampleWriter
    from hammersynth.models.config import SampleConfig
    from hammersynth.models.genome import Genome

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """Counters accumulated over one pipeline run.

    Attributes:
        examined: Genomes received from the sources.
        written: Genomes written to the sample.
        no_seed: Genomes skipped because they have no seed protein.
        no_match: Genomes skipped because no acceptable representative was found.
    """

    examined: int = 0
    written: int = 0
    no_seed: int = 0
    no_match: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


def prepare_cache_dir(cache_dir: Path, clear: bool = False) -> None:
    """Create the genome cache directory, or empty it if ``clear`` is set.

    Raises:
        OutputDirectoryError: If the directory cannot be created or cleared.
    """
    try:
        if not cache_dir.is_dir():
            logger.info("Creating genome output directory %s", cache_dir)
            cache_dir.mkdir(parents=True)
        elif clear:
            logger.info("Erasing genome output directory %s", cache_dir)
            for child in cache_dir.iterdir():
                if child.is_dir() and not child.is_symlink():
                    shutil.rmtree(child)
                else:
                    child.unlink()
        else:
            logger.info("Selected genomes will be cached in %s", cache_dir)
    except OSError as e:
        raise OutputDirectoryError(str(cache_dir), e.strerror or str(e)) from e


def build_sample_sources(
    config: SampleConfig,
    repository: GenomeRepository | None,
    rng: np.random.Generator | None = None,
) -> list[GenomeSource[Genome]]:
    """Create the genome sources named by a sample configuration.

    The evaluation source comes first, then the binning source.

    Raises:
        ValueError: If an evaluation file is configured without a repository.
    """
    sources: list[GenomeSource[Genome]] = []
    if config.eval_file is not None:
        if repository is None:
            msg = "An evaluation source needs a genome repository"
            raise ValueError(msg)
        logger.info("Creating evaluation genome source using %s", config.eval_file)
        sources.append(
            EvaluationReportSource(config.eval_file, config.max_genomes, repository, rng)
        )
    if config.bin_dir is not None:
        logger.info("Creating binning genome source using %s", config.bin_dir)
        sources.append(BinDirectorySource(config.bin_dir, config.max_genomes, rng))
    return sources


def run_sample_pipeline(
    sources: Iterable[GenomeSource[Genome]],
    repdb: RepGenomeDb,
    writer: SampleWriter,
    cache_dir: Path | None = None,
    context: RunContext | None = None,
) -> RunContext:
    """Match every genome from the sources and write it to the sample.

    Genomes without a seed protein, or whose seed protein shares nothing
    with any representative, are skipped. Every other genome is written with
    its closest representative regardless of the similarity threshold, and
    saved to ``cache_dir`` as ``<genomeId>.gto`` when a cache is given.

    Returns:
        The run context with updated counters.
    """
    ctx = context if context is not None else RunContext()
    for source in sources:
        for genome in source:
            ctx.examined += 1
            seed = repdb.seed_kmers(genome)
            if seed is None:
                logger.info("No seed protein in %s", genome)
                ctx.no_seed += 1
                continue
            match = repdb.find_closest(seed)
            if not match.found:
                logger.warning("No representative shares any k-mers with %s", genome)
                ctx.no_match += 1
                continue
            writer.write_genome(genome, match.genome_id, match.distance)
            if cache_dir is not None:
                genome.save(cache_dir / f"{genome.id}.gto")
            ctx.written += 1
    logger.info("All done. %d genomes output of %d examined", ctx.written, ctx.examined)
    return ctx


def run_rewrite_pipeline(
    source: GenomeSource[Genome],
    repdb: RepGenomeDb,
    writer: SampleWriter,
    context: RunContext | None = None,
) -> RunContext:
    """Re-match cached genomes against ``repdb`` and write corrected labels.

    Genomes whose closest representative falls below the database's
    similarity threshold are dropped.

    Returns:
        The run context with updated counters.
    """
    ctx = context if context is not None else RunContext()
    for genome in source:
        ctx.examined += 1
        logger.info("Processing genome %d: %s", ctx.examined, genome)
        seed = repdb.seed_kmers(genome)
        if seed is None:
            logger.error("No seed protein found in %s", genome)
            ctx.no_seed += 1
            continue
        match = repdb.find_closest(seed)
        if not match.passes_threshold:
            logger.warning("No close neighbor found for %s", genome)
            ctx.no_match += 1
            continue
        writer.write_genome(genome, match.genome_id, match.distance)
        ctx.written += 1
    logger.info("%d genomes written to output", ctx.written)
    return ctx


def run_neighbor_pipeline(
    source: Iterable[NeighborSample],
    writer: SampleWriter,
    context: RunContext | None = None,
) -> RunContext:
    """Write each planned neighbor pick under the neighbor's identity.

    Returns:
        The run context with updated counters.
    """
    ctx = context if context is not None else RunContext()
    for sample in source:
        ctx.examined += 1
        neighbor = sample.neighbor
        writer.write_contigs(
            neighbor.genome_id,
            neighbor.name,
            sample.genome.contigs,
            sample.rep_id,
            neighbor.distance,
        )
        ctx.written += 1
    logger.info("%d neighbor genomes written to output", ctx.written)
    return ctx
