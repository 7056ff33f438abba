"""
Sampling strategies for building balanced synthetic samples.

Provides the bounded random selection used by every genome source, the
evenly spaced picker used on sorted neighbor lists, and the round-robin
allocation that spreads a minimum genome count across representatives.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TypeVar

import numpy as np

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, order=True)
class Neighbor:
    """A genome close to a representative, with its precomputed distance.

    Neighbors sort by distance, then by genome ID, so sampling from a sorted
    neighbor list is deterministic.
    """

    distance: float
    genome_id: str
    name: str = field(default="", compare=False)


# Representative ID -> neighbors sorted by (distance, genome_id)
Neighborhood = dict[str, list[Neighbor]]


def select_bounded(
    candidates: Collection[T],
    max_count: int,
    rng: np.random.Generator | None = None,
) -> list[T]:
    """Select a uniformly shuffled subset of at most ``max_count`` candidates.

    The full candidate pool is permuted and the first ``max_count`` entries
    are returned. The caller's collection is not modified. Sets are sorted
    before shuffling so a seeded generator gives the same selection every run.

    Args:
        candidates: Pool of candidates (a set or a sequence).
        max_count: Maximum number of candidates to return.
        rng: Random generator; a fresh unseeded one is used when omitted.

    Returns:
        List of ``min(len(candidates), max_count)`` candidates.

    Raises:
        ValueError: If ``max_count`` is negative.
    """
    if max_count < 0:
        msg = f"max_count must be non-negative, got {max_count}"
        raise ValueError(msg)
    if rng is None:
        rng = np.random.default_rng()

    if isinstance(candidates, (set, frozenset)):
        pool = sorted(candidates)
    else:
        pool = list(candidates)
    order = rng.permutation(len(pool))
    return [pool[i] for i in order[:max_count]]


def spacer(items: Sequence[T], count: int) -> Iterator[T]:
    """Yield ``count`` items spread evenly across ``items``.

    Index ``i`` of the output is ``items[i * n // count]``, so the first item
    is always included, indices strictly increase and never leave the list.
    ``count`` is clamped to the list length.

    Args:
        items: Sorted list to pick from. It is not modified.
        count: Number of items to pick.

    Yields:
        The selected items in list order.
    """
    n = len(items)
    count = max(0, min(count, n))
    for i in range(count):
        yield items[i * n // count]


def allocate_round_robin(
    sizes: Mapping[str, int],
    min_total: int,
) -> dict[str, int]:
    """Plan how many neighbors to take from each representative.

    Each round adds one to the planned count of every representative that
    still has unplanned neighbors, in sorted ID order, stopping as soon as the
    total reaches ``min_total`` or every representative is exhausted.

    Args:
        sizes: Representative ID -> number of available neighbors.
        min_total: Total number of genomes wanted.

    Returns:
        Representative ID -> planned count (only representatives with a
        non-zero plan are included).
    """
    planned = dict.fromkeys(sizes, 0)
    active = [rep for rep in sorted(sizes) if sizes[rep] > 0]
    total = 0
    while active and total < min_total:
        remaining = []
        for rep in active:
            if total >= min_total:
                remaining.append(rep)
                continue
            planned[rep] += 1
            total += 1
            if planned[rep] < sizes[rep]:
                remaining.append(rep)
        active = remaining
    logger.debug("Planned %d genomes across %d representatives", total, len(sizes))
    return {rep: count for rep, count in planned.items() if count > 0}
