"""
Genome quality predicates.

Two classifications are used when harvesting genomes for synthetic samples:

- strict-good: the evaluation pipeline already flagged the genome as mostly
  good (used for binning output, whose GTOs carry their own quality data).
- mostly-good-but-failing-SSU: genomes that are not "good" only because they
  lack a quality SSU rRNA. The numeric thresholds differ slightly from the
  standard so that the genome still has useful roles.

Missing or unparseable values never pass a predicate.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

# Quality-bag keys (GTO "quality" object and evaluation report columns alike)
GOOD = "good"
MOSTLY_GOOD = "mostly_good"
GOOD_SEED = "good_seed"
COMPLETENESS = "completeness"
CONTAMINATION = "contamination"
FINE_CONSISTENCY = "fine_consistency"
HYPOTHETICAL = "hypothetical_rate"

MIN_COMPLETENESS = 90.0
MAX_CONTAMINATION = 10.0
MIN_FINE_CONSISTENCY = 80.0
MAX_HYPOTHETICAL = 30.0

_TRUE_FLAGS = frozenset({"1", "y", "yes", "true", "t"})


class RowVerdict(str, Enum):
    """Outcome of classifying one evaluation row."""

    KEPT = "kept"
    SKIPPED = "skipped"
    BAD = "bad"


def as_flag(value: Any) -> bool:
    """Interpret a quality value as a boolean flag; None and blanks are False."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in _TRUE_FLAGS


def as_number(value: Any) -> float | None:
    """Interpret a quality value as a number, or None if it is not one."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if result != result:  # NaN
        return None
    return result


def is_strict_good(quality: Mapping[str, Any]) -> bool:
    """Return True if the quality bag carries a true mostly-good flag."""
    return as_flag(quality.get(MOSTLY_GOOD))


def classify_evaluation_row(quality: Mapping[str, Any]) -> RowVerdict:
    """Classify a genome for the mostly-good-but-failing-SSU harvest.

    Genomes that are already good, or that have no good seed protein, are
    skipped. The rest are kept only if all four numeric thresholds hold.

    Args:
        quality: Quality bag keyed by the module-level key constants.

    Returns:
        The verdict for this genome.
    """
    if as_flag(quality.get(GOOD)) or not as_flag(quality.get(GOOD_SEED)):
        return RowVerdict.SKIPPED

    completeness = as_number(quality.get(COMPLETENESS))
    contamination = as_number(quality.get(CONTAMINATION))
    consistency = as_number(quality.get(FINE_CONSISTENCY))
    hypothetical = as_number(quality.get(HYPOTHETICAL))
    if (
        completeness is None
        or contamination is None
        or consistency is None
        or hypothetical is None
    ):
        return RowVerdict.BAD
    if (
        completeness < MIN_COMPLETENESS
        or contamination > MAX_CONTAMINATION
        or consistency < MIN_FINE_CONSISTENCY
        or hypothetical > MAX_HYPOTHETICAL
    ):
        return RowVerdict.BAD
    return RowVerdict.KEPT


def is_mostly_good_failing_ssu(quality: Mapping[str, Any]) -> bool:
    """Return True if the genome is mostly good but not already good."""
    return classify_evaluation_row(quality) is RowVerdict.KEPT
