"""
Protein k-mer sets for fast seed-protein distance estimation.
"""

from __future__ import annotations

DEFAULT_KMER_SIZE = 8


class ProteinKmers:
    """The set of distinct k-mers in a protein sequence.

    Similarity between two proteins is the number of k-mers they share;
    distance is the Jaccard distance between the two k-mer sets, ranging from
    0.0 (identical sets) to 1.0 (nothing in common).

    Args:
        protein: Amino acid sequence.
        kmer_size: Length of each k-mer.
    """

    __slots__ = ("_kmers", "kmer_size", "protein")

    def __init__(self, protein: str, kmer_size: int = DEFAULT_KMER_SIZE) -> None:
        if kmer_size < 1:
            msg = f"kmer_size must be positive, got {kmer_size}"
            raise ValueError(msg)
        self.protein = protein.upper()
        self.kmer_size = kmer_size
        self._kmers = frozenset(
            self.protein[i : i + kmer_size]
            for i in range(len(self.protein) - kmer_size + 1)
        )

    def __len__(self) -> int:
        return len(self._kmers)

    def __repr__(self) -> str:
        return f"ProteinKmers({len(self.protein)} aa, {len(self._kmers)} {self.kmer_size}-mers)"

    def similarity(self, other: ProteinKmers) -> int:
        """Number of k-mers shared with another protein."""
        return len(self._kmers & other._kmers)

    def distance(self, other: ProteinKmers) -> float:
        """Jaccard distance to another protein."""
        union = len(self._kmers | other._kmers)
        if union == 0:
            return 1.0
        return 1.0 - len(self._kmers & other._kmers) / union
