"""
hammersynth: synthetic genome samples for hammer classifier testing.

Builds curated FASTA samples from binning output, genome evaluation reports
and repgen neighbor tables. Every genome is labelled with its closest
representative genome and the seed-protein distance to it, giving the
ground truth a hammer classification run is scored against.
"""

__version__ = "0.1.0"
__author__ = "hammersynth Team"

__all__ = ["__version__"]
