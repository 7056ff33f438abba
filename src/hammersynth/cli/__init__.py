"""
CLI commands for hammersynth.

Provides command-line interface for sample building and binning reports.
"""

__all__ = ["main", "report", "sample"]
