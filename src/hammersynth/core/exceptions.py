"""
Custom exceptions with actionable guidance.

Provides specific error types for common failure scenarios,
each with helpful suggestions for resolution.
"""

from __future__ import annotations


class HammerSynthError(Exception):
    """Base exception for hammersynth errors."""

    def __init__(self, message: str, suggestion: str | None = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.full_message)

    @property
    def full_message(self) -> str:
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


class ConfigurationError(HammerSynthError):
    """Raised when configuration is invalid."""


class InvalidContigFractionError(ConfigurationError):
    """Raised when the contig inclusion fraction is outside (0, 1]."""

    def __init__(self, value: float):
        super().__init__(
            message=f"Contig fraction must be between 0 and 1, got {value}",
            suggestion="Use a value greater than 0.0 and at most 1.0, e.g. --contig-frac 0.9.",
        )
        self.value = value


class InvalidGenomeCountError(ConfigurationError):
    """Raised when a genome count option is not positive."""

    def __init__(self, param_name: str, value: int):
        super().__init__(
            message=f"{param_name} must be at least 1, got {value}",
            suggestion=f"Set {param_name} to a positive number of genomes.",
        )
        self.param_name = param_name
        self.value = value


class NoGenomeSourceError(ConfigurationError):
    """Raised when no genome source location was specified."""

    def __init__(self) -> None:
        super().__init__(
            message="At least one genome source location must be specified",
            suggestion=(
                "Provide a binning master directory (--bin-dir), "
                "an evaluation results file (--eval-file), or both."
            ),
        )


class RepGenomeDbError(HammerSynthError):
    """Raised when the representative-genome database cannot be loaded."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            message=f"Cannot load representative-genome database {path}: {reason}",
            suggestion=(
                "The database must be a JSON definition file with 'kmer_size', "
                "'threshold' and 'representatives' keys, or a protein FASTA file "
                "of representative seed proteins (>genome_id name)."
            ),
        )
        self.path = path


class GenomeFileError(HammerSynthError):
    """Raised when a GTO genome file is unreadable or malformed."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            message=f"Invalid genome file {path}: {reason}",
            suggestion="Genome files must be GTO JSON documents with at least an 'id' field.",
        )
        self.path = path


class TableFormatError(HammerSynthError):
    """Raised when an input table is missing required columns."""

    def __init__(self, path: str, missing: list[str]):
        super().__init__(
            message=f"Table {path} is missing required column(s): {', '.join(missing)}",
            suggestion="Check that the file is tab-delimited and has a header line.",
        )
        self.path = path
        self.missing = missing


class TableReadError(HammerSynthError):
    """Raised when an input table cannot be parsed."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            message=f"Cannot read table {path}: {reason}",
            suggestion=(
                "Check that the file is not empty, is tab-delimited and has no "
                "more fields on a line than in its header."
            ),
        )
        self.path = path


class RepositoryError(HammerSynthError):
    """Error communicating with the remote genome repository."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        suggestion = "Check your internet connection and try again."
        if status_code == 404:
            suggestion = "The genome may not exist in BV-BRC. Check the genome ID."
        elif status_code == 429:
            suggestion = "Rate limited. Wait a moment and try again."
        elif status_code and status_code >= 500:
            suggestion = "BV-BRC server error. Try again later."

        super().__init__(message=message, suggestion=suggestion)


class OutputDirectoryError(HammerSynthError):
    """Raised when the genome cache directory cannot be prepared."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            message=f"Cannot prepare genome output directory {path}: {reason}",
            suggestion="Check that the parent directory exists and is writable.",
        )
        self.path = path
