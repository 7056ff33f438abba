"""
I/O utilities for tab-delimited tables.

Provides consistent reading and writing of the tabular inputs and reports
used across the codebase.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Literal

import polars as pl

from hammersynth.core.exceptions import TableReadError

OutputFormat = Literal["tsv", "csv"]


def read_tsv(path: Path, truncate_ragged_lines: bool = False) -> pl.DataFrame:
    """
    Read a tab-delimited table with a header line.

    Every column is read as a string so that flag and number parsing is left
    to the caller, and quote characters are treated as ordinary text (genome
    names often contain them). Missing trailing fields are read as nulls.

    Args:
        path: Input file path.
        truncate_ragged_lines: Drop fields beyond the header's column count
            instead of failing.

    Returns:
        Polars DataFrame of string columns.

    Raises:
        TableReadError: If the file is empty or cannot be parsed.
    """
    try:
        return pl.read_csv(
            path,
            separator="\t",
            infer_schema_length=0,
            quote_char=None,
            truncate_ragged_lines=truncate_ragged_lines,
        )
    except pl.exceptions.NoDataError as e:
        raise TableReadError(str(path), "file is empty") from e
    except (pl.exceptions.ComputeError, pl.exceptions.DuplicateError) as e:
        raise TableReadError(str(path), str(e).split("\n", 1)[0]) from e


def write_dataframe(
    df: pl.DataFrame,
    path: Path | None,
    output_format: OutputFormat = "tsv",
) -> None:
    """
    Write DataFrame to a file, or to standard output if no path is given.

    Args:
        df: Polars DataFrame to write.
        path: Output file path, or None for standard output.
        output_format: Output format - 'tsv' or 'csv'.

    Example:
        >>> df = pl.DataFrame({"a": [1, 2, 3]})
        >>> write_dataframe(df, Path("output.tsv"))
    """
    separator = "\t" if output_format == "tsv" else ","
    if path is None:
        sys.stdout.write(df.write_csv(separator=separator))
        sys.stdout.flush()
    else:
        df.write_csv(path, separator=separator)
