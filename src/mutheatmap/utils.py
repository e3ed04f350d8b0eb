"""Utility functions for reading inputs, writing the mutation table and summaries."""

import logging
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

import pandas as pd

from .errors import InputEmptyError, InputMissingError, SchemaMismatchError

logger = logging.getLogger(__name__)


def infer_delimiter(path: Union[str, Path], delimiter: Optional[str] = None) -> str:
    """Pick the delimiter of a table file.

    Args:
        path (Union[str, Path]): Path to the table.
        delimiter (Optional[str]): Explicit delimiter, returned unchanged if given.

    Returns:
        str: ',' for .csv files, otherwise a tab.
    """
    if delimiter:
        return delimiter
    if Path(path).suffix.lower() == ".csv":
        logger.debug(f"{path} is assumed to be comma delimited")
        return ","
    logger.debug(f"{path} is assumed to be tab delimited")
    return "\t"


def read_table(
    path: Union[str, Path],
    delimiter: Optional[str] = None,
    keep_blank: bool = False,
) -> pd.DataFrame:
    """Read a delimited table with every column as strings.

    Args:
        path (Union[str, Path]): Path to the table.
        delimiter (Optional[str]): Field delimiter, inferred from the suffix if None.
        keep_blank (bool): Keep empty cells as '' instead of NaN.

    Returns:
        pd.DataFrame: The table.

    Raises:
        InputMissingError: If the file does not exist.
        InputEmptyError: If the file has no data rows.
    """
    path = Path(path)
    if not path.exists():
        raise InputMissingError(path)

    sep = infer_delimiter(path, delimiter)
    try:
        df = pd.read_csv(path, sep=sep, dtype=str, keep_default_na=not keep_blank)
    except pd.errors.EmptyDataError:
        raise InputEmptyError(path) from None

    if df.empty:
        raise InputEmptyError(path)

    logger.info(f"Read {len(df)} rows from {path}")
    return df


def require_columns(
    df: pd.DataFrame, columns: Iterable[str], path: Optional[Union[str, Path]] = None
) -> None:
    """Check that a table has every expected column.

    Raises:
        SchemaMismatchError: Listing all absent columns.
    """
    absent = [column for column in columns if column not in df.columns]
    if absent:
        raise SchemaMismatchError(path, absent)


def write_table(
    df: pd.DataFrame,
    output_path: Union[str, Path],
    output_format: Optional[str] = None,
    delimiter: str = "\t",
) -> Path:
    """Write the mutation table as delimited text or Parquet.

    Args:
        df (pd.DataFrame): Table to write.
        output_path (Union[str, Path]): Destination file.
        output_format (Optional[str]): 'tsv' or 'parquet'; inferred from the suffix if None.
        delimiter (str): Field delimiter for text output.

    Returns:
        Path: The written file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if output_format is None:
        output_format = "parquet" if output_path.suffix == ".parquet" else "tsv"

    if output_format == "parquet":
        df.to_parquet(output_path, index=False)
    elif output_format == "tsv":
        text_df = df.copy()
        for column in text_df.columns:
            if pd.api.types.is_bool_dtype(text_df[column]):
                text_df[column] = text_df[column].map({True: "true", False: "false"})
        text_df.to_csv(output_path, sep=delimiter, index=False, na_rep="")
    else:
        raise ValueError(f"Unsupported output format: {output_format}")

    logger.info(f"Wrote {len(df)} mutations to {output_path}")
    return output_path


def load_mutation_table(
    path: Union[str, Path], delimiter: Optional[str] = None
) -> pd.DataFrame:
    """Read a mutation table previously written by ``write_table``."""
    path = Path(path)
    if path.suffix == ".parquet":
        if not path.exists():
            raise InputMissingError(path)
        df = pd.read_parquet(path)
        if df.empty:
            raise InputEmptyError(path)
        return df
    return read_table(path, delimiter, keep_blank=True)


def summarize_table(df: pd.DataFrame) -> Dict[str, object]:
    """Summarize a mutation table.

    Args:
        df: Final mutation table

    Returns:
        Dictionary with row, sample, status and missing counts
    """
    summary = {
        "rows": len(df),
        "samples": int(df["sample"].nunique()) if "sample" in df else 0,
        "status": df["status"].value_counts().to_dict() if "status" in df else {},
        "missing": int((df["missing"].astype(str).str.lower() == "true").sum())
        if "missing" in df
        else 0,
    }
    return summary


def print_mutation_summary(df: pd.DataFrame) -> None:
    """Log summary statistics of a finished run."""
    summary = summarize_table(df)
    logger.info("Mutation table summary:")
    logger.info(f"  Rows: {summary['rows']}")
    logger.info(f"  Samples: {summary['samples']}")
    for status, count in sorted(summary["status"].items()):
        logger.info(f"  {status}: {count}")
    logger.info(f"  In missing regions: {summary['missing']}")
