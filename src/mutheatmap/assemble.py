"""Final assembly of the long-format mutation table."""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from .models import MutationRecord

logger = logging.getLogger(__name__)

RECORD_COLUMNS = [
    "sample",
    "mutation",
    "column",
    "type",
    "gene",
    "nuc_start",
    "nuc_end",
    "aa_start",
    "aa_end",
    "status",
    "missing",
]

_INTEGER_COLUMNS = ["nuc_start", "nuc_end", "aa_start", "aa_end"]


def _nullable(value) -> Tuple[int, object]:
    # Absent values sort before present ones
    return (0, "") if value is None else (1, value)


def sort_key(record: MutationRecord) -> tuple:
    """Ordering key: sample, genome span, gene, codon span, then tie-breakers."""
    return (
        record.sample,
        _nullable(record.nuc_start),
        _nullable(record.nuc_end),
        _nullable(record.gene),
        _nullable(record.aa_start),
        _nullable(record.aa_end),
        record.column,
        record.mutation,
        record.kind.value,
        record.status.value,
        _nullable(record.missing),
        record.metadata,
    )


def assemble(records: Iterable[MutationRecord]) -> List[MutationRecord]:
    """Remove exact duplicates and sort records deterministically.

    Args:
        records (Iterable[MutationRecord]): Records in any order.

    Returns:
        List[MutationRecord]: Unique records in table order.
    """
    records = list(records)
    unique = set(records)
    if len(unique) < len(records):
        logger.debug(f"Dropped {len(records) - len(unique)} duplicate record(s)")
    return sorted(unique, key=sort_key)


def metadata_column_names(metadata_columns: Sequence[str]) -> List[str]:
    """Output names for catalog metadata columns, avoiding record column names."""
    return [
        f"annotation_{c}" if c in RECORD_COLUMNS else c for c in metadata_columns
    ]


def to_dataframe(
    records: Sequence[MutationRecord],
    metadata_columns: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Materialize assembled records as a DataFrame.

    Args:
        records (Sequence[MutationRecord]): Assembled records.
        metadata_columns (Optional[Sequence[str]]): Catalog metadata columns, in order.

    Returns:
        pd.DataFrame: Table with record columns followed by metadata columns.
    """
    metadata_columns = list(metadata_columns or [])
    output_names = metadata_column_names(metadata_columns)

    rows = []
    for record in records:
        metadata = dict(record.metadata)
        row = {
            "sample": record.sample,
            "mutation": record.mutation,
            "column": record.column,
            "type": record.kind.value,
            "gene": record.gene,
            "nuc_start": record.nuc_start,
            "nuc_end": record.nuc_end,
            "aa_start": record.aa_start,
            "aa_end": record.aa_end,
            "status": record.status.value,
            "missing": record.missing,
        }
        for source, name in zip(metadata_columns, output_names):
            row[name] = metadata.get(source)
        rows.append(row)

    df = pd.DataFrame(rows, columns=RECORD_COLUMNS + output_names)
    for column in _INTEGER_COLUMNS:
        df[column] = df[column].astype("Int64")
    df["missing"] = df["missing"].astype("boolean")
    return df
