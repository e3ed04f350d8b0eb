"""Catalog of mutations of interest and matching against observed mutations."""

import logging
from collections import defaultdict
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .errors import ParseError
from .models import AnnotationEntry, MutationRecord, Status
from .utils import read_table, require_columns

logger = logging.getLogger(__name__)

CATALOG_COLUMNS = ["mutation", "column", "is_gene"]

_TRUE_VALUES = {"true", "t", "yes", "y", "1"}
_FALSE_VALUES = {"false", "f", "no", "n", "0", ""}


def parse_bool(value: str, column: str = "is_gene") -> bool:
    """Parse a boolean-like catalog value.

    Raises:
        ParseError: If the value is not a recognized boolean.
    """
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ParseError(str(value), column, "expected a boolean (true/false, yes/no, 1/0)")


def load_catalog(
    path: Union[str, Path], delimiter: Optional[str] = None
) -> Tuple[List[AnnotationEntry], List[str]]:
    """Load the mutations-of-interest catalog.

    Args:
        path (Union[str, Path]): Path to the catalog table.
        delimiter (Optional[str]): Field delimiter, inferred from the suffix if None.

    Returns:
        Tuple[List[AnnotationEntry], List[str]]: Entries in file order and the
            names of the metadata columns.

    Raises:
        SchemaMismatchError: If mutation, column or is_gene is absent.
        ParseError: If an is_gene value is not boolean-like.
    """
    logger.info(f"Reading annotations file: {path}")
    df = read_table(path, delimiter, keep_blank=True)
    require_columns(df, CATALOG_COLUMNS, path)

    metadata_columns = [c for c in df.columns if c not in CATALOG_COLUMNS]
    entries = []
    for _, row in df.iterrows():
        entries.append(
            AnnotationEntry(
                mutation_or_gene=row["mutation"].strip(),
                column=row["column"].strip(),
                is_gene_level=parse_bool(row["is_gene"]),
                metadata=tuple((c, row[c]) for c in metadata_columns),
            )
        )

    gene_level = sum(1 for e in entries if e.is_gene_level)
    logger.info(
        f"Loaded {len(entries)} catalog entries ({gene_level} gene-level, "
        f"{len(metadata_columns)} metadata column(s))"
    )
    return entries, metadata_columns


class AnnotationMatcher:
    """Matches mutation records against catalog entries.

    Exact entries match on (mutation, column); gene-level entries match on
    (gene, column). Both rules apply independently.

    Attributes:
        by_mutation (Dict[Tuple[str, str], List[AnnotationEntry]]): Exact entries.
        by_gene (Dict[Tuple[str, str], List[AnnotationEntry]]): Gene-level entries.
    """

    def __init__(self, entries: Iterable[AnnotationEntry]):
        self.by_mutation: Dict[Tuple[str, str], List[AnnotationEntry]] = defaultdict(list)
        self.by_gene: Dict[Tuple[str, str], List[AnnotationEntry]] = defaultdict(list)
        for entry in entries:
            key = (entry.mutation_or_gene, entry.column)
            if entry.is_gene_level:
                self.by_gene[key].append(entry)
            else:
                self.by_mutation[key].append(entry)

    def find(self, record: MutationRecord) -> List[AnnotationEntry]:
        """Find all catalog entries matching a record."""
        matches = list(self.by_mutation.get((record.mutation, record.column), []))
        if record.gene is not None:
            matches.extend(self.by_gene.get((record.gene, record.column), []))
        return matches

    def match(self, record: MutationRecord) -> List[MutationRecord]:
        """Annotate a record, one output record per matching entry.

        Unmatched records are returned once with status UNANNOTATED.
        """
        matches = self.find(record)
        if not matches:
            return [replace(record, status=Status.UNANNOTATED, metadata=())]
        return [
            replace(record, status=Status.PRESENT, metadata=entry.metadata)
            for entry in matches
        ]

    def match_all(self, records: Iterable[MutationRecord]) -> List[MutationRecord]:
        matched = []
        for record in records:
            matched.extend(self.match(record))
        present = sum(1 for r in matched if r.status is Status.PRESENT)
        logger.info(f"{present} mutation(s) matched the annotation catalog")
        return matched
