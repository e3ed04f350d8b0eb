"""Mutation token parsing.

Nextclade reports mutations as comma-separated tokens in several columns,
each with its own notation:

    substitutions     C241T           genome position 241
    deletions         11288-11296     genome range
    insertions        28933:TTA       genome position, inserted bases
    aaSubstitutions   ORF1a:T3255I    gene, codon 3255
    aaDeletions       S:H69-          gene, codon 69
    aaInsertions      S:214:EPE       gene, codon 214, inserted residues
    frameShifts       N:221-298       gene, codon range

This module turns each token into a ``MutationRecord`` carrying the gene and
whichever coordinate pair the notation provides.
"""

import logging
import re
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from .errors import ParseError
from .models import MutationKind, MutationRecord

logger = logging.getLogger(__name__)

# Allele codes (including '*' for stop) and separators around the coordinate
_AA_ALLELE_PATTERN = re.compile(r"[A-Za-z*:]+")
_NUC_ALLELE_PATTERN = re.compile(r"[A-Za-z:]+")
_COORDINATE_PATTERN = re.compile(r"^(\d+)(?:-(\d+))?$")


def split_mutations(cell) -> List[str]:
    """Split a comma-separated mutation cell into tokens, dropping empty ones.

    Args:
        cell: Cell value from the variant table (str, None or NaN).

    Returns:
        List[str]: Non-empty, whitespace-trimmed tokens in their original order.
    """
    if cell is None or (not isinstance(cell, str) and pd.isna(cell)):
        return []
    return [token.strip() for token in str(cell).split(",") if token.strip()]


def gene_prefix(token: str) -> Optional[str]:
    """Return the gene name before the first colon, if there is one.

    A purely numeric prefix is a genome position, not a gene
    (``28933:T`` has no gene, ``ORF1a:T3255I`` has gene ``ORF1a``).
    """
    if ":" not in token:
        return None
    prefix = token.split(":", 1)[0]
    if not prefix or prefix.isdigit():
        return None
    return prefix


def parse_coordinate(text: str, token: str, column: str) -> Tuple[int, int]:
    """Parse a bare coordinate ``N`` or range ``start-stop``.

    Args:
        text: Coordinate text left after removing alleles and gene.
        token: Original token, for error reporting.
        column: Source column, for error reporting.

    Returns:
        Tuple[int, int]: Start and end, equal for a single position.

    Raises:
        ParseError: If the text is not a coordinate or the range is reversed.
    """
    match = _COORDINATE_PATTERN.match(text)
    if match is None:
        raise ParseError(token, column, f"invalid coordinate '{text}'")

    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) is not None else start
    if start > end:
        raise ParseError(token, column, f"range start {start} is after end {end}")
    return start, end


def extract_coordinate_text(
    token: str, kind: MutationKind, column: str, aa_insertion_column: str
) -> str:
    """Strip gene and allele codes from a token, leaving the coordinate text."""
    if kind is MutationKind.AMINO_ACID:
        parts = token.split(":")
        remainder = parts[1] if len(parts) > 1 else ""
        if column == aa_insertion_column:
            # gene:pos:inserted, the coordinate is the middle field as-is
            return remainder
        coordinate = _AA_ALLELE_PATTERN.sub("", remainder)
        # Trailing '-' marks a deletion (S:H69-)
        return coordinate[:-1] if coordinate.endswith("-") else coordinate

    parts = token.split(":")
    coordinate = parts[1] if gene_prefix(token) is not None else parts[0]
    return _NUC_ALLELE_PATTERN.sub("", coordinate)


class MutationParser:
    """Classifies raw mutation tokens and extracts their gene and coordinates.

    Attributes:
        amino_acid_columns (frozenset): Columns whose tokens use codon coordinates.
        aa_insertion_column (str): Amino-acid column in ``gene:pos:seq`` notation.
    """

    def __init__(
        self, amino_acid_columns: Iterable[str], aa_insertion_column: str
    ):
        self.amino_acid_columns = frozenset(amino_acid_columns)
        self.aa_insertion_column = aa_insertion_column

    def kind_of(self, column: str) -> MutationKind:
        if column in self.amino_acid_columns:
            return MutationKind.AMINO_ACID
        return MutationKind.NUCLEOTIDE

    def parse(
        self, token: str, column: str, sample: Optional[str] = None
    ) -> MutationRecord:
        """Parse one mutation token into a partially filled record.

        Args:
            token (str): Mutation token, e.g. ``ORF1a:T3255I`` or ``28933:T``.
            column (str): Column the token came from.
            sample (Optional[str]): Sample the token belongs to.

        Returns:
            MutationRecord: Record with gene and one coordinate pair populated.

        Raises:
            ParseError: If no coordinate can be extracted from the token.
        """
        kind = self.kind_of(column)
        gene = gene_prefix(token)

        text = extract_coordinate_text(token, kind, column, self.aa_insertion_column)
        try:
            start, end = parse_coordinate(text, token, column)
        except ParseError as e:
            raise ParseError(token, column, e.reason, sample=sample) from None

        if kind is MutationKind.AMINO_ACID:
            return MutationRecord(
                sample=sample,
                mutation=token,
                column=column,
                kind=kind,
                gene=gene,
                aa_start=start,
                aa_end=end,
            )
        return MutationRecord(
            sample=sample,
            mutation=token,
            column=column,
            kind=kind,
            gene=gene,
            nuc_start=start,
            nuc_end=end,
        )

    def parse_cell(self, cell, column: str, sample: str) -> List[MutationRecord]:
        """Parse every token of one mutation cell."""
        return [self.parse(token, column, sample) for token in split_mutations(cell)]
