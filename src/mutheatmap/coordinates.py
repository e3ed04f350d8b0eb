"""Conversion between genome and codon coordinates.

Positions are 1-based. A gene's first codon starts at the gene's start
position, so codon ``a`` covers genome positions
``gene_start + (a - 1) * 3`` onwards.
"""

from dataclasses import replace
from typing import Tuple

from .models import MutationRecord


def aa_to_nuc(aa_start: int, aa_end: int, gene_start: int) -> Tuple[int, int]:
    """Convert a codon span to a genome span.

    The end is derived from ``aa_start``, so a span covering several codons is
    approximated by the triplet of its first residue. ``aa_end`` is accepted
    for symmetry with ``nuc_to_aa`` but does not affect the result.

    Args:
        aa_start (int): First codon.
        aa_end (int): Last codon.
        gene_start (int): Genome start of the gene.

    Returns:
        Tuple[int, int]: Genome start and end.
    """
    # TODO: derive nuc_end from aa_end once multi-codon spans (aaDeletions
    # ranges, frameShifts) have agreed semantics downstream.
    nuc_start = (aa_start - 1) * 3 + gene_start
    nuc_end = aa_start * 3 + gene_start
    return nuc_start, nuc_end


def nuc_to_aa(nuc_start: int, nuc_end: int, gene_start: int) -> Tuple[int, int]:
    """Convert a genome span to a codon span within a gene.

    Args:
        nuc_start (int): Genome start.
        nuc_end (int): Genome end.
        gene_start (int): Genome start of the gene.

    Returns:
        Tuple[int, int]: Codon start and end (integer division, truncating).
    """
    aa_start = _truncating_div(nuc_start - gene_start, 3) + 1
    aa_end = _truncating_div(nuc_end - gene_start, 3) + 1
    return aa_start, aa_end


def _truncating_div(numerator: int, denominator: int) -> int:
    # Round toward zero, unlike Python's floor division
    quotient = abs(numerator) // denominator
    return quotient if numerator >= 0 else -quotient


def reconcile(record: MutationRecord, gene_start: int) -> MutationRecord:
    """Fill in whichever coordinate pair is missing from a record.

    Records that already carry both pairs, or neither, are returned unchanged.
    """
    if record.has_amino_acid_span and not record.has_nucleotide_span:
        nuc_start, nuc_end = aa_to_nuc(record.aa_start, record.aa_end, gene_start)
        return replace(record, nuc_start=nuc_start, nuc_end=nuc_end)

    if record.has_nucleotide_span and not record.has_amino_acid_span:
        aa_start, aa_end = nuc_to_aa(record.nuc_start, record.nuc_end, gene_start)
        return replace(record, aa_start=aa_start, aa_end=aa_end)

    return record
