"""Missing-coverage regions and the overlap test against mutations."""

import logging
from collections import defaultdict
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

import pandas as pd

from .errors import ParseError
from .models import MissingRegion, MutationRecord
from .mutations import parse_coordinate, split_mutations

logger = logging.getLogger(__name__)


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Check whether two inclusive spans share at least one position.

    Equivalent to testing whether either end of one span lies inside the
    other, or one span contains the other. Single-position spans have
    ``start == end``.
    """
    return start_a <= end_b and start_b <= end_a


def parse_missing_ranges(cell, sample: str, column: str) -> List[MissingRegion]:
    """Parse a cell of comma-separated ``start-stop`` (or ``N``) ranges.

    Raises:
        ParseError: If a range is not numeric or is reversed.
    """
    regions = []
    for token in split_mutations(cell):
        try:
            start, stop = parse_coordinate(token, token, column)
        except ParseError as e:
            raise ParseError(token, column, e.reason, sample=sample) from None
        regions.append(MissingRegion(sample=sample, start=start, stop=stop))
    return regions


def _is_blank(value) -> bool:
    if isinstance(value, str):
        return not value.strip()
    return pd.isna(value)


def build_missing_regions(
    variants: pd.DataFrame,
    sample_column: str,
    genome_length: int,
    missing_column: Optional[str] = None,
    alignment_end_column: Optional[str] = None,
) -> List[MissingRegion]:
    """Derive missing regions for every sample of a variant table.

    Samples with a null or blank alignment end are missing across the whole
    genome, in addition to any explicitly listed ranges.

    Args:
        variants (pd.DataFrame): Wide variant table, one row per sample.
        sample_column (str): Column with sample identifiers.
        genome_length (int): Reference length for unaligned samples.
        missing_column (Optional[str]): Column of missing ranges, if present.
        alignment_end_column (Optional[str]): Nullable alignment end column, if present.

    Returns:
        List[MissingRegion]: Unique regions in table order.
    """
    regions: List[MissingRegion] = []
    unaligned = 0

    for _, row in variants.iterrows():
        sample = row[sample_column]
        if missing_column is not None:
            regions.extend(parse_missing_ranges(row[missing_column], sample, missing_column))
        if alignment_end_column is not None and _is_blank(row[alignment_end_column]):
            regions.append(MissingRegion(sample=sample, start=1, stop=genome_length))
            unaligned += 1

    if unaligned:
        logger.info(f"{unaligned} sample(s) have no alignment, marked missing 1-{genome_length}")

    # dict preserves first-seen order
    return list(dict.fromkeys(regions))


class MissingCoverageMatcher:
    """Flags mutations that fall in a missing region of their sample.

    Attributes:
        by_sample (Dict[str, List[MissingRegion]]): Regions indexed by sample.
    """

    def __init__(self, regions: Iterable[MissingRegion]):
        self.by_sample: Dict[str, List[MissingRegion]] = defaultdict(list)
        for region in regions:
            self.by_sample[region.sample].append(region)

    def is_missing(self, record: MutationRecord) -> Optional[bool]:
        """Check a record against its sample's missing regions.

        Returns:
            Optional[bool]: None if the record has no genome coordinates.
        """
        if not record.has_nucleotide_span:
            return None
        return any(
            overlaps(region.start, region.stop, record.nuc_start, record.nuc_end)
            for region in self.by_sample.get(record.sample, [])
        )

    def match(self, record: MutationRecord) -> MutationRecord:
        return replace(record, missing=self.is_missing(record))

    def match_all(self, records: Iterable[MutationRecord]) -> List[MutationRecord]:
        matched = [self.match(record) for record in records]
        logger.info(
            f"{sum(1 for r in matched if r.missing)} mutation(s) overlap missing regions"
        )
        return matched
