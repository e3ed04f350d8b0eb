"""Gene resolution for mutation records.

Records that carry a gene name are matched to a gene feature by name;
records without one are matched by containment of their genome span. The
matched feature's start is then used to fill in the missing coordinate pair.
"""

import logging
from collections import defaultdict
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from .coordinates import reconcile
from .models import GeneFeature, MutationRecord

logger = logging.getLogger(__name__)


class GeneResolver:
    """Joins mutation records to gene features.

    When several features match, the first in declared order wins and the
    lookup is counted in ``ambiguous_lookups``.

    Attributes:
        features (List[GeneFeature]): Candidate gene features, in file order.
        by_name (Dict[str, List[GeneFeature]]): Features indexed by name.
        ambiguous_lookups (int): Lookups that matched more than one feature.
    """

    def __init__(self, features: Iterable[GeneFeature]):
        self.features: List[GeneFeature] = list(features)
        self.by_name: Dict[str, List[GeneFeature]] = defaultdict(list)
        for feature in self.features:
            self.by_name[feature.name].append(feature)
        self.ambiguous_lookups = 0
        self._position_cache: Dict[tuple, Optional[GeneFeature]] = {}

    def find_by_name(self, name: str) -> Optional[GeneFeature]:
        """Find the first feature with exactly this name."""
        matches = self.by_name.get(name, [])
        return self._first(matches, f"name '{name}'")

    def find_by_position(self, start: int, end: int) -> Optional[GeneFeature]:
        """Find the first feature containing the span ``start..end``."""
        key = (start, end)
        if key not in self._position_cache:
            matches = [f for f in self.features if f.contains(start, end)]
            self._position_cache[key] = self._first(matches, f"span {start}-{end}")
        return self._position_cache[key]

    def _first(self, matches: List[GeneFeature], query: str) -> Optional[GeneFeature]:
        if not matches:
            return None
        if len(matches) > 1:
            self.ambiguous_lookups += 1
            logger.debug(
                f"{len(matches)} gene features match {query}, using "
                f"{matches[0].name} ({matches[0].start}-{matches[0].end})"
            )
        return matches[0]

    def find(self, record: MutationRecord) -> Optional[GeneFeature]:
        """Find the gene feature for a record.

        A record with a gene name is only matched by name; a record without
        one is matched by position if it has genome coordinates.
        """
        if record.gene is not None:
            return self.find_by_name(record.gene)
        if record.has_nucleotide_span:
            return self.find_by_position(record.nuc_start, record.nuc_end)
        return None

    def resolve(self, record: MutationRecord) -> MutationRecord:
        """Attach the gene name and complete the coordinates of a record.

        Records without a matching feature are returned unchanged.
        """
        feature = self.find(record)
        if feature is None:
            return record

        record = replace(record, gene=feature.name)
        return reconcile(record, feature.start)

    def resolve_all(self, records: Iterable[MutationRecord]) -> List[MutationRecord]:
        resolved = [self.resolve(record) for record in records]
        if self.ambiguous_lookups:
            logger.warning(
                f"{self.ambiguous_lookups} gene lookup(s) matched more than one "
                "feature; the first feature in file order was used"
            )
        return resolved
