"""Typed records shared by the extraction and annotation stages.

Raw mutation strings are parsed once into ``MutationRecord`` objects; every
later stage works on these records instead of the raw text.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class MutationKind(Enum):
    """Coordinate system a mutation was reported in."""

    NUCLEOTIDE = "nucleotide"
    AMINO_ACID = "amino-acid"


class Status(Enum):
    """Presence status of a mutation.

    ``MutationRecord.status`` only ever holds PRESENT or UNANNOTATED; coverage
    is reported separately in ``MutationRecord.missing``. MISSING is used by
    callers that collapse both axes into a single value.
    """

    PRESENT = "present"
    MISSING = "missing"
    UNANNOTATED = "unannotated"


@dataclass(frozen=True)
class GeneFeature:
    """A named genomic interval (1-based, inclusive)."""

    name: str
    kind: str
    start: int
    end: int

    def contains(self, start: int, end: int) -> bool:
        return start >= self.start and end <= self.end


@dataclass(frozen=True)
class MissingRegion:
    """A sample-specific span without sequence coverage (1-based, inclusive)."""

    sample: str
    start: int
    stop: int

    def __post_init__(self):
        if self.start > self.stop:
            raise ValueError(
                f"Missing region start {self.start} is after stop {self.stop}"
            )


@dataclass(frozen=True)
class AnnotationEntry:
    """One row of the mutations-of-interest catalog.

    Attributes:
        mutation_or_gene (str): Mutation token, or a gene name when ``is_gene_level``.
        column (str): Nextclade column the entry applies to.
        is_gene_level (bool): Match on gene name instead of the full token.
        metadata (Tuple[Tuple[str, str], ...]): Remaining catalog columns, in order.
    """

    mutation_or_gene: str
    column: str
    is_gene_level: bool
    metadata: Tuple[Tuple[str, str], ...] = ()


@dataclass(frozen=True)
class MutationRecord:
    """A single mutation observed in a single sample.

    Attributes:
        sample (str): Sample identifier.
        mutation (str): Mutation token as reported (e.g. ``S:D614G``).
        column (str): Source column of the token.
        kind (MutationKind): Coordinate system of the token.
        gene (Optional[str]): Gene name, parsed or resolved from gene features.
        nuc_start (Optional[int]): Genome start position.
        nuc_end (Optional[int]): Genome end position.
        aa_start (Optional[int]): Codon start position within ``gene``.
        aa_end (Optional[int]): Codon end position within ``gene``.
        status (Status): PRESENT if matched to the catalog, else UNANNOTATED.
        missing (Optional[bool]): Overlaps a missing region; None if not evaluable.
        metadata (Tuple[Tuple[str, str], ...]): Catalog columns of the matched entry.
    """

    sample: str
    mutation: str
    column: str
    kind: MutationKind
    gene: Optional[str] = None
    nuc_start: Optional[int] = None
    nuc_end: Optional[int] = None
    aa_start: Optional[int] = None
    aa_end: Optional[int] = None
    status: Status = Status.UNANNOTATED
    missing: Optional[bool] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default=())

    @property
    def has_nucleotide_span(self) -> bool:
        return self.nuc_start is not None and self.nuc_end is not None

    @property
    def has_amino_acid_span(self) -> bool:
        return self.aa_start is not None and self.aa_end is not None
