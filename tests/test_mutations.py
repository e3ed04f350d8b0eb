import math

import pytest

from mutheatmap.errors import ParseError
from mutheatmap.models import MutationKind
from mutheatmap.mutations import (
    MutationParser,
    gene_prefix,
    parse_coordinate,
    split_mutations,
)

AA_COLUMNS = ["frameShifts", "aaSubstitutions", "aaDeletions", "aaInsertions"]


@pytest.fixture
def parser() -> MutationParser:
    return MutationParser(AA_COLUMNS, "aaInsertions")


def test_split_mutations_drops_empty_tokens():
    assert split_mutations("C241T,,C3037T, ") == ["C241T", "C3037T"]
    assert split_mutations("") == []
    assert split_mutations(None) == []
    assert split_mutations(math.nan) == []


def test_gene_prefix_ignores_numeric_prefix():
    assert gene_prefix("ORF1a:T3255I") == "ORF1a"
    assert gene_prefix("28933:T") is None
    assert gene_prefix("C241T") is None


@pytest.mark.parametrize("position", [1, 241, 28933])
def test_nucleotide_position_with_allele(parser, position):
    record = parser.parse(f"{position}:TTA", "insertions", "s1")
    assert record.kind is MutationKind.NUCLEOTIDE
    assert record.gene is None
    assert record.nuc_start == record.nuc_end == position
    assert record.aa_start is None and record.aa_end is None


def test_nucleotide_substitution(parser):
    record = parser.parse("C241T", "substitutions", "s1")
    assert (record.nuc_start, record.nuc_end) == (241, 241)
    assert record.column == "substitutions"
    assert record.sample == "s1"


def test_nucleotide_deletion_range(parser):
    record = parser.parse("11288-11296", "deletions", "s1")
    assert (record.nuc_start, record.nuc_end) == (11288, 11296)


@pytest.mark.parametrize(
    "token,gene,position",
    [
        ("ORF1a:T3255I", "ORF1a", 3255),
        ("S:D614G", "S", 614),
        ("N:R203K", "N", 203),
        ("ORF8:Q27*", "ORF8", 27),
    ],
)
def test_amino_acid_substitution(parser, token, gene, position):
    record = parser.parse(token, "aaSubstitutions", "s1")
    assert record.kind is MutationKind.AMINO_ACID
    assert record.gene == gene
    assert record.aa_start == record.aa_end == position
    assert record.nuc_start is None and record.nuc_end is None


def test_amino_acid_deletion_strips_marker(parser):
    record = parser.parse("S:H69-", "aaDeletions", "s1")
    assert (record.gene, record.aa_start, record.aa_end) == ("S", 69, 69)


def test_amino_acid_insertion_uses_middle_field(parser):
    record = parser.parse("S:214:EPE", "aaInsertions", "s1")
    assert (record.gene, record.aa_start, record.aa_end) == ("S", 214, 214)


def test_frameshift_range(parser):
    record = parser.parse("N:221-298", "frameShifts", "s1")
    assert (record.gene, record.aa_start, record.aa_end) == ("N", 221, 298)


def test_parse_cell_keeps_token_order(parser):
    records = parser.parse_cell("S:D614G,ORF1a:T1001I", "aaSubstitutions", "s1")
    assert [r.mutation for r in records] == ["S:D614G", "ORF1a:T1001I"]


@pytest.mark.parametrize(
    "token,column",
    [
        ("S:DG", "aaSubstitutions"),
        ("ACGT", "substitutions"),
        ("S:", "aaSubstitutions"),
        ("300-200", "deletions"),
        ("S", "aaSubstitutions"),
    ],
)
def test_unparseable_tokens_raise(parser, token, column):
    with pytest.raises(ParseError) as excinfo:
        parser.parse(token, column, "sample9")
    assert excinfo.value.token == token
    assert excinfo.value.column == column
    assert excinfo.value.sample == "sample9"
    assert "sample9" in str(excinfo.value)


def test_parse_coordinate():
    assert parse_coordinate("12", "t", "c") == (12, 12)
    assert parse_coordinate("12-15", "t", "c") == (12, 15)
    with pytest.raises(ParseError):
        parse_coordinate("12-", "t", "c")
