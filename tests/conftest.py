from pathlib import Path
from typing import Dict, List

import matplotlib
import pytest

matplotlib.use("Agg")

NEXTCLADE_HEADER = [
    "seqName",
    "clade",
    "alignmentEnd",
    "missing",
    "substitutions",
    "deletions",
    "insertions",
    "frameShifts",
    "aaSubstitutions",
    "aaDeletions",
    "aaInsertions",
]

# SARS-CoV-2 (MN908947.3) gene coordinates
GFF_LINES = [
    "##gff-version 3",
    "##sequence-region MN908947.3 1 29903",
    "MN908947.3\tfeature\tregion\t1\t29903\t.\t+\t.\tID=MN908947.3",
    "MN908947.3\tfeature\tgene\t266\t13483\t.\t+\t.\tID=gene-ORF1a;Name=ORF1a;gene=ORF1a",
    "MN908947.3\tfeature\tgene\t13468\t21555\t.\t+\t.\tID=gene-ORF1b;Name=ORF1b",
    "MN908947.3\tfeature\tgene\t21563\t25384\t.\t+\t.\tID=gene-S;Name=S",
    "MN908947.3\tfeature\tCDS\t21563\t25384\t.\t+\t0\tID=cds-S;Name=S",
    "MN908947.3\tfeature\tgene\t25393\t26220\t.\t+\t.\tID=gene-ORF3a; gene_name=ORF3a",
    "MN908947.3\tfeature\tgene\t28274\t29533\t.\t+\t.\tID=gene-N;Name=N",
]


def write_tsv(path: Path, header: List[str], rows: List[Dict[str, str]]) -> Path:
    lines = ["\t".join(header)]
    for row in rows:
        lines.append("\t".join(row.get(h, "") for h in header))
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def gff_path(tmp_path: Path) -> Path:
    path = tmp_path / "genome_annotation.gff3"
    path.write_text("\n".join(GFF_LINES) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def nextclade_rows() -> List[Dict[str, str]]:
    return [
        {
            "seqName": "sample1",
            "clade": "20A",
            "alignmentEnd": "29850",
            "missing": "1-54,29851-29903",
            "substitutions": "C241T,C3037T,A23403G",
            "deletions": "11288-11296",
            "aaSubstitutions": "S:D614G,ORF1a:T1001I",
            "aaDeletions": "S:H69-",
            "aaInsertions": "S:214:EPE",
        },
        {
            "seqName": "sample2",
            "clade": "",
            "alignmentEnd": "",
            "substitutions": "C241T",
        },
    ]


@pytest.fixture
def nextclade_path(tmp_path: Path, nextclade_rows) -> Path:
    return write_tsv(tmp_path / "nextclade.tsv", NEXTCLADE_HEADER, nextclade_rows)


@pytest.fixture
def catalog_path(tmp_path: Path) -> Path:
    return write_tsv(
        tmp_path / "annotations.tsv",
        ["mutation", "column", "is_gene", "note"],
        [
            {"mutation": "S", "column": "aaSubstitutions", "is_gene": "true", "note": "spike"},
            {"mutation": "C241T", "column": "substitutions", "is_gene": "false", "note": "founder"},
        ],
    )
