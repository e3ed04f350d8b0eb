import pytest

from mutheatmap.errors import InputEmptyError, InputMissingError, ParseError
from mutheatmap.genome import GenomeHandler, parse_attributes


def test_parse_attributes_gff3():
    attrs = parse_attributes("ID=gene-S; Name=S;Note=spike%20glycoprotein")
    assert attrs == {"ID": "gene-S", "Name": "S", "Note": "spike glycoprotein"}


def test_parse_attributes_gtf():
    attrs = parse_attributes('gene_id "ORF1ab"; gene_name "ORF1a";')
    assert attrs == {"gene_id": "ORF1ab", "gene_name": "ORF1a"}


def test_load_annotations(gff_path):
    genome = GenomeHandler(gff_path)
    assert genome.annotations["name"].tolist() == ["ORF1a", "ORF1b", "S", "S", "ORF3a", "N"]
    assert list(genome.annotations.columns) == ["name", "type", "start", "end"]


def test_get_features_filters_type(gff_path):
    genome = GenomeHandler(gff_path)
    genes = genome.get_features("gene")
    assert [g.name for g in genes] == ["ORF1a", "ORF1b", "S", "ORF3a", "N"]
    assert (genes[2].start, genes[2].end) == (21563, 25384)
    assert len(genome.get_features()) == 6


def test_stops_at_embedded_fasta(tmp_path):
    path = tmp_path / "genes.gff3"
    path.write_text(
        "##gff-version 3\n"
        "chr\tsrc\tgene\t1\t90\t.\t+\t.\tName=E\n"
        "##FASTA\n"
        ">chr\n"
        "ACGT\n",
        encoding="utf-8",
    )
    assert GenomeHandler(path).annotations["name"].tolist() == ["E"]


def test_gtf_annotations(tmp_path):
    path = tmp_path / "genes.gtf"
    path.write_text(
        'chr\tsrc\tgene\t26245\t26472\t.\t+\t.\tgene_id "E"; gene_name "E";\n',
        encoding="utf-8",
    )
    features = GenomeHandler(path).get_features("gene")
    assert [(f.name, f.start, f.end) for f in features] == [("E", 26245, 26472)]


def test_missing_annotation_file(tmp_path):
    with pytest.raises(InputMissingError):
        GenomeHandler(tmp_path / "absent.gff3")


def test_annotation_file_without_named_features(tmp_path):
    path = tmp_path / "empty.gff3"
    path.write_text("##gff-version 3\nchr\tsrc\tregion\t1\t100\t.\t+\t.\tID=chr\n")
    with pytest.raises(InputEmptyError):
        GenomeHandler(path)


def test_genome_length_from_reference(tmp_path, gff_path):
    reference = tmp_path / "reference.fasta"
    reference.write_text(">MN908947.3\n" + "ACGTA" * 20 + "\nACG\n", encoding="utf-8")
    assert GenomeHandler(gff_path, reference).genome_length() == 103


def test_genome_length_without_reference(gff_path):
    assert GenomeHandler(gff_path).genome_length() is None


def test_genome_length_missing_reference(tmp_path, gff_path):
    genome = GenomeHandler(gff_path, tmp_path / "absent.fasta")
    with pytest.raises(InputMissingError):
        genome.genome_length()


def test_non_numeric_coordinate(tmp_path):
    path = tmp_path / "bad.gff3"
    path.write_text(
        "##gff-version 3\n"
        "chr\tsrc\tgene\t1\t90\t.\t+\t.\tName=E\n"
        "chr\tsrc\tgene\tabc\t200\t.\t+\t.\tName=M\n"
    )
    with pytest.raises(ParseError) as excinfo:
        GenomeHandler(path)
    assert excinfo.value.token == "abc"
    assert excinfo.value.column == "start"
    assert "bad.gff3" in str(excinfo.value)
    assert "line 3" in str(excinfo.value)
