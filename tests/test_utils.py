import pandas as pd
import pytest

from conftest import write_tsv
from mutheatmap.errors import InputEmptyError, InputMissingError, SchemaMismatchError
from mutheatmap.utils import (
    infer_delimiter,
    load_mutation_table,
    read_table,
    require_columns,
    summarize_table,
    write_table,
)


def test_infer_delimiter():
    assert infer_delimiter("nextclade.csv") == ","
    assert infer_delimiter("nextclade.tsv") == "\t"
    assert infer_delimiter("nextclade.txt") == "\t"
    assert infer_delimiter("nextclade.csv", ";") == ";"


def test_read_table_csv(tmp_path):
    path = tmp_path / "nextclade.csv"
    path.write_text("seqName,substitutions\ns1,C241T\ns2,\n")
    df = read_table(path)
    assert df["substitutions"].tolist()[0] == "C241T"
    assert pd.isna(df["substitutions"].tolist()[1])


def test_read_table_reads_numbers_as_text(tmp_path):
    path = write_tsv(tmp_path / "t.tsv", ["seqName", "alignmentEnd"], [{"seqName": "001", "alignmentEnd": "29850"}])
    df = read_table(path)
    assert df.loc[0, "seqName"] == "001"
    assert df.loc[0, "alignmentEnd"] == "29850"


def test_read_table_missing_file(tmp_path):
    with pytest.raises(InputMissingError) as excinfo:
        read_table(tmp_path / "absent.tsv")
    assert isinstance(excinfo.value, FileNotFoundError)


@pytest.mark.parametrize("content", ["", "seqName\tsubstitutions\n"])
def test_read_table_empty(tmp_path, content):
    path = tmp_path / "empty.tsv"
    path.write_text(content)
    with pytest.raises(InputEmptyError):
        read_table(path)


def test_require_columns_lists_all_absent(tmp_path):
    df = pd.DataFrame({"seqName": ["s1"]})
    with pytest.raises(SchemaMismatchError) as excinfo:
        require_columns(df, ["seqName", "substitutions", "deletions"], "n.tsv")
    assert excinfo.value.columns == ["substitutions", "deletions"]
    assert "substitutions, deletions" in str(excinfo.value)


def _table() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "sample": ["s1", "s1", "s2"],
            "mutation": ["C241T", "S:D614G", "C241T"],
            "nuc_start": pd.array([241, 23402, 241], dtype="Int64"),
            "status": ["present", "unannotated", "present"],
            "missing": pd.array([False, None, True], dtype="boolean"),
        }
    )


def test_write_table_tsv(tmp_path):
    path = write_table(_table(), tmp_path / "out" / "mutations.tsv")
    lines = path.read_text().splitlines()
    assert lines[0] == "sample\tmutation\tnuc_start\tstatus\tmissing"
    assert lines[1] == "s1\tC241T\t241\tpresent\tfalse"
    assert lines[2] == "s1\tS:D614G\t23402\tunannotated\t"
    assert lines[3] == "s2\tC241T\t241\tpresent\ttrue"


def test_write_table_parquet_round_trip(tmp_path):
    path = write_table(_table(), tmp_path / "mutations.parquet")
    df = load_mutation_table(path)
    assert df["mutation"].tolist() == ["C241T", "S:D614G", "C241T"]
    assert df["missing"].isna().tolist() == [False, True, False]


def test_write_table_unknown_format(tmp_path):
    with pytest.raises(ValueError):
        write_table(_table(), tmp_path / "mutations.xlsx", "xlsx")


def test_summarize_table():
    summary = summarize_table(_table())
    assert summary["rows"] == 3
    assert summary["samples"] == 2
    assert summary["status"] == {"present": 2, "unannotated": 1}
    assert summary["missing"] == 1


def test_load_mutation_table_keeps_literal_sample_names(tmp_path):
    path = write_tsv(
        tmp_path / "mutations.tsv",
        ["sample", "mutation", "missing"],
        [{"sample": "NA", "mutation": "C241T"}, {"sample": "s1", "mutation": "C241T", "missing": "true"}],
    )
    df = load_mutation_table(path)
    assert df["sample"].tolist() == ["NA", "s1"]
    assert df["missing"].tolist() == ["", "true"]
