import pandas as pd

from mutheatmap.cli import build_parser, main


def test_parser_requires_subcommand():
    args = build_parser().parse_args(
        ["-vv", "extract", "--nextclade", "n.tsv", "--gff", "g.gff3"]
    )
    assert args.verbose == 2
    assert args.output == "mutations.tsv"
    assert args.format is None


def test_extract(tmp_path, nextclade_path, gff_path):
    output = tmp_path / "mutations.tsv"
    rc = main(
        [
            "extract",
            "--nextclade",
            str(nextclade_path),
            "--gff",
            str(gff_path),
            "--output",
            str(output),
        ]
    )
    assert rc == 0
    table = pd.read_csv(output, sep="\t", dtype=str)
    assert len(table) == 9
    assert set(table["status"]) == {"unannotated"}


def test_annotate_parquet(tmp_path, nextclade_path, gff_path, catalog_path):
    output = tmp_path / "mutations.parquet"
    rc = main(
        [
            "annotate",
            "--annotations",
            str(catalog_path),
            "--nextclade",
            str(nextclade_path),
            "--gff",
            str(gff_path),
            "--output",
            str(output),
        ]
    )
    assert rc == 0
    table = pd.read_parquet(output)
    assert (table["status"] == "present").sum() == 3


def test_config_and_delimiter_flags(tmp_path, nextclade_path, gff_path):
    config = tmp_path / "run.yaml"
    config.write_text("genome_length: 30000\n")
    output = tmp_path / "mutations.csv"
    rc = main(
        [
            "extract",
            "--nextclade",
            str(nextclade_path),
            "--gff",
            str(gff_path),
            "--config",
            str(config),
            "--delimiter",
            ",",
            "--format",
            "tsv",
            "--output",
            str(output),
        ]
    )
    assert rc == 0
    assert output.read_text().splitlines()[0].startswith("sample,mutation,column")


def test_missing_input_returns_2(tmp_path, gff_path, capsys):
    rc = main(
        [
            "extract",
            "--nextclade",
            str(tmp_path / "absent.tsv"),
            "--gff",
            str(gff_path),
            "--output",
            str(tmp_path / "mutations.tsv"),
        ]
    )
    assert rc == 2
    assert "InputMissingError" in capsys.readouterr().err


def test_bad_config_returns_2(tmp_path, nextclade_path, gff_path, capsys):
    config = tmp_path / "run.yaml"
    config.write_text("genome_lenght: 30000\n")
    rc = main(
        [
            "extract",
            "--nextclade",
            str(nextclade_path),
            "--gff",
            str(gff_path),
            "--config",
            str(config),
        ]
    )
    assert rc == 2
    assert "genome_lenght" in capsys.readouterr().err


def test_plot(tmp_path, nextclade_path, gff_path, catalog_path):
    table = tmp_path / "mutations.tsv"
    assert (
        main(
            [
                "annotate",
                "--annotations",
                str(catalog_path),
                "--nextclade",
                str(nextclade_path),
                "--gff",
                str(gff_path),
                "--output",
                str(table),
            ]
        )
        == 0
    )
    image = tmp_path / "heatmap.png"
    rc = main(
        ["plot", "--table", str(table), "--output", str(image), "--label-column", "note"]
    )
    assert rc == 0
    assert image.exists()


def test_plot_unknown_label_column(tmp_path, nextclade_path, gff_path, capsys):
    table = tmp_path / "mutations.tsv"
    main(["extract", "--nextclade", str(nextclade_path), "--gff", str(gff_path), "--output", str(table)])
    rc = main(["plot", "--table", str(table), "--label-column", "note"])
    assert rc == 2
    assert "note" in capsys.readouterr().err
