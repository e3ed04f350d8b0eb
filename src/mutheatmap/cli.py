"""Command-line interface for mutheatmap.

    mutheatmap extract  --nextclade nextclade.tsv --gff genes.gff3 --output mutations.tsv
    mutheatmap annotate --annotations catalog.tsv --nextclade nextclade.tsv --gff genes.gff3
    mutheatmap plot     --table mutations.tsv --output heatmap.png
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import RunConfig
from .errors import MutationHeatmapError
from .logging_utils import configure_logging
from .pipeline import run_pipeline, write_output
from .utils import load_mutation_table
from .visualize import MutationHeatmap

logger = logging.getLogger(__name__)


def _setup_logging(verbosity: int) -> None:
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG
    configure_logging(level=level)


def _path_exists(p: str) -> str:
    if not Path(p).exists():
        raise argparse.ArgumentTypeError(f"Path does not exist: {p}")
    return p


def _handle_error(err: Exception) -> int:
    sys.stderr.write(f"{err.__class__.__name__}: {err}\n")
    return 2


def _add_run_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument("--nextclade", required=True, help="Nextclade TSV/CSV output")
    p.add_argument("--gff", required=True, help="Gene annotations (GFF3 or GTF)")
    p.add_argument(
        "--reference",
        default=None,
        help="Reference FASTA; its length replaces --genome-length",
    )
    p.add_argument(
        "--output",
        default="mutations.tsv",
        help="Output table (default: mutations.tsv)",
    )
    p.add_argument(
        "--format",
        choices=["tsv", "parquet"],
        default=None,
        help="Output format (default: from the output suffix)",
    )
    p.add_argument("--config", default=None, help="YAML run configuration")
    p.add_argument("--genome-length", type=int, default=None, help="Reference genome length")
    p.add_argument(
        "--delimiter",
        default=None,
        help="Output delimiter (default: tab)",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="mutheatmap",
        description="Normalize Nextclade mutations into an annotated long-format table.",
    )
    p.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Increase verbosity (use -v or -vv for more detail)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    e = sub.add_parser("extract", help="Extract mutations without a catalog.")
    _add_run_arguments(e)

    a = sub.add_parser("annotate", help="Extract mutations and match them to a catalog.")
    a.add_argument(
        "--annotations",
        required=True,
        type=_path_exists,
        help="Catalog of mutations of interest (columns: mutation, column, is_gene)",
    )
    _add_run_arguments(a)

    pl = sub.add_parser("plot", help="Draw a heatmap from a mutation table.")
    pl.add_argument("--table", required=True, help="Mutation table (TSV or Parquet)")
    pl.add_argument("--output", default="heatmap.png", help="Image file (.png, .svg, .pdf)")
    pl.add_argument(
        "--label-column",
        default=None,
        help="Metadata column appended to mutation labels",
    )
    pl.add_argument("--title", default=None, help="Figure title")

    return p


def _run_config(args: argparse.Namespace) -> RunConfig:
    config = RunConfig.from_yaml(args.config) if args.config else RunConfig.from_defaults()
    delimiter = args.delimiter
    if delimiter == "\\t":
        delimiter = "\t"
    return config.update(genome_length=args.genome_length, output_delimiter=delimiter)


def cmd_run(args: argparse.Namespace) -> int:
    try:
        config = _run_config(args)
        ctx = run_pipeline(
            nextclade_path=args.nextclade,
            gff_path=args.gff,
            annotations_path=getattr(args, "annotations", None),
            reference_path=args.reference,
            config=config,
        )
        write_output(ctx, args.output, args.format)
    except (MutationHeatmapError, FileNotFoundError, ValueError) as e:
        return _handle_error(e)
    return 0


def cmd_plot(args: argparse.Namespace) -> int:
    try:
        table = load_mutation_table(args.table)
        heatmap = MutationHeatmap(table, label_column=args.label_column)
        heatmap.plot(args.output, title=args.title)
    except (MutationHeatmapError, ValueError) as e:
        return _handle_error(e)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if args.cmd in ("extract", "annotate"):
        return cmd_run(args)
    if args.cmd == "plot":
        return cmd_plot(args)

    parser.error(f"Unknown command: {args.cmd}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
