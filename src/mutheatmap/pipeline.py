"""Extraction and annotation pipeline.

A run threads one ``PipelineContext`` through these stages:

    load_inputs        read gene features, the Nextclade table and the catalog
    extract_mutations  split mutation columns into one record per token
    resolve_genes      attach gene features and complete coordinates
    match_missing      flag records inside missing-coverage regions
    match_annotations  flag records matching the catalog
    assemble_table     deduplicate, sort and build the final DataFrame

Each stage replaces whole collections on the context and never mutates
shared state, so stages can be run and tested one at a time.
"""

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd
from tqdm import tqdm

from .annotations import AnnotationMatcher, load_catalog
from .assemble import assemble, to_dataframe
from .config import RunConfig
from .genome import GenomeHandler
from .logging_utils import DebugLogger
from .missing import MissingCoverageMatcher, build_missing_regions
from .models import AnnotationEntry, MissingRegion, MutationRecord
from .mutations import MutationParser
from .resolver import GeneResolver
from .utils import print_mutation_summary, read_table, require_columns, write_table

logger = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    """Tables and settings owned by a single run.

    Attributes:
        config (RunConfig): Run settings.
        genome (Optional[GenomeHandler]): Loaded gene features.
        resolver (Optional[GeneResolver]): Gene lookup over features of the gene type.
        variants (Optional[pd.DataFrame]): Wide Nextclade table.
        catalog (List[AnnotationEntry]): Mutations of interest; empty without a catalog.
        metadata_columns (List[str]): Catalog metadata columns.
        missing_regions (List[MissingRegion]): Missing-coverage regions of all samples.
        records (List[MutationRecord]): Current mutation records.
        table (Optional[pd.DataFrame]): Final assembled table.
    """

    config: RunConfig = field(default_factory=RunConfig)
    genome: Optional[GenomeHandler] = None
    resolver: Optional[GeneResolver] = None
    variants: Optional[pd.DataFrame] = None
    catalog: List[AnnotationEntry] = field(default_factory=list)
    metadata_columns: List[str] = field(default_factory=list)
    missing_regions: List[MissingRegion] = field(default_factory=list)
    records: List[MutationRecord] = field(default_factory=list)
    table: Optional[pd.DataFrame] = None

    @property
    def debug_log(self) -> DebugLogger:
        return DebugLogger(logger)


def load_inputs(
    ctx: PipelineContext,
    nextclade_path: Union[str, Path],
    gff_path: Union[str, Path],
    annotations_path: Optional[Union[str, Path]] = None,
    reference_path: Optional[Union[str, Path]] = None,
) -> PipelineContext:
    """Read every input table into the context.

    All inputs are read before any transformation, so a missing, empty or
    malformed file aborts the run early.

    Raises:
        InputMissingError: If an input file does not exist.
        InputEmptyError: If an input file has no records.
        SchemaMismatchError: If an expected column is absent.
    """
    config = ctx.config
    debug_log = ctx.debug_log

    with debug_log.section("Loading inputs"):
        ctx.genome = GenomeHandler(gff_path, reference_path)
        debug_log.table(ctx.genome.annotations, config.preview_rows, "GFF preview")

        genome_length = ctx.genome.genome_length()
        if genome_length is not None:
            logger.info(f"Genome length from reference: {genome_length}")
            ctx.config = config = config.update(genome_length=genome_length)

        ctx.resolver = GeneResolver(ctx.genome.get_features(config.gene_feature_type))
        if not ctx.resolver.features:
            logger.warning(
                f"No features of type '{config.gene_feature_type}' found in {gff_path}"
            )

        logger.info(f"Reading nextclade file: {nextclade_path}")
        variants = read_table(nextclade_path, config.input_delimiter, keep_blank=True)
        require_columns(
            variants, [config.sample_column] + config.mutation_columns, nextclade_path
        )
        ctx.variants = variants

        if annotations_path is not None:
            ctx.catalog, ctx.metadata_columns = load_catalog(
                annotations_path, config.input_delimiter
            )

    return ctx


def extract_mutations(ctx: PipelineContext) -> PipelineContext:
    """Convert the wide Nextclade table to one record per mutation token.

    Raises:
        ParseError: If any token cannot be parsed.
    """
    config = ctx.config
    debug_log = ctx.debug_log
    parser = MutationParser(config.amino_acid_columns, config.aa_insertion_column)

    with debug_log.section("Extracting mutations"):
        logger.info(f"Nucleotide mutation columns: {config.nucleotide_columns}")
        logger.info(f"Amino-acid mutation columns: {config.amino_acid_columns}")

        columns = config.mutation_columns
        rows = ctx.variants[[config.sample_column] + columns].to_dict("records")

        # Disable progress bar if output is not a TTY (e.g., piped to file)
        show_progress = sys.stderr.isatty()
        records: List[MutationRecord] = []
        for values in tqdm(
            rows,
            desc="Extracting samples",
            unit="sample",
            disable=not show_progress,
            file=sys.stderr,
        ):
            sample = values[config.sample_column]
            for column in columns:
                records.extend(parser.parse_cell(values[column], column, sample))

        ctx.records = records
        logger.info(f"Extracted {len(records)} mutations from {len(ctx.variants)} samples")
        debug_log.table(to_dataframe(records[: config.preview_rows]), config.preview_rows)

    return ctx


def resolve_genes(ctx: PipelineContext) -> PipelineContext:
    """Join records to gene features and complete their coordinates."""
    debug_log = ctx.debug_log
    with debug_log.section("Joining mutations to gene features"):
        ctx.records = ctx.resolver.resolve_all(ctx.records)
        resolved = sum(1 for r in ctx.records if r.gene is not None)
        debug_log.field("Records with a gene", resolved)
        debug_log.table(
            to_dataframe(ctx.records[: ctx.config.preview_rows]), ctx.config.preview_rows
        )
    return ctx


def match_missing(ctx: PipelineContext) -> PipelineContext:
    """Build missing regions from the Nextclade table and flag overlapping records."""
    config = ctx.config
    debug_log = ctx.debug_log

    with debug_log.section("Identifying mutations in missing regions"):
        missing_column = config.missing_column
        if missing_column not in ctx.variants.columns:
            logger.warning(f"Column '{missing_column}' not found, no explicit missing ranges")
            missing_column = None

        alignment_end_column = config.alignment_end_column
        if alignment_end_column not in ctx.variants.columns:
            logger.warning(
                f"Column '{alignment_end_column}' not found, unaligned samples cannot be detected"
            )
            alignment_end_column = None

        ctx.missing_regions = build_missing_regions(
            ctx.variants,
            config.sample_column,
            config.genome_length,
            missing_column=missing_column,
            alignment_end_column=alignment_end_column,
        )
        debug_log.field("Missing regions", len(ctx.missing_regions))
        ctx.records = MissingCoverageMatcher(ctx.missing_regions).match_all(ctx.records)

    return ctx


def match_annotations(ctx: PipelineContext) -> PipelineContext:
    """Mark records matching the catalog as present."""
    with ctx.debug_log.section("Matching mutations to annotations"):
        ctx.records = AnnotationMatcher(ctx.catalog).match_all(ctx.records)
    return ctx


def assemble_table(ctx: PipelineContext) -> PipelineContext:
    """Deduplicate and sort records into the final table."""
    debug_log = ctx.debug_log
    with debug_log.section("Creating the final table"):
        ctx.records = assemble(ctx.records)
        ctx.table = to_dataframe(ctx.records, ctx.metadata_columns)
        debug_log.table(ctx.table, ctx.config.preview_rows, "Final table preview")
    return ctx


def run_pipeline(
    nextclade_path: Union[str, Path],
    gff_path: Union[str, Path],
    annotations_path: Optional[Union[str, Path]] = None,
    reference_path: Optional[Union[str, Path]] = None,
    config: Optional[RunConfig] = None,
) -> PipelineContext:
    """Run every stage and return the finished context.

    Args:
        nextclade_path: Path to the Nextclade TSV/CSV output.
        gff_path: Path to the GFF3/GTF gene annotations.
        annotations_path: Optional path to the catalog of mutations of interest.
        reference_path: Optional reference FASTA used for the genome length.
        config: Run settings; defaults from ``Config`` if None.

    Returns:
        PipelineContext: Context with ``records`` and ``table`` populated.
    """
    ctx = PipelineContext(config=config or RunConfig.from_defaults())
    logger.info("Beginning extraction.")

    ctx = load_inputs(ctx, nextclade_path, gff_path, annotations_path, reference_path)
    ctx = extract_mutations(ctx)
    ctx = resolve_genes(ctx)
    ctx = match_missing(ctx)
    ctx = match_annotations(ctx)
    ctx = assemble_table(ctx)

    print_mutation_summary(ctx.table)
    logger.info("Finished extraction.")
    return ctx


def write_output(
    ctx: PipelineContext,
    output_path: Union[str, Path],
    output_format: Optional[str] = None,
) -> Path:
    """Write the final table of a finished run."""
    return write_table(
        ctx.table, output_path, output_format, delimiter=ctx.config.output_delimiter
    )
