"""Configuration management for mutheatmap.

This module loads default settings from environment variables or a .env file,
and provides the per-run configuration object that can be overlaid from a
YAML file and from command-line flags.
"""

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Dict, List, Optional

import yaml


def load_env_file(env_path: Optional[str] = None) -> None:
    """Export MUTHEATMAP_* settings from a .env file.

    Variables already set in the environment take precedence over the file.

    Args:
        env_path: Path to the .env file. If None, the package directory and
            up to three of its parents are searched.
    """
    if env_path:
        candidates = [Path(env_path)]
    else:
        package_dir = Path(__file__).resolve().parent
        candidates = [d / ".env" for d in [package_dir, *package_dir.parents][:4]]

    env_file = next((c for c in candidates if c.is_file()), None)
    if env_file is None:
        return

    for raw in env_file.read_text().splitlines():
        entry = raw.strip()
        if not entry or entry.startswith("#") or "=" not in entry:
            continue
        key, value = (part.strip() for part in entry.split("=", 1))
        os.environ.setdefault(key, value.strip("'\""))


def _env_list(name: str, default: str) -> List[str]:
    """Read a comma-separated list from the environment."""
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


load_env_file()


class Config:
    """Default settings for mutheatmap runs."""

    # Length of the reference genome, used when a sample has no alignment
    GENOME_LENGTH: int = int(os.getenv("MUTHEATMAP_GENOME_LENGTH", "29903"))

    # Number of rows shown in debug table previews
    PREVIEW_ROWS: int = int(os.getenv("MUTHEATMAP_PREVIEW_ROWS", "20"))

    # Nextclade columns holding comma-separated mutations
    NUCLEOTIDE_COLUMNS: List[str] = _env_list(
        "MUTHEATMAP_NUCLEOTIDE_COLUMNS", "substitutions,deletions,insertions"
    )
    AMINO_ACID_COLUMNS: List[str] = _env_list(
        "MUTHEATMAP_AMINO_ACID_COLUMNS",
        "frameShifts,aaSubstitutions,aaDeletions,aaInsertions",
    )
    AA_INSERTION_COLUMN: str = os.getenv(
        "MUTHEATMAP_AA_INSERTION_COLUMN", "aaInsertions"
    )

    SAMPLE_COLUMN: str = os.getenv("MUTHEATMAP_SAMPLE_COLUMN", "seqName")
    ALIGNMENT_END_COLUMN: str = os.getenv(
        "MUTHEATMAP_ALIGNMENT_END_COLUMN", "alignmentEnd"
    )
    MISSING_COLUMN: str = os.getenv("MUTHEATMAP_MISSING_COLUMN", "missing")

    # GFF feature type used for gene lookups
    GENE_FEATURE_TYPE: str = os.getenv("MUTHEATMAP_GENE_FEATURE_TYPE", "gene")

    OUTPUT_DELIMITER: str = os.getenv("MUTHEATMAP_OUTPUT_DELIMITER", "\t")

    @classmethod
    def validate(cls) -> None:
        """Validate that the configured defaults are usable."""
        if cls.GENOME_LENGTH <= 0:
            import warnings

            warnings.warn(
                f"MUTHEATMAP_GENOME_LENGTH must be positive, got {cls.GENOME_LENGTH}. "
                "Samples without an alignment will produce an invalid missing region.",
                UserWarning,
            )


Config.validate()


# Settings that hold lists of Nextclade column names
_LIST_SETTINGS = ("nucleotide_columns", "amino_acid_columns")


@dataclass
class RunConfig:
    """Settings for a single extraction/annotation run.

    Attributes:
        genome_length (int): Reference length for whole-genome missing regions.
        preview_rows (int): Rows shown in debug previews of intermediate tables.
        nucleotide_columns (List[str]): Mutation columns in genome coordinates.
        amino_acid_columns (List[str]): Mutation columns in codon coordinates.
        aa_insertion_column (str): Amino-acid column using ``gene:pos:seq`` notation.
        sample_column (str): Column holding the sample identifier.
        alignment_end_column (str): Nullable column, null meaning unaligned.
        missing_column (str): Column of comma-separated missing ranges.
        gene_feature_type (str): Feature type considered a gene.
        output_delimiter (str): Delimiter of the written table.
        input_delimiter (Optional[str]): Input delimiter, inferred from suffix if None.
    """

    genome_length: int = field(default_factory=lambda: Config.GENOME_LENGTH)
    preview_rows: int = field(default_factory=lambda: Config.PREVIEW_ROWS)
    nucleotide_columns: List[str] = field(
        default_factory=lambda: list(Config.NUCLEOTIDE_COLUMNS)
    )
    amino_acid_columns: List[str] = field(
        default_factory=lambda: list(Config.AMINO_ACID_COLUMNS)
    )
    aa_insertion_column: str = field(default_factory=lambda: Config.AA_INSERTION_COLUMN)
    sample_column: str = field(default_factory=lambda: Config.SAMPLE_COLUMN)
    alignment_end_column: str = field(
        default_factory=lambda: Config.ALIGNMENT_END_COLUMN
    )
    missing_column: str = field(default_factory=lambda: Config.MISSING_COLUMN)
    gene_feature_type: str = field(default_factory=lambda: Config.GENE_FEATURE_TYPE)
    output_delimiter: str = field(default_factory=lambda: Config.OUTPUT_DELIMITER)
    input_delimiter: Optional[str] = None

    @property
    def mutation_columns(self) -> List[str]:
        """All mutation columns, nucleotide columns first."""
        return self.nucleotide_columns + self.amino_acid_columns

    @classmethod
    def from_defaults(cls) -> "RunConfig":
        return cls()

    @classmethod
    def from_yaml(cls, config_file: str) -> "RunConfig":
        """Read run settings from a YAML file.

        Args:
            config_file: Path to YAML configuration file

        Returns:
            RunConfig with the file's values over the defaults

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file contains unknown keys or is not a mapping
        """
        path = Path(config_file)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {path}")

        return cls().update(**data)

    def update(self, **overrides) -> "RunConfig":
        """Return a copy with the given settings replaced, ignoring None values.

        Raises:
            ValueError: If a key is not a known setting, or a column list
                setting is not a list of strings
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")

        for key in _LIST_SETTINGS:
            value = overrides.get(key)
            if value is not None and not (
                isinstance(value, list) and all(isinstance(v, str) for v in value)
            ):
                raise ValueError(f"Setting '{key}' must be a list of column names")

        changes: Dict[str, object] = {
            key: value for key, value in overrides.items() if value is not None
        }
        return replace(self, **changes)
