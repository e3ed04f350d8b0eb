"""Genome annotation and reference handling module.

This module provides the GenomeHandler class for loading gene features from
GFF3/GTF annotation files and, optionally, the reference genome length from
a FASTA file.
"""

from Bio import SeqIO
import pandas as pd
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union
from urllib.parse import unquote

from .errors import InputEmptyError, InputMissingError, ParseError
from .models import GeneFeature

logger = logging.getLogger(__name__)

# Attribute keys searched, in order, for a feature name
NAME_ATTRIBUTES = ["Name", "gene_name", "gene"]


def parse_attributes(attribute_string: str) -> Dict[str, str]:
    """Parse the ninth column of a GFF3 or GTF record.

    Both ``key=value`` (GFF3) and ``key "value"`` (GTF) pairs are accepted.
    Keys are whitespace-trimmed; some annotations carry a leading space.

    Args:
        attribute_string (str): Raw attribute column.

    Returns:
        Dict[str, str]: Attribute values keyed by name.
    """
    attrs = {}
    for attr in attribute_string.split(";"):
        attr = attr.strip()
        if not attr:
            continue

        if "=" in attr:
            key, value = attr.split("=", 1)
            attrs[key.strip()] = unquote(value.strip())
            continue

        match = attr.split(" ", 1)
        if len(match) == 2:
            attrs[match[0].strip()] = match[1].strip().strip('"')

    return attrs


def _parse_position(text: str, column: str, path: Path, line_number: int) -> int:
    try:
        return int(text)
    except ValueError:
        raise ParseError(
            text, column, f"not an integer coordinate ({path}, line {line_number})"
        ) from None


class GenomeHandler:
    """Handles access to gene features and reference genome metadata.

    Attributes:
        annotations (pd.DataFrame): Gene features with columns name, type, start, end.
        annotation_path (Path): Path to the GFF3/GTF annotation file.
        reference_path (Optional[Path]): Path to the reference FASTA file.
    """

    def __init__(
        self,
        annotation_path: Union[str, Path],
        reference_path: Optional[Union[str, Path]] = None,
    ):
        """Initialize the GenomeHandler with gene annotations.

        Args:
            annotation_path (Union[str, Path]): Path to the GFF3/GTF annotation file.
            reference_path (Optional[Union[str, Path]]): Path to the reference FASTA file.
        """
        self.annotation_path = Path(annotation_path)
        self.reference_path = Path(reference_path) if reference_path else None
        self.load_annotations(self.annotation_path)

    def load_annotations(self, annotation_path: Path) -> None:
        """Load and parse annotation records into a pandas DataFrame.

        Records without any of the name attributes are skipped.

        Args:
            annotation_path (Path): Path to the GFF3/GTF annotation file.

        Raises:
            InputMissingError: If the file does not exist.
            InputEmptyError: If no named features were found.
            ParseError: If a start or end coordinate is not an integer.
        """
        if not annotation_path.exists():
            raise InputMissingError(annotation_path)

        logger.info(f"Reading gene features: {annotation_path}")
        features_list = []
        skipped = 0

        with open(annotation_path) as handle:
            for line_number, line in enumerate(handle, start=1):
                # Embedded sequences follow the annotations in some GFF3 files
                if line.startswith("##FASTA"):
                    break
                if line.startswith("#") or not line.strip():
                    continue

                fields = line.rstrip("\n").split("\t")

                if len(fields) != 9:
                    continue

                attrs = parse_attributes(fields[8])
                name = next(
                    (attrs[key] for key in NAME_ATTRIBUTES if key in attrs), None
                )
                if name is None:
                    skipped += 1
                    continue

                start = _parse_position(fields[3], "start", annotation_path, line_number)
                end = _parse_position(fields[4], "end", annotation_path, line_number)
                features_list.append(
                    {"name": name, "type": fields[2], "start": start, "end": end}
                )

        if not features_list:
            raise InputEmptyError(annotation_path)

        if skipped:
            logger.debug(f"Skipped {skipped} unnamed feature(s)")

        self.annotations = pd.DataFrame(
            features_list, columns=["name", "type", "start", "end"]
        )
        logger.info(f"Loaded {len(self.annotations)} gene features")

    def get_features(self, feature_type: Optional[str] = None) -> List[GeneFeature]:
        """Get gene features in file order.

        Args:
            feature_type (Optional[str]): Only return features of this type.

        Returns:
            List[GeneFeature]: Matching features.
        """
        df = self.annotations
        if feature_type is not None:
            df = df[df["type"] == feature_type]

        return [
            GeneFeature(name=row.name, kind=row.type, start=int(row.start), end=int(row.end))
            for row in df.itertuples(index=False)
        ]

    def genome_length(self) -> Optional[int]:
        """Get the length of the reference sequence.

        Returns:
            Optional[int]: Length of the first FASTA record, or None without a reference.

        Raises:
            InputMissingError: If the reference file does not exist.
            InputEmptyError: If the reference has no records.
        """
        if self.reference_path is None:
            return None
        if not self.reference_path.exists():
            raise InputMissingError(self.reference_path)

        records = list(SeqIO.parse(str(self.reference_path), "fasta"))
        if not records:
            raise InputEmptyError(self.reference_path)
        if len(records) > 1:
            logger.warning(
                f"Reference {self.reference_path} has {len(records)} records, "
                f"using the first ({records[0].id})"
            )
        return len(records[0].seq)
