"""Exceptions raised while building the mutation table.

Every error here is fatal for a run: partial output would silently corrupt
the status columns, so callers abort instead of skipping rows.
"""

from pathlib import Path
from typing import Iterable, Optional, Union


class MutationHeatmapError(Exception):
    """Base class for mutheatmap errors."""


class InputMissingError(MutationHeatmapError, FileNotFoundError):
    """A required input file does not exist."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"Input file not found: {self.path}")


class InputEmptyError(MutationHeatmapError, ValueError):
    """A required input file has no data rows."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"No records were found in file: {self.path}")


class SchemaMismatchError(MutationHeatmapError, ValueError):
    """An input table lacks one or more expected columns."""

    def __init__(self, path: Union[str, Path, None], columns: Iterable[str]):
        self.path = Path(path) if path is not None else None
        self.columns = list(columns)
        location = f" in {self.path}" if self.path is not None else ""
        super().__init__(
            f"Missing required column(s){location}: {', '.join(self.columns)}"
        )


class ParseError(MutationHeatmapError, ValueError):
    """A mutation token, coordinate or value could not be parsed."""

    def __init__(
        self,
        token: str,
        column: str,
        reason: str,
        sample: Optional[str] = None,
    ):
        self.token = token
        self.column = column
        self.reason = reason
        self.sample = sample
        where = f"column '{column}'"
        if sample is not None:
            where += f", sample '{sample}'"
        super().__init__(f"Failed to parse '{token}' ({where}): {reason}")
