"""Logging setup and per-stage diagnostics for mutheatmap runs.

Pipeline stages log their title at INFO and, with ``-vv``, indented counts
and previews of the intermediate tables at DEBUG.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Optional

import pandas as pd
from tqdm import tqdm


class TqdmLoggingHandler(logging.Handler):
    """Handler that keeps log lines from breaking the extraction progress bar.

    On an interactive terminal records go through ``tqdm.write``; when stderr
    is redirected they are written to it directly.
    """

    def emit(self, record):
        try:
            line = self.format(record)
            if sys.stderr.isatty():
                tqdm.write(line, file=sys.stderr)
            else:
                print(line, file=sys.stderr, flush=True)
        except Exception:
            self.handleError(record)


class DebugLogger:
    """Indented stage logging on top of a module logger.

    Example:
        >>> debug_log = DebugLogger(logger)
        >>> with debug_log.section("Joining mutations to gene features"):
        ...     debug_log.field("Records with a gene", 812)
        ...     debug_log.table(records_df, rows=20)
    """

    def __init__(self, logger: logging.Logger, debug: Optional[bool] = None):
        """Wrap a logger.

        Args:
            logger: Module logger the messages are sent to
            debug: Emit field and table output; follows the logger level if None
        """
        self.logger = logger
        if debug is None:
            debug = logger.isEnabledFor(logging.DEBUG)
        self.enabled = debug
        self._depth = 0

    def _indent(self, message: str) -> str:
        return "  " * self._depth + message

    @contextmanager
    def section(self, title: str):
        """Log a stage title at INFO and indent everything logged inside it."""
        self.logger.info(self._indent(title))
        self._depth += 1
        try:
            yield self
        finally:
            self._depth -= 1

    def field(self, name: str, value) -> None:
        if self.enabled:
            self.logger.debug(self._indent(f"{name}: {value}"))

    def table(self, df: pd.DataFrame, rows: int = 20, title: str = "Preview") -> None:
        """Log the first ``rows`` rows of an intermediate table."""
        if self.enabled:
            self.logger.debug(self._indent(f"{title}:\n{preview_table(df, rows)}"))


def preview_table(df: pd.DataFrame, rows: int = 20) -> str:
    """Render the head of a table as text.

    Args:
        df: Table to render
        rows: Maximum number of rows

    Returns:
        Text rendering, or a placeholder when the table has no rows
    """
    if df.empty:
        return "(empty table)"
    return df.head(rows).to_string(index=False)


def configure_logging(
    level: int = logging.INFO,
    format_string: Optional[str] = None,
    include_timestamp: bool = True,
) -> None:
    """Route all mutheatmap logging through a single stderr handler.

    Args:
        level: Root logging level, e.g. logging.DEBUG for ``-vv``
        format_string: Record format; a default with or without a timestamp if None
        include_timestamp: Prefix records with an ISO timestamp
    """
    if format_string is None:
        format_string = "[%(levelname)s] %(name)s - %(message)s"
        if include_timestamp:
            format_string = "%(asctime)s " + format_string

    root = logging.getLogger()
    root.setLevel(level)
    for existing in list(root.handlers):
        root.removeHandler(existing)

    stderr_handler = TqdmLoggingHandler()
    stderr_handler.setFormatter(
        logging.Formatter(fmt=format_string, datefmt="%Y-%m-%dT%H:%M:%S")
    )
    root.addHandler(stderr_handler)

    # Plotting libraries log font and backend details at INFO/DEBUG
    for name in ("matplotlib", "PIL"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
