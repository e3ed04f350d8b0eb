"""Heatmap visualization of annotated mutations.

This module provides the MutationHeatmap class for drawing a samples x
mutations grid from the final mutation table.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap
from matplotlib.patches import Patch
import numpy as np
import pandas as pd

from .models import Status

logger = logging.getLogger(__name__)

# Cell codes, higher codes take precedence when a sample has several rows
NOT_OBSERVED = 0
_STATE_CODES = {
    Status.UNANNOTATED: 1,
    Status.PRESENT: 2,
    Status.MISSING: 3,
}


def combined_status(status: str, missing) -> Status:
    """Collapse the annotation status and the missing flag into one status.

    A mutation inside a missing region is reported as MISSING regardless of
    its catalog match.
    """
    if str(missing).strip().lower() == "true":
        return Status.MISSING
    if status == Status.PRESENT.value:
        return Status.PRESENT
    return Status.UNANNOTATED


class MutationHeatmap:
    """Draw which samples carry which mutations.

    Attributes:
        table (pd.DataFrame): Final mutation table.
        label_column (Optional[str]): Metadata column appended to mutation labels.
    """

    def __init__(self, table: pd.DataFrame, label_column: Optional[str] = None):
        """Initialize the MutationHeatmap.

        Args:
            table: Mutation table as written by the extraction pipeline
            label_column: Optional metadata column shown next to each mutation

        Raises:
            ValueError: If label_column is not a column of the table.
        """
        if label_column is not None and label_column not in table.columns:
            raise ValueError(f"Label column '{label_column}' not found in table")

        self.table = table
        self.label_column = label_column

        self.state_colors = {
            NOT_OBSERVED: "#ffffff",  # white
            _STATE_CODES[Status.UNANNOTATED]: "#cacfd2",  # light gray
            _STATE_CODES[Status.PRESENT]: "#652d90",  # purple
            _STATE_CODES[Status.MISSING]: "#a6acaf",  # medium gray
        }

    def select_mutations(self) -> List[str]:
        """Choose the mutations to draw, ordered by genome position.

        Only catalog matches are drawn when there are any, otherwise every
        observed mutation.
        """
        df = self.table
        present = df[df["status"] == Status.PRESENT.value]
        if not present.empty:
            df = present

        positions = pd.to_numeric(df["nuc_start"], errors="coerce")
        order = (
            pd.DataFrame({"mutation": df["mutation"], "position": positions})
            .groupby("mutation", sort=False)["position"]
            .min()
            .reset_index()
            .sort_values(["position", "mutation"], na_position="last")
        )
        return order["mutation"].tolist()

    def build_matrix(self) -> pd.DataFrame:
        """Build the samples x mutations matrix of cell codes."""
        samples = sorted(self.table["sample"].unique())
        mutations = self.select_mutations()
        matrix = pd.DataFrame(NOT_OBSERVED, index=samples, columns=mutations)

        rows = self.table[self.table["mutation"].isin(mutations)]
        for row in rows.itertuples(index=False):
            code = _STATE_CODES[combined_status(row.status, row.missing)]
            current = matrix.at[row.sample, row.mutation]
            matrix.at[row.sample, row.mutation] = max(current, code)

        return matrix

    def mutation_labels(self, mutations: List[str]) -> List[str]:
        """Label each mutation, with its metadata value if a label column is set."""
        if self.label_column is None:
            return list(mutations)

        labels = []
        for mutation in mutations:
            values = self.table.loc[
                self.table["mutation"] == mutation, self.label_column
            ].dropna()
            values = [str(v) for v in values if str(v).strip()]
            labels.append(f"{mutation} | {values[0]}" if values else mutation)
        return labels

    def plot(self, output_path: Union[str, Path], title: Optional[str] = None) -> Path:
        """Render the heatmap to an image file.

        Args:
            output_path: Destination; the format follows the suffix (.png, .svg, .pdf)
            title: Optional figure title

        Returns:
            Path to the written image

        Raises:
            ValueError: If the table has no rows to draw.
        """
        matrix = self.build_matrix()
        if matrix.empty:
            raise ValueError("No mutations to plot")

        n_samples, n_mutations = matrix.shape
        logger.info(f"Plotting {n_mutations} mutations across {n_samples} samples")

        fig_width = max(4.0, 0.4 * n_mutations + 2.5)
        fig_height = max(3.0, 0.4 * n_samples + 2.5)
        fig, ax = plt.subplots(figsize=(fig_width, fig_height))

        codes = sorted(self.state_colors)
        cmap = ListedColormap([self.state_colors[c] for c in codes])
        ax.imshow(
            matrix.to_numpy(dtype=int),
            cmap=cmap,
            vmin=min(codes) - 0.5,
            vmax=max(codes) + 0.5,
            aspect="equal",
            interpolation="nearest",
        )

        # Cell borders
        ax.set_xticks(np.arange(-0.5, n_mutations, 1), minor=True)
        ax.set_yticks(np.arange(-0.5, n_samples, 1), minor=True)
        ax.grid(which="minor", color="black", linewidth=1)
        ax.tick_params(which="minor", length=0)

        ax.set_xticks(np.arange(n_mutations))
        ax.set_xticklabels(self.mutation_labels(list(matrix.columns)), rotation=90)
        ax.xaxis.tick_top()
        ax.set_yticks(np.arange(n_samples))
        ax.set_yticklabels(matrix.index)

        legend_elements = [
            Patch(facecolor=self.state_colors[_STATE_CODES[s]], edgecolor="black", label=s.value)
            for s in (Status.PRESENT, Status.UNANNOTATED, Status.MISSING)
        ]
        ax.legend(
            handles=legend_elements,
            loc="upper left",
            bbox_to_anchor=(1.02, 1),
            frameon=False,
        )

        if title:
            ax.set_title(title, pad=20)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.tight_layout()
        fig.savefig(output_path, bbox_inches="tight")
        plt.close(fig)

        logger.info(f"Heatmap saved to {output_path}")
        return output_path
