"""Plotting utilities for batch decision reports."""

from __future__ import annotations

import logging
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402

log = logging.getLogger(__name__)

CLASS_COLORS = {
    "confirm": "#2e8b57",
    "contradict": "#c0392b",
    "caution": "#d4af37",
}


def plot_score_distribution(decisions: pd.DataFrame, out_path: str | Path) -> None:
    """Histogram of final scores, one layer per classification.

    Parameters
    ----------
    decisions : pd.DataFrame
        Must contain ``final_score`` and ``classification`` columns.
    out_path : str | Path
        Destination file path (e.g. ``plots/score_distribution.png``).
    """
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(10, 5))
    for label, color in CLASS_COLORS.items():
        scores = decisions.loc[decisions["classification"] == label, "final_score"]
        if not scores.empty:
            ax.hist(scores, bins=20, alpha=0.6, color=color, label=f"{label} ({len(scores)})")
    ax.axvline(0.0, color="grey", linewidth=0.8, linestyle="--")
    ax.set_title(f"Final score distribution  ({len(decisions)} decisions)")
    ax.set_xlabel("Final score")
    ax.set_ylabel("Count")
    ax.grid(True, alpha=0.3)
    if len(decisions):
        ax.legend()
    fig.tight_layout()
    fig.savefig(out_path, dpi=100)
    plt.close(fig)

    log.info("Saved score distribution plot → %s", out_path)


def plot_pressure_breakdown(
    decisions: pd.DataFrame, out_path: str | Path, top_n: int = 25,
) -> None:
    """Sharp vs. trap pressure for the ``top_n`` strongest decisions."""
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    top = (
        decisions.assign(_strength=decisions["net_edge_score"].abs())
        .sort_values(["_strength", "subject_id"], ascending=[False, True], kind="mergesort")
        .head(top_n)
    )

    fig, ax = plt.subplots(figsize=(12, max(3, 0.35 * len(top) + 1)))
    y = range(len(top))
    ax.barh(y, top["sharp_pressure"], color="#2e8b57", label="sharp pressure")
    ax.barh(y, -top["trap_pressure"], color="#c0392b", label="trap pressure")
    ax.set_yticks(list(y))
    ax.set_yticklabels(top["subject_id"].astype(str))
    ax.invert_yaxis()
    ax.axvline(0.0, color="grey", linewidth=0.8)
    ax.set_title("Pressure breakdown")
    ax.set_xlabel("Weighted pressure")
    ax.grid(True, axis="x", alpha=0.3)
    ax.legend(loc="lower right")
    fig.tight_layout()
    fig.savefig(out_path, dpi=100)
    plt.close(fig)

    log.info("Saved pressure breakdown plot → %s", out_path)
