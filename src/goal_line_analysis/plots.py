"""
Plot utilities shared by the dashboard and the static report.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.figure import Figure

from goal_line_analysis.config import config
from goal_line_analysis.utils.metrics import PosteriorSummary, summarize_draws

logger = logging.getLogger(__name__)

plt.rcParams.update({
    "axes.spines.top": False,
    "axes.spines.right": False,
})


def plot_predictive_histogram(
    draws: np.ndarray,
    summary: Optional[PosteriorSummary] = None,
    *,
    title: str = "Posterior Predictive Distribution: Pass Probability",
    bins: Optional[int] = None,
) -> Figure:
    """
    Histogram of pass-probability draws with the median (red) and the HDI
    bounds (black) as dashed vertical lines.
    """
    summary = summary or summarize_draws(draws)
    fig, ax = plt.subplots(figsize=config.FIGURE_SIZE, dpi=config.DPI)
    ax.hist(draws, bins=bins or config.HISTOGRAM_BINS, color="skyblue", edgecolor="black")
    for x, colour in ((summary.median, "red"), (summary.hdi_lower, "black"), (summary.hdi_upper, "black")):
        ax.axvline(x, color=colour, linestyle="--", linewidth=1.5)
    ax.set_title(title)
    ax.set_xlabel("Pass Probability (%)")
    ax.set_ylabel("Count")
    fig.tight_layout()
    return fig


def plot_pass_curve(grid: pd.DataFrame, *, title: Optional[str] = None) -> Figure:
    """Median pass probability by distance, one line and HDI band per down."""
    fig, ax = plt.subplots(figsize=config.FIGURE_SIZE, dpi=config.DPI)
    for down, grp in grid.groupby("down"):
        grp = grp.sort_values("distance")
        ax.plot(grp["distance"], grp["pass_prob"], marker="o", label=f"Down {down}")
        ax.fill_between(grp["distance"], grp["pass_hdi_lower"], grp["pass_hdi_upper"], alpha=0.15)
    ax.set_xlabel("Yards to goal")
    ax.set_ylabel("Pass Probability (%)")
    ax.set_ylim(0, 100)
    ax.set_title(title or "Pass Probability by Down and Distance")
    ax.legend()
    fig.tight_layout()
    return fig


def plot_team_efficiency(aggregate: pd.DataFrame, highlight: Sequence[str] = ()) -> Figure:
    """Horizontal bar chart of season rushing EPA, highlighted teams in red."""
    df = aggregate.sort_values("szn_epa")
    palette = ["red" if t in highlight else "grey" for t in df["posteam"]]
    fig, ax = plt.subplots(figsize=(8, max(4, 0.25 * len(df))), dpi=config.DPI)
    sns.barplot(data=df, x="szn_epa", y="posteam", hue="posteam", palette=palette, legend=False, ax=ax)
    ax.set_xlabel("Season rushing EPA")
    ax.set_ylabel("")
    ax.set_title("Team Rushing Efficiency")
    fig.tight_layout()
    return fig
