"""
Season-to-date rushing efficiency per team.

The aggregate is the sum of run-play EPA over weeks up to a cutoff. It is the
group-level covariate of the hierarchical model and the ranking used to pick
illustrative teams.
"""
from __future__ import annotations

import logging
from typing import Tuple

import pandas as pd

from goal_line_analysis.config import config

logger = logging.getLogger(__name__)

EFFICIENCY_COLUMN = "szn_epa"


def team_rush_efficiency(pbp: pd.DataFrame, week_cutoff: int | None = None) -> pd.DataFrame:
    """
    Sum rushing EPA per offense through ``week_cutoff``.

    Returns
    -------
    pd.DataFrame
        Columns ``posteam`` and ``szn_epa``, sorted ascending by efficiency.
    """
    week_cutoff = config.WEEK_CUTOFF if week_cutoff is None else int(week_cutoff)
    runs = pbp[
        (pbp["play_type"] == "run")
        & pbp["epa"].notna()
        & (pbp["week"] <= week_cutoff)
    ]
    agg = (
        runs.groupby("posteam")["epa"]
        .sum()
        .rename(EFFICIENCY_COLUMN)
        .reset_index()
        .sort_values(EFFICIENCY_COLUMN)
        .reset_index(drop=True)
    )
    logger.info("Rushing EPA through week %d for %d teams", week_cutoff, len(agg))
    return agg


def rank_teams(aggregate: pd.DataFrame, n: int | None = None) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Return the ``n`` best and ``n`` worst rushing teams (best first, worst first)."""
    n = config.N_RANKED_TEAMS if n is None else n
    ordered = aggregate.sort_values(EFFICIENCY_COLUMN, ascending=False)
    top = ordered.head(n).reset_index(drop=True)
    bottom = ordered.tail(n).iloc[::-1].reset_index(drop=True)
    return top, bottom


def efficiency_lookup(aggregate: pd.DataFrame) -> dict[str, float]:
    return {str(k): float(v) for k, v in zip(aggregate["posteam"], aggregate[EFFICIENCY_COLUMN])}
