"""
Data preprocessing module for goal-line analysis.
Filters play-by-play records to goal-to-go run/pass calls and builds the
modeling table consumed by the hierarchical model.
"""
from __future__ import annotations

import logging
from typing import List, Optional, cast

import pandas as pd

from goal_line_analysis.config import config
from goal_line_analysis.data.team_efficiency import (
    EFFICIENCY_COLUMN,
    team_rush_efficiency,
)

logger = logging.getLogger(__name__)

MODELING_COLUMNS = [
    "posteam", "week", "pass", "goal_to_go", "yardline_100",
    "down", "play_type", "defteam",
]


def filter_goal_to_go(pbp: pd.DataFrame, downs: Optional[List[int]] = None) -> pd.DataFrame:
    """
    Keep goal-to-go pass/run plays on the requested downs.

    Rows with a missing goal-to-go flag, distance or play type are dropped
    without complaint. Applying the filter twice yields the same frame.
    """
    downs = list(config.DOWNS) if downs is None else downs
    mask = (
        pbp["goal_to_go"].notna()
        & pbp["yardline_100"].notna()
        & pbp["play_type"].notna()
        & (pbp["goal_to_go"] > 0)
        & pbp["down"].isin(downs)
        & pbp["play_type"].isin(config.PLAY_TYPES)
    )
    filtered = cast(pd.DataFrame, pbp.loc[mask].copy())
    logger.debug("Goal-to-go filter kept %d of %d plays", len(filtered), len(pbp))
    return filtered


def add_pass_label(plays: pd.DataFrame) -> pd.DataFrame:
    """Binary outcome: 1 = pass, 0 = run. ``down`` becomes an integer level."""
    out = plays.copy()
    out["pass"] = (out["play_type"] == "pass").astype(int)
    out["down"] = out["down"].astype(int)
    return out


class GoalLinePreprocessor:
    """Builds the goal-to-go modeling table from raw play-by-play records."""

    def __init__(self):
        """Create a preprocessor with defaults from central config."""
        self.WEEK_CUTOFF: int | None = None
        self.DOWNS: list[int] | None = None

        self.raw_data: pd.DataFrame | None = None
        self.team_efficiency: pd.DataFrame | None = None
        self.processed_data: pd.DataFrame | None = None

        self.update_config(week_cutoff=config.WEEK_CUTOFF, downs=list(config.DOWNS))

    def update_config(self,
                      week_cutoff: Optional[int] = None,
                      downs: Optional[List[int]] = None):
        """
        Update preprocessing configuration.

        Args:
            week_cutoff: Last week treated as played
            downs: Downs to keep; the model has levels for downs 1-3 only
        """
        if week_cutoff is not None:
            self.WEEK_CUTOFF = int(week_cutoff)
        if downs is not None:
            if not downs or not set(downs) <= set(config.DOWNS):
                raise ValueError(f"Downs must be a non-empty subset of {config.DOWNS}, got {downs}")
            self.DOWNS = sorted(int(d) for d in downs)
        logger.debug("Preprocessor config: week_cutoff=%s downs=%s", self.WEEK_CUTOFF, self.DOWNS)

    def _validate_config(self):
        missing = []
        if self.WEEK_CUTOFF is None:
            missing.append("WEEK_CUTOFF")
        if self.DOWNS is None:
            missing.append("DOWNS")
        if missing:
            raise ValueError(f"Configuration not set. Please call update_config() first. Missing: {missing}")

    def filter_plays(self, pbp: pd.DataFrame) -> pd.DataFrame:
        """Goal-to-go filter, pass label and week cutoff."""
        self._validate_config()
        assert self.WEEK_CUTOFF is not None
        plays = add_pass_label(filter_goal_to_go(pbp, downs=self.DOWNS))
        plays = cast(pd.DataFrame, plays[plays["week"] <= self.WEEK_CUTOFF])
        return plays[MODELING_COLUMNS].reset_index(drop=True)

    def join_team_efficiency(self, plays: pd.DataFrame, aggregate: pd.DataFrame) -> pd.DataFrame:
        """Left-join the team aggregate; teams without run plays get a null value."""
        joined = plays.merge(aggregate, on="posteam", how="left", validate="many_to_one")
        n_missing = int(joined[EFFICIENCY_COLUMN].isna().sum())
        if n_missing:
            logger.warning("%d goal-to-go plays have no rushing EPA for their team", n_missing)
        return joined

    def preprocess_complete(self, pbp: pd.DataFrame) -> pd.DataFrame:
        """
        Run the full preparation: filter, label, aggregate, join.

        Returns
        -------
        pd.DataFrame
            Modeling table with one row per goal-to-go play.
        """
        self._validate_config()
        self.raw_data = pbp
        self.team_efficiency = team_rush_efficiency(pbp, self.WEEK_CUTOFF)
        plays = self.filter_plays(pbp)
        self.processed_data = self.join_team_efficiency(plays, self.team_efficiency)
        self.processed_data.attrs["week_cutoff"] = self.WEEK_CUTOFF
        logger.info(
            "Modeling table: %d plays, %d teams, pass rate %.3f",
            len(self.processed_data),
            self.processed_data["posteam"].nunique(),
            self.processed_data["pass"].mean() if len(self.processed_data) else float("nan"),
        )
        return self.processed_data

    def save(self) -> None:
        """Persist the modeling table and aggregate under ``data/processed``."""
        if self.processed_data is None or self.team_efficiency is None:
            raise RuntimeError("Nothing to save. Call preprocess_complete() first.")
        config.PROCESSED_DATA_DIR.mkdir(parents=True, exist_ok=True)
        self.processed_data.to_csv(config.MODELING_DATA_FILE, index=False)
        self.team_efficiency.to_csv(config.TEAM_EFFICIENCY_FILE, index=False)
        logger.info("Saved modeling table -> %s", config.MODELING_DATA_FILE)
