"""
Data loading module for goal-line analysis.
Fetches a season of play-by-play data and caches it locally.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import pandas as pd
import nflreadpy as nfl

from goal_line_analysis.config import config

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = (
    "posteam", "week", "down", "yardline_100",
    "play_type", "defteam", "epa", "goal_to_go",
)


def validate_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Raise ``ValueError`` if the play-by-play frame lacks required fields."""
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Play-by-play data is missing required columns: {missing}")
    return df


class PlayByPlayLoader:
    """Handles loading and caching of seasonal play-by-play records."""

    def __init__(self, cache_dir: Optional[Path] = None):
        """Initialize the loader; parquet caches land in ``cache_dir``."""
        self.cache_dir = Path(cache_dir) if cache_dir is not None else config.RAW_DATA_DIR
        self.pbp_df: pd.DataFrame | None = None

    def cache_path(self, season: int) -> Path:
        return self.cache_dir / f"pbp_{season}.parquet"

    def load_season(self, season: Optional[int] = None, *, refresh: bool = False) -> pd.DataFrame:
        """
        Load one season of play-by-play data.

        Args:
            season: Season year; defaults to ``config.SEASON``
            refresh: Ignore any cached parquet file and refetch

        Returns:
            DataFrame with one row per play
        """
        season = config.SEASON if season is None else int(season)
        fp = self.cache_path(season)

        if fp.exists() and not refresh:
            logger.info("Reading cached play-by-play for %s from %s", season, fp)
            df = pd.read_parquet(fp)
        else:
            logger.info("Fetching play-by-play for %s from nflverse", season)
            pbp = nfl.load_pbp(seasons=[season])
            df = pbp.select(list(config.PBP_COLUMNS)).to_pandas()
            fp.parent.mkdir(parents=True, exist_ok=True)
            df.to_parquet(fp, index=False)
            logger.info("Wrote %s rows -> %s", f"{len(df):,}", fp)

        self.pbp_df = validate_columns(df)
        logger.info("Loaded %s plays for season %s", f"{len(self.pbp_df):,}", season)
        return self.pbp_df

    def load_file(self, filepath: Path | str) -> pd.DataFrame:
        """
        Load play-by-play records from a local CSV or parquet export.

        Args:
            filepath: Path to a ``.csv`` or ``.parquet`` file

        Returns:
            DataFrame with one row per play
        """
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"Play-by-play file not found: {filepath}")

        if filepath.suffix == ".parquet":
            df = pd.read_parquet(filepath)
        else:
            df = pd.read_csv(filepath)

        self.pbp_df = validate_columns(df)
        logger.info("Loaded %d plays from %s", len(df), filepath)
        return self.pbp_df

    def get_data_summary(self) -> dict:
        """
        Get summary statistics of loaded data.

        Returns:
            Dictionary with data summary information
        """
        if self.pbp_df is None:
            raise ValueError("No data loaded. Call load_season() or load_file() first.")

        df = self.pbp_df
        return {
            "total_plays": len(df),
            "unique_teams": df["posteam"].dropna().nunique(),
            "weeks": sorted(df["week"].dropna().astype(int).unique().tolist()),
            "play_type_counts": df["play_type"].value_counts().to_dict(),
            "goal_to_go_plays": int((df["goal_to_go"].fillna(0) > 0).sum()),
        }


if __name__ == "__main__":
    print("Testing PlayByPlayLoader...")
    loader = PlayByPlayLoader()
    try:
        df = loader.load_season()
        print(df.head())
        print(loader.get_data_summary())
        print("******* PlayByPlayLoader smoke test passed!")
    except Exception as e:
        print(f"------------- Error loading play-by-play: {e}")
