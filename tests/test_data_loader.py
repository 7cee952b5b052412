"""
Unit tests for PlayByPlayLoader module.
"""
import unittest
from unittest import mock
import pandas as pd
import polars as pl
from pathlib import Path
import tempfile
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from goal_line_analysis.data import loader as loader_module
from goal_line_analysis.data.loader import PlayByPlayLoader, REQUIRED_COLUMNS
from synthetic_data import make_pbp


class TestPlayByPlayLoader(unittest.TestCase):
    """Test cases for PlayByPlayLoader class."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = Path(tempfile.mkdtemp())
        self.loader = PlayByPlayLoader(cache_dir=self.temp_dir)
        self.pbp = make_pbp(n_weeks=3)

        self.csv_file = self.temp_dir / 'pbp.csv'
        self.pbp.to_csv(self.csv_file, index=False)

    def test_load_file_csv(self):
        """Test loading a local CSV export."""
        df = self.loader.load_file(self.csv_file)

        self.assertEqual(len(df), len(self.pbp))
        for col in REQUIRED_COLUMNS:
            self.assertIn(col, df.columns)

    def test_load_file_parquet(self):
        """Test loading a local parquet export."""
        fp = self.temp_dir / 'pbp.parquet'
        self.pbp.to_parquet(fp, index=False)
        df = self.loader.load_file(fp)

        self.assertEqual(len(df), len(self.pbp))

    def test_missing_columns_rejected(self):
        """A frame without the efficiency column cannot be used."""
        bad = self.temp_dir / 'bad.csv'
        self.pbp.drop(columns=['epa']).to_csv(bad, index=False)

        with self.assertRaisesRegex(ValueError, 'epa'):
            self.loader.load_file(bad)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            self.loader.load_file(self.temp_dir / 'nope.csv')

    def test_load_season_uses_cache(self):
        """A cached parquet file is read without touching the network."""
        self.pbp.to_parquet(self.loader.cache_path(2022), index=False)

        with mock.patch.object(loader_module.nfl, 'load_pbp') as fetch:
            df = self.loader.load_season(2022)

        fetch.assert_not_called()
        self.assertEqual(len(df), len(self.pbp))

    def test_load_season_logs_row_count(self):
        """Loading reports through the module logger."""
        self.pbp.to_parquet(self.loader.cache_path(2022), index=False)

        with self.assertLogs('goal_line_analysis.data.loader', level='INFO') as logs:
            self.loader.load_season(2022)

        self.assertTrue(any(f'Loaded {len(self.pbp):,} plays for season 2022' in m for m in logs.output))

    def test_load_season_fetches_and_caches(self):
        """Without a cache the season is fetched once and written to parquet."""
        remote = pl.from_pandas(self.pbp.assign(extra_col=1))

        with mock.patch.object(loader_module.nfl, 'load_pbp', return_value=remote) as fetch:
            df = self.loader.load_season(2021)

        fetch.assert_called_once_with(seasons=[2021])
        self.assertTrue(self.loader.cache_path(2021).exists())
        self.assertNotIn('extra_col', df.columns)
        self.assertEqual(len(df), len(self.pbp))

    def test_get_data_summary(self):
        """Test data summary generation."""
        self.loader.load_file(self.csv_file)
        summary = self.loader.get_data_summary()

        self.assertEqual(summary['total_plays'], len(self.pbp))
        self.assertEqual(summary['unique_teams'], 5)
        self.assertEqual(summary['weeks'], [1, 2, 3])
        self.assertIn('pass', summary['play_type_counts'])

    def test_summary_requires_data(self):
        with self.assertRaises(ValueError):
            self.loader.get_data_summary()


if __name__ == '__main__':
    unittest.main()
