"""
Unit tests for MLflow experiment setup and fit logging.
"""
import unittest
from unittest import mock
import tempfile
from pathlib import Path
import sys
import os

import mlflow
import pandas as pd

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from mlops import experiment_utils
from mlops.experiment_utils import resolve_tracking_uri, setup_mlflow_experiment
from mlops.tracking import fit_params, log_fit_run
from synthetic_data import make_fitted_model, make_modeling_table


class TestExperimentSetup(unittest.TestCase):
    """Tracking URI resolution and experiment creation."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.uri = (self.temp_dir / 'mlruns').as_uri()

    def test_file_uri_used_as_is(self):
        self.assertEqual(resolve_tracking_uri(self.uri), self.uri)

    def test_unreachable_server_falls_back(self):
        with mock.patch.object(experiment_utils, '_ping_tracking_server', return_value=False), \
             mock.patch.object(experiment_utils, '_fallback_uri', return_value=self.uri):
            self.assertEqual(resolve_tracking_uri('http://mlflow:5000'), self.uri)

    def test_setup_creates_experiment(self):
        exp_id = setup_mlflow_experiment('goal_line_test', self.uri)
        experiment = mlflow.get_experiment(exp_id)
        self.assertEqual(experiment.name, 'goal_line_test')


class TestLogFitRun(unittest.TestCase):
    """One fit logged end to end into a local file store."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.uri = (self.temp_dir / 'mlruns').as_uri()
        self.table = make_modeling_table(n=80)
        efficiency = self.table.groupby('posteam')['szn_epa'].first().to_dict()
        self.model = make_fitted_model(efficiency=efficiency, n_draws=200)

    def test_fit_params(self):
        params = fit_params(self.model, self.table)
        self.assertEqual(params['pooling'], 'partial')
        self.assertEqual(params['n_plays'], 80)
        self.assertEqual(params['n_teams'], 4)

    def test_log_fit_run(self):
        suite_dir = self.model.save(self.temp_dir / 'suite')
        run_id = log_fit_run(
            self.model, self.table,
            experiment_name='goal_line_test',
            tracking_uri=self.uri,
            suite_dir=str(suite_dir),
        )

        run = mlflow.get_run(run_id)
        self.assertEqual(run.data.params['pooling'], 'partial')
        self.assertEqual(run.data.tags['pooling'], 'partial')
        for key in ['auc_roc', 'log_loss', 'rhat_max', 'ess_min', 'n_divergent']:
            self.assertIn(key, run.data.metrics)

        artifacts = {a.path for a in mlflow.MlflowClient().list_artifacts(run_id)}
        self.assertIn('team_offsets.json', artifacts)
        self.assertIn('team_rush_epa.png', artifacts)
        self.assertIn('suite', artifacts)

    def test_log_fit_run_with_pooling_comparison(self):
        comparison = pd.DataFrame(
            {'auc_roc': [0.7, 0.68], 'log_loss': [0.62, 0.64]},
            index=['partial', 'complete'],
        )
        run_id = log_fit_run(
            self.model, self.table,
            experiment_name='goal_line_test',
            tracking_uri=self.uri,
            comparison=comparison,
        )

        artifacts = {a.path for a in mlflow.MlflowClient().list_artifacts(run_id)}
        self.assertIn('pooling_comparison.json', artifacts)
        self.assertNotIn('suite', artifacts)


if __name__ == '__main__':
    unittest.main()
