"""
Tests for the fitted-model handle: persistence, diagnostics, team offsets.
"""
import time

import numpy as np
import pytest

from goal_line_analysis.models.fitted import (
    FittedGoalLineModel,
    UnknownTeamError,
    latest_suite_dir,
)
from goal_line_analysis.predict import Scenario, predict
from synthetic_data import make_fitted_model, make_modeling_table


@pytest.fixture(scope="module")
def model():
    return make_fitted_model(offsets=[0.5, 0.0, -0.2, 1.0])


class TestHandle:

    def test_mappings_are_read_only(self, model):
        with pytest.raises(TypeError):
            model.team_map["NEW"] = 9
        with pytest.raises(TypeError):
            model.team_efficiency["AAA"] = 0.0

    def test_frozen(self, model):
        with pytest.raises(AttributeError):
            model.pooling = "complete"

    def test_invalid_pooling(self, model):
        with pytest.raises(ValueError):
            FittedGoalLineModel(trace=model.trace, team_map={}, team_efficiency={}, pooling="none")

    def test_teams_in_index_order(self, model):
        assert model.teams == ["AAA", "BBB", "CCC", "NEG"]
        assert model.n_samples == 1000

    def test_unknown_team_lookups(self, model):
        with pytest.raises(UnknownTeamError):
            model.team_index("ZZZ")
        with pytest.raises(UnknownTeamError):
            model.efficiency_for("ZZZ")
        # UnknownTeamError is a KeyError
        with pytest.raises(KeyError):
            model.team_index("ZZZ")

    def test_predict_proba_on_table(self):
        table = make_modeling_table(n=50)
        efficiency = table.groupby("posteam")["szn_epa"].first().to_dict()
        m = make_fitted_model(efficiency=efficiency)

        probs = m.predict_proba(table)
        assert probs.index.equals(table.index)
        assert ((probs > 0) & (probs < 1)).all()

    def test_fourth_down_rows_rejected(self):
        table = make_modeling_table(n=20)
        efficiency = table.groupby("posteam")["szn_epa"].first().to_dict()
        m = make_fitted_model(efficiency=efficiency)
        table.loc[table.index[0], "down"] = 4

        with pytest.raises(ValueError):
            m.predict_proba(table)


class TestPersistence:

    def test_round_trip_predictions(self, model, tmp_path):
        model.save(tmp_path / "suite")
        reloaded = FittedGoalLineModel.load(tmp_path / "suite")

        assert reloaded.teams == model.teams
        assert dict(reloaded.team_efficiency) == dict(model.team_efficiency)
        assert reloaded.pooling == model.pooling
        assert reloaded.week_cutoff == 17
        for s in [Scenario("AAA", 1, 1), Scenario("NEG", 3, 15), Scenario("CCC", 2, 8)]:
            np.testing.assert_allclose(predict(s, reloaded), predict(s, model))

    def test_load_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            FittedGoalLineModel.load(tmp_path / "nothing_here")

    def test_latest_suite_dir(self, model, tmp_path):
        assert latest_suite_dir(tmp_path) is None
        model.save(tmp_path / f"goal_line_partial_{int(time.time()) - 10}")
        newest = model.save(tmp_path / f"goal_line_partial_{int(time.time())}")
        (tmp_path / "goal_line_partial_9999999999").mkdir()   # incomplete, ignored

        assert latest_suite_dir(tmp_path) == newest

    def test_latest_suite_dir_across_poolings(self, model, tmp_path):
        now = int(time.time())
        model.save(tmp_path / f"goal_line_partial_{now - 1000}")
        newest = make_fitted_model(pooling="complete").save(tmp_path / f"goal_line_complete_{now}")

        assert latest_suite_dir(tmp_path) == newest
        assert FittedGoalLineModel.load(latest_suite_dir(tmp_path)).pooling == "complete"

    def test_latest_suite_dir_missing_root(self, tmp_path):
        assert latest_suite_dir(tmp_path / "absent") is None


class TestDiagnostics:

    def test_keys(self, model):
        diag = model.diagnostics(return_scalars=True)
        for key in ["rhat", "ess", "n_divergent", "summary_ok", "rhat_max", "ess_min"]:
            assert key in diag
        assert diag["n_divergent"] == 0
        assert "u" not in diag["rhat"].data_vars

    def test_independent_draws_converge(self, model):
        diag = model.diagnostics(return_scalars=True)
        assert diag["rhat_max"] < 1.05
        assert diag["ess_min"] > 100

    def test_team_offsets(self, model):
        offsets = model.team_offsets()

        assert list(offsets.columns) == ["posteam", "offset_mean", "hdi_lower", "hdi_upper", "szn_epa"]
        assert offsets["posteam"].iloc[0] == "NEG"
        assert offsets["offset_mean"].iloc[0] == pytest.approx(1.0, abs=0.02)
        assert (offsets["hdi_lower"] <= offsets["offset_mean"]).all()
        assert (offsets["offset_mean"] <= offsets["hdi_upper"]).all()

    def test_complete_pooling_has_no_offsets(self):
        complete = make_fitted_model(pooling="complete")
        with pytest.raises(RuntimeError):
            complete.team_offsets()
