"""
End-to-end pipeline from a local play-by-play export.
"""
import pytest

from goal_line_analysis.pipeline import (
    build_modeling_table,
    compare_poolings,
    load_or_fit,
    run_pipeline,
)
from synthetic_data import make_fitted_model, make_modeling_table, make_pbp


@pytest.fixture
def pbp_file(tmp_path):
    fp = tmp_path / "pbp.csv"
    make_pbp().to_csv(fp, index=False)
    return fp


def test_build_modeling_table(pbp_file):
    table, aggregate = build_modeling_table(week_cutoff=10, pbp_file=pbp_file)

    assert (table["week"] <= 10).all()
    assert table["szn_epa"].notna().any()
    assert set(aggregate["posteam"]) == {"AAA", "BBB", "CCC", "DDD"}


def test_run_pipeline(pbp_file):
    result = run_pipeline(
        week_cutoff=17, pbp_file=pbp_file, pooling="complete",
        draws=100, tune=100, chains=1, save=False,
    )

    assert result.suite_dir is None
    assert result.run_id is None
    assert result.model.week_cutoff == 17
    # the pass-only offense has no rushing EPA and is left out of the fit
    assert "EEE" not in result.model.teams
    assert isinstance(result.diagnostics_ok, bool)


def test_load_or_fit_reuses_saved_suite(tmp_path):
    saved = make_fitted_model().save(tmp_path / "suite")
    model = load_or_fit(saved)
    assert model.teams == ["AAA", "BBB", "CCC", "NEG"]


def test_compare_poolings_orders_by_log_loss():
    table = make_modeling_table(n=120)
    efficiency = table.groupby("posteam")["szn_epa"].first().to_dict()
    models = {
        "partial": make_fitted_model(efficiency=efficiency, offsets=[3.0, -3.0, 3.0, -3.0]),
        "complete": make_fitted_model(efficiency=efficiency, pooling="complete"),
    }

    comparison = compare_poolings(table, models)

    assert set(comparison.index) == {"partial", "complete"}
    assert comparison["log_loss"].is_monotonic_increasing
    assert comparison["auc_roc"].notna().all()


def test_run_pipeline_with_pooling_comparison(pbp_file):
    result = run_pipeline(
        week_cutoff=17, pbp_file=pbp_file, pooling="partial",
        draws=100, tune=100, chains=1, save=False, compare=True,
    )

    assert result.model.pooling == "partial"
    assert set(result.comparison.index) == {"partial", "complete"}
    assert list(result.comparison.columns) == ["auc_roc", "auc_pr", "log_loss", "brier", "ece", "accuracy"]
