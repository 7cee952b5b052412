"""
Tests for the per-team HTML report and the shared plots.
"""
import datetime as dt

import numpy as np
import pandas as pd
import pytest
from matplotlib.figure import Figure

from goal_line_analysis.models.fitted import UnknownTeamError
from goal_line_analysis.plots import (
    plot_pass_curve,
    plot_predictive_histogram,
    plot_team_efficiency,
)
from goal_line_analysis.predict import predict_grid
from goal_line_analysis.report import render_team_report, report_filename, write_team_report
from synthetic_data import make_fitted_model


@pytest.fixture(scope="module")
def model():
    return make_fitted_model(n_draws=200)


def test_report_filename():
    assert report_filename("KC", dt.date(2021, 11, 3)) == "KC_Goal_Line_Report_2021-11-03.html"


def test_render_team_report(model):
    page = render_team_report(model, "CCC", distance=4)

    assert page.startswith("<!DOCTYPE html>")
    assert "CCC Goal-Line Play-Call Report" in page
    assert page.count("data:image/png;base64,") == 4     # pass curve + one histogram per down
    assert "rank 3 of 4" in page
    assert "weeks 1-17" in page
    for down in (1, 2, 3):
        assert f"Down {down}, 4 yards to go" in page


def test_render_unknown_team(model):
    with pytest.raises(UnknownTeamError):
        render_team_report(model, "ZZZ")


def test_write_team_report(model, tmp_path):
    path = write_team_report(model, "AAA", out_dir=tmp_path / "reports")

    assert path.exists()
    assert path.name == report_filename("AAA")
    assert "AAA" in path.read_text(encoding="utf-8")


class TestPlots:

    def test_histogram(self):
        draws = np.random.default_rng(0).beta(5, 5, 1000) * 100
        fig = plot_predictive_histogram(draws)
        assert isinstance(fig, Figure)
        # median plus both HDI bounds
        assert len(fig.axes[0].lines) == 3

    def test_pass_curve(self, model):
        grid = predict_grid(model, "AAA", distances=[1, 5, 10])
        fig = plot_pass_curve(grid)
        assert len(fig.axes[0].lines) == 3

    def test_team_efficiency(self):
        agg = pd.DataFrame({"posteam": ["AAA", "BBB", "CCC"], "szn_epa": [12.0, -3.0, 4.0]})
        fig = plot_team_efficiency(agg, highlight=["BBB"])
        assert isinstance(fig, Figure)
