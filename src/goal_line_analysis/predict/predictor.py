"""
Posterior predictive pass probabilities for goal-to-go scenarios.

``predict`` is a pure function of a scenario and a fitted model handle, so a
dashboard can call it on every input change without shared state.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np
import pandas as pd
from scipy.special import expit

from goal_line_analysis.config import config
from goal_line_analysis.models.fitted import FittedGoalLineModel
from goal_line_analysis.utils.metrics import summarize_draws, complement


@dataclass(frozen=True)
class Scenario:
    """One play-call situation: offense, down and yards to the goal line."""

    team: str
    down: int
    distance: int

    def validate(self) -> "Scenario":
        if self.down not in config.DOWNS:
            raise ValueError(f"down must be one of {config.DOWNS}, got {self.down}")
        if not config.MIN_DISTANCE <= self.distance <= config.MAX_DISTANCE:
            raise ValueError(
                f"distance must be within [{config.MIN_DISTANCE}, {config.MAX_DISTANCE}], got {self.distance}"
            )
        return self


def predict(scenario: Scenario, model: FittedGoalLineModel) -> np.ndarray:
    """
    Draw the posterior predictive pass probability for ``scenario``.

    Returns
    -------
    ndarray of shape (n_samples,)
        Pass probabilities in percent.

    Raises
    ------
    UnknownTeamError
        If the team was not part of the training aggregate.
    """
    scenario.validate()
    team_idx = model.team_index(scenario.team)
    szn_epa = model.efficiency_for(scenario.team)
    eta = model.linear_predictor(
        np.array([team_idx]),
        np.array([scenario.down]),
        np.array([scenario.distance], dtype=float),
        np.array([szn_epa]),
    )
    return expit(eta[:, 0]) * 100


def predict_grid(
    model: FittedGoalLineModel,
    team: str,
    downs: Optional[Iterable[int]] = None,
    distances: Optional[Iterable[int]] = None,
    hdi_prob: Optional[float] = None,
) -> pd.DataFrame:
    """Pass/run summaries for every (down, distance) combination for one team."""
    downs = config.DOWNS if downs is None else downs
    if distances is None:
        distances = range(config.MIN_DISTANCE, config.MAX_DISTANCE + 1)

    rows = []
    for down in downs:
        for distance in distances:
            draws = predict(Scenario(team, int(down), int(distance)), model)
            pass_s = summarize_draws(draws, hdi_prob=hdi_prob)
            run_s = complement(pass_s)
            rows.append({
                "team": team,
                "down": int(down),
                "distance": int(distance),
                "pass_prob": pass_s.median,
                "pass_hdi_lower": pass_s.hdi_lower,
                "pass_hdi_upper": pass_s.hdi_upper,
                "run_prob": run_s.median,
                "run_hdi_lower": run_s.hdi_lower,
                "run_hdi_upper": run_s.hdi_upper,
                "se_prob": pass_s.mad,
            })
    return pd.DataFrame(rows)
