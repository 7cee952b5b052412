"""
Bayesian models for goal-to-go play-call analysis.
Provides a hierarchical (partial-pooling) logistic regression of pass vs run
on field position, down, their interaction and team rushing efficiency,
with a random intercept per offense, fitted with PyMC.
"""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
import pandas as pd
import pymc as pm
from arviz.data.inference_data import InferenceData

from goal_line_analysis.config import config
from goal_line_analysis.data.team_efficiency import EFFICIENCY_COLUMN
from goal_line_analysis.models.fitted import (
    FittedGoalLineModel,
    POOLING_COMPLETE,
    POOLING_PARTIAL,
)

__all__ = [
    "GoalLineModelSuite",
]

logger = logging.getLogger(__name__)

DOWN_LEVELS = [2, 3]   # non-reference downs; down 1 is the baseline


def _moments(x: np.ndarray) -> Tuple[float, float]:
    mu = float(x.mean())
    sigma = float(x.std())
    return mu, (sigma if sigma > 0 else 1.0)


def down_dummies(down: np.ndarray) -> np.ndarray:
    """Treatment-coded indicator columns for downs 2 and 3."""
    down = np.asarray(down, dtype=int)
    return np.column_stack([(down == lvl).astype(float) for lvl in DOWN_LEVELS])


class GoalLineModelSuite:
    """Hierarchical Bayesian logistic regression for goal-to-go pass calls."""

    def __init__(
        self,
        *,
        draws: Optional[int] = None,
        tune: Optional[int] = None,
        chains: Optional[int] = None,
        target_accept: Optional[float] = None,
        pooling: str = POOLING_PARTIAL,
        random_seed: Optional[int] = None,
        progressbar: bool = True,
    ) -> None:
        if pooling not in (POOLING_PARTIAL, POOLING_COMPLETE):
            raise ValueError(f"pooling must be '{POOLING_PARTIAL}' or '{POOLING_COMPLETE}', got '{pooling}'")

        self.draws = config.BAYESIAN_MCMC_SAMPLES if draws is None else draws
        self.tune = config.BAYESIAN_TUNE if tune is None else tune
        self.chains = config.BAYESIAN_CHAINS if chains is None else chains
        self.target_accept = config.BAYESIAN_TARGET_ACCEPT if target_accept is None else target_accept
        self.pooling = pooling
        self.random_seed = config.RANDOM_SEED if random_seed is None else random_seed
        self.progressbar = progressbar

        # Set during fit()
        self._model: Optional[pm.Model] = None
        self.fitted_: Optional[FittedGoalLineModel] = None

    def sampler_settings(self) -> dict:
        return {
            "draws": self.draws,
            "tune": self.tune,
            "chains": self.chains,
            "target_accept": self.target_accept,
            "random_seed": self.random_seed,
        }

    # ---------------------------------------------------------------------
    # Model construction
    # ---------------------------------------------------------------------
    def _build_model(
        self,
        yard_std: np.ndarray,
        downs: np.ndarray,
        epa_std: np.ndarray,
        passed: np.ndarray,
        team_idx: np.ndarray,
        teams: list[str],
    ) -> pm.Model:
        sd = config.FIXED_EFFECT_PRIOR_SD
        coords = {"down_level": DOWN_LEVELS, "team": teams}
        with pm.Model(coords=coords) as model:
            d = down_dummies(downs)

            # Population-level effects
            alpha = pm.Normal("alpha", 0.0, sd)
            beta_yard = pm.Normal("beta_yard", 0.0, sd)
            beta_down = pm.Normal("beta_down", 0.0, sd, dims="down_level")
            beta_yard_down = pm.Normal("beta_yard_down", 0.0, sd, dims="down_level")
            beta_epa = pm.Normal("beta_epa", 0.0, sd)

            lin_pred = (
                alpha
                + beta_yard * yard_std
                + pm.math.dot(d, beta_down)
                + pm.math.dot(d, beta_yard_down) * yard_std
                + beta_epa * epa_std
            )

            if self.pooling == POOLING_PARTIAL:
                # Per-team random intercepts (non-centered)
                sigma_team = pm.HalfNormal("sigma_team", config.TEAM_SIGMA_PRIOR_SD)
                u_raw = pm.Normal("u_raw", 0.0, 1.0, dims="team")
                u = pm.Deterministic("u", sigma_team * u_raw, dims="team")
                lin_pred = lin_pred + u[team_idx]

            pm.Bernoulli("obs", logit_p=lin_pred, observed=passed)
        return model

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def fit(self, table: pd.DataFrame) -> FittedGoalLineModel:
        """
        Sample the posterior for a modeling table.

        Plays whose team has no rushing EPA are dropped first. The sampler
        runs a fixed number of iterations; convergence is reported by
        :py:meth:`FittedGoalLineModel.diagnostics`, not enforced here.
        """
        required = {"posteam", "down", "yardline_100", "pass", EFFICIENCY_COLUMN}
        missing = required - set(table.columns)
        if missing:
            raise ValueError(f"Modeling table is missing columns: {sorted(missing)}")

        data = table.dropna(subset=[EFFICIENCY_COLUMN])
        n_dropped = len(table) - len(data)
        if n_dropped:
            logger.warning("Dropping %d plays without team rushing EPA", n_dropped)
        if data.empty:
            raise ValueError("No plays left to fit after dropping missing rushing EPA")
        bad_downs = sorted(set(data["down"].astype(int)) - set(config.DOWNS))
        if bad_downs:
            raise ValueError(f"Downs {bad_downs} have no model level; expected {config.DOWNS}")

        yard = data["yardline_100"].to_numpy(float)
        epa = data[EFFICIENCY_COLUMN].to_numpy(float)
        yard_mu, yard_sigma = _moments(yard)
        epa_mu, epa_sigma = _moments(epa)

        teams = sorted(data["posteam"].astype(str).unique())
        team_map = {t: i for i, t in enumerate(teams)}
        team_idx = data["posteam"].astype(str).map(team_map).to_numpy(int)
        team_efficiency = (
            data.groupby("posteam")[EFFICIENCY_COLUMN].first().astype(float).to_dict()
        )

        logger.info(
            "Fitting %s-pooling model on %d plays across %d teams",
            self.pooling, len(data), len(teams),
        )
        self._model = self._build_model(
            (yard - yard_mu) / yard_sigma,
            data["down"].to_numpy(int),
            (epa - epa_mu) / epa_sigma,
            data["pass"].to_numpy(int),
            team_idx,
            teams,
        )

        start = time.time()
        with self._model:
            trace: InferenceData = pm.sample(
                draws=self.draws,
                tune=self.tune,
                chains=self.chains,
                target_accept=self.target_accept,
                random_seed=self.random_seed,
                progressbar=self.progressbar,
                return_inferencedata=True,
            )
        logger.info("Sampling complete in %.1fs", time.time() - start)

        self.fitted_ = FittedGoalLineModel(
            trace=trace,
            team_map=team_map,
            team_efficiency={str(k): v for k, v in team_efficiency.items()},
            yard_mu=yard_mu,
            yard_sigma=yard_sigma,
            epa_mu=epa_mu,
            epa_sigma=epa_sigma,
            pooling=self.pooling,
            week_cutoff=table.attrs.get("week_cutoff"),
            sampler=self.sampler_settings(),
        )
        return self.fitted_

    def save_suite(self, dirpath: Path | str | None = None) -> Path:
        """Persist the last fit; defaults to a timestamped folder under MODEL_DIR."""
        if self.fitted_ is None:
            raise RuntimeError("Model not yet fitted.")
        if dirpath is None:
            dirpath = config.MODEL_DIR / f"goal_line_{self.pooling}_{int(time.time())}"
        return self.fitted_.save(dirpath)
