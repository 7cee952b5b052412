"""
Immutable handle around a fitted goal-line model.

Holds the ArviZ posterior together with everything needed to score new
scenarios: the team index, each team's training-time rushing EPA, and the
moments used to standardize the numeric predictors.
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, cast

import arviz as az
import numpy as np
import pandas as pd
import xarray as xr
from arviz.data.inference_data import InferenceData
from scipy.special import expit

from goal_line_analysis.config import config

logger = logging.getLogger(__name__)

SUITE_VERSION = "1.0.0"

POOLING_PARTIAL = "partial"
POOLING_COMPLETE = "complete"


class UnknownTeamError(KeyError):
    """Raised when a team is absent from the model's training aggregate."""


@dataclass(frozen=True, eq=False)
class FittedGoalLineModel:
    """Posterior draws plus the lookups needed for out-of-sample prediction."""

    trace: InferenceData
    team_map: Mapping[str, int]
    team_efficiency: Mapping[str, float]
    yard_mu: float = 0.0
    yard_sigma: float = 1.0
    epa_mu: float = 0.0
    epa_sigma: float = 1.0
    pooling: str = POOLING_PARTIAL
    week_cutoff: Optional[int] = None
    sampler: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.pooling not in (POOLING_PARTIAL, POOLING_COMPLETE):
            raise ValueError(f"Unknown pooling '{self.pooling}'")
        if not hasattr(self.trace, "posterior"):
            raise RuntimeError("InferenceData object has no posterior group")
        # read-only views so the handle can be shared between sessions
        object.__setattr__(self, "team_map", MappingProxyType(dict(self.team_map)))
        object.__setattr__(self, "team_efficiency", MappingProxyType(dict(self.team_efficiency)))
        object.__setattr__(self, "sampler", MappingProxyType(dict(self.sampler)))

    # ------------------------------------------------------------------
    # Posterior access
    # ------------------------------------------------------------------
    @property
    def teams(self) -> list[str]:
        return sorted(self.team_map, key=self.team_map.__getitem__)

    @property
    def n_samples(self) -> int:
        posterior = getattr(self.trace, "posterior")
        return int(posterior.sizes["chain"] * posterior.sizes["draw"])

    def _flat(self, var_name: str) -> np.ndarray:
        """Posterior samples of ``var_name`` with chain and draw collapsed."""
        posterior = getattr(self.trace, "posterior")
        if var_name not in posterior:
            raise KeyError(f"Variable {var_name} not found in posterior")
        da = cast(xr.DataArray, posterior[var_name])
        stacked = da.stack(sample=("chain", "draw")).transpose("sample", ...)
        values = np.asarray(stacked.values)
        if da.ndim == 2:
            return values.reshape(self.n_samples)
        return values.reshape(self.n_samples, -1)

    def team_index(self, team: str) -> int:
        try:
            return self.team_map[team]
        except KeyError:
            raise UnknownTeamError(f"Team '{team}' is not in the training data") from None

    def efficiency_for(self, team: str) -> float:
        """Training-time rushing EPA for ``team``."""
        if team not in self.team_efficiency:
            raise UnknownTeamError(f"No rushing efficiency recorded for team '{team}'")
        return float(self.team_efficiency[team])

    def linear_predictor(
        self,
        team_idx: np.ndarray,
        down: np.ndarray,
        yardline: np.ndarray,
        szn_epa: np.ndarray,
    ) -> np.ndarray:
        """
        Log-odds of a pass for every posterior sample and every row.

        Returns
        -------
        ndarray of shape (n_samples, n_rows)
        """
        team_idx = np.asarray(team_idx, dtype=int)
        down = np.asarray(down, dtype=int)
        if not np.isin(down, config.DOWNS).all():
            raise ValueError(f"down must be one of {config.DOWNS}")
        yard_std = (np.asarray(yardline, dtype=float) - self.yard_mu) / self.yard_sigma
        epa_std = (np.asarray(szn_epa, dtype=float) - self.epa_mu) / self.epa_sigma

        alpha = self._flat("alpha")[:, None]
        beta_yard = self._flat("beta_yard")[:, None]
        beta_epa = self._flat("beta_epa")[:, None]
        beta_down = self._flat("beta_down")
        beta_yard_down = self._flat("beta_yard_down")

        # down 1 is the reference level
        pad = np.zeros((self.n_samples, 1))
        down_eff = np.hstack([pad, beta_down])[:, down - 1]
        yard_down_eff = np.hstack([pad, beta_yard_down])[:, down - 1]

        eta = (
            alpha
            + beta_yard * yard_std
            + down_eff
            + yard_down_eff * yard_std
            + beta_epa * epa_std
        )
        if self.pooling == POOLING_PARTIAL:
            eta = eta + self._flat("u")[:, team_idx]
        return eta

    def predict_proba(self, table: pd.DataFrame) -> pd.Series:
        """Posterior mean pass probability (0-1) for each row of a modeling table."""
        team_idx = np.array([self.team_index(t) for t in table["posteam"]], dtype=int)
        eta = self.linear_predictor(
            team_idx,
            table["down"].to_numpy(int),
            table["yardline_100"].to_numpy(float),
            table["szn_epa"].to_numpy(float),
        )
        return pd.Series(expit(eta).mean(axis=0), index=table.index, name="pass_prob")

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------
    def diagnostics(self, *, return_scalars: bool = False) -> Dict[str, Any]:
        """
        Compute MCMC diagnostics.

        Nothing here blocks prediction; a warning is logged when R-hat or
        ESS fall outside ``config.RHAT_THRESHOLD`` / ``config.ESS_THRESHOLD``.
        """
        var_names = [v for v in self.trace.posterior.data_vars if v != "u"]
        rhats = cast(xr.Dataset, az.rhat(self.trace, var_names=var_names))
        ess = cast(xr.Dataset, az.ess(self.trace, var_names=var_names))

        rhat_vals = rhats.to_array().values.ravel()
        ess_vals = ess.to_array().values.ravel()

        n_divergent = 0
        if hasattr(self.trace, "sample_stats") and "diverging" in self.trace.sample_stats:
            n_divergent = int(self.trace.sample_stats["diverging"].values.sum())

        summary_ok = bool(
            (rhat_vals <= config.RHAT_THRESHOLD).all()
            and (ess_vals >= config.ESS_THRESHOLD).all()
        )
        if not summary_ok:
            logger.warning("Sampling diagnostics outside recommended thresholds")
        if n_divergent:
            logger.warning("%d divergent transitions after tuning", n_divergent)

        out: Dict[str, Any] = {
            "rhat": rhats,
            "ess": ess,
            "rhat_vals": rhat_vals,
            "ess_vals": ess_vals,
            "n_divergent": n_divergent,
            "summary_ok": summary_ok,
        }
        if return_scalars:
            out["rhat_max"] = float(np.nanmax(rhat_vals))
            out["ess_min"] = float(np.nanmin(ess_vals))
        return out

    def team_offsets(self, hdi_prob: float | None = None) -> pd.DataFrame:
        """Posterior mean and HDI of each team's intercept offset (log-odds)."""
        if self.pooling != POOLING_PARTIAL:
            raise RuntimeError("Complete-pooling models have no team offsets")
        hdi_prob = config.HDI_PROB if hdi_prob is None else hdi_prob
        u = self._flat("u")
        rows = []
        for team in self.teams:
            col = u[:, self.team_map[team]]
            lower, upper = az.hdi(col, hdi_prob=hdi_prob)
            rows.append({
                "posteam": team,
                "offset_mean": float(col.mean()),
                "hdi_lower": float(lower),
                "hdi_upper": float(upper),
                "szn_epa": self.team_efficiency.get(team, np.nan),
            })
        return pd.DataFrame(rows).sort_values("offset_mean", ascending=False).reset_index(drop=True)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def save(self, dirpath: Path | str) -> Path:
        """
        Persist the handle as ``trace.nc`` plus a ``meta.json`` side-car.

        Reloading with :py:meth:`load` yields identical predictions.
        """
        dirpath = Path(dirpath)
        dirpath.mkdir(parents=True, exist_ok=True)
        self.trace.to_netcdf(str(dirpath / "trace.nc"))

        meta = {
            "version": SUITE_VERSION,
            "saved_at": time.time(),
            "pooling": self.pooling,
            "week_cutoff": self.week_cutoff,
            "team_map": dict(self.team_map),
            "team_efficiency": dict(self.team_efficiency),
            "yard_mu": self.yard_mu,
            "yard_sigma": self.yard_sigma,
            "epa_mu": self.epa_mu,
            "epa_sigma": self.epa_sigma,
            "sampler": dict(self.sampler),
        }
        with open(dirpath / "meta.json", "w", encoding="utf-8") as f:
            json.dump(meta, f, indent=2)
        logger.info("Suite saved to %s", dirpath)
        return dirpath

    @classmethod
    def load(cls, dirpath: Path | str) -> "FittedGoalLineModel":
        """Reload a handle written by :py:meth:`save`."""
        dirpath = Path(dirpath)
        if not (dirpath / "meta.json").exists() or not (dirpath / "trace.nc").exists():
            raise FileNotFoundError(f"No saved suite at {dirpath}")

        with open(dirpath / "meta.json", "r", encoding="utf-8") as f:
            meta = json.load(f)

        trace = az.from_netcdf(str(dirpath / "trace.nc"))
        model = cls(
            trace=trace,
            team_map={str(k): int(v) for k, v in meta["team_map"].items()},
            team_efficiency={str(k): float(v) for k, v in meta["team_efficiency"].items()},
            yard_mu=float(meta["yard_mu"]),
            yard_sigma=float(meta["yard_sigma"]),
            epa_mu=float(meta["epa_mu"]),
            epa_sigma=float(meta["epa_sigma"]),
            pooling=meta.get("pooling", POOLING_PARTIAL),
            week_cutoff=meta.get("week_cutoff"),
            sampler=meta.get("sampler", {}),
        )
        logger.info("Suite loaded from %s: %d teams, %d draws", dirpath, len(model.team_map), model.n_samples)
        return model


def latest_suite_dir(root: Path | str | None = None) -> Path | None:
    """
    Most recently saved suite under ``root`` (defaults to ``config.MODEL_DIR``),
    whatever its pooling. Ordered by the ``saved_at`` stamp in ``meta.json``,
    or the side-car's mtime for suites written without one.
    """
    root = Path(root) if root is not None else config.MODEL_DIR
    if not root.exists():
        return None
    suite_dirs = [
        d for d in root.iterdir()
        if d.is_dir() and (d / "meta.json").exists() and (d / "trace.nc").exists()
    ]
    if not suite_dirs:
        return None
    return max(suite_dirs, key=_saved_at)


def _saved_at(suite_dir: Path) -> float:
    meta_path = suite_dir / "meta.json"
    with open(meta_path, "r", encoding="utf-8") as f:
        meta = json.load(f)
    return float(meta.get("saved_at", meta_path.stat().st_mtime))
