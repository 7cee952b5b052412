"""
Metrics utilities for goal-line analysis.

Posterior summaries for predictive draws (median, MAD, HDI) and
classification metrics for in-sample checks of a fitted model.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import arviz as az
import numpy as np
import pandas as pd
from scipy import stats
from sklearn.calibration import calibration_curve
from sklearn.metrics import (
    accuracy_score,
    average_precision_score,     # AUC-PR
    brier_score_loss,
    log_loss,
    roc_auc_score,
)

from goal_line_analysis.config import config


@dataclass(frozen=True)
class PosteriorSummary:
    """Point estimate, spread and credible interval of a draw set (percent scale)."""

    median: float
    mad: float
    hdi_lower: float
    hdi_upper: float
    hdi_prob: float = 0.95

    def hdi_label(self, decimals: int = 1) -> str:
        return f"[{round(self.hdi_lower, decimals)}, {round(self.hdi_upper, decimals)}]"


def summarize_draws(draws: np.ndarray, hdi_prob: Optional[float] = None) -> PosteriorSummary:
    """
    Summarize posterior predictive draws.

    The MAD is scaled to be consistent with the normal standard deviation,
    so it reads as a robust standard error.
    """
    hdi_prob = config.HDI_PROB if hdi_prob is None else hdi_prob
    draws = np.asarray(draws, dtype=float).ravel()
    if draws.size == 0:
        raise ValueError("Cannot summarize an empty draw set")

    lower, upper = az.hdi(draws, hdi_prob=hdi_prob)
    median = float(np.median(draws))
    return PosteriorSummary(
        median=median,
        mad=float(stats.median_abs_deviation(draws, scale="normal")),
        # multimodal draw sets can put the median outside the HDI
        hdi_lower=min(float(lower), median),
        hdi_upper=max(float(upper), median),
        hdi_prob=hdi_prob,
    )


def complement(summary: PosteriorSummary, total: float = 100.0) -> PosteriorSummary:
    """Summary of ``total - x`` given the summary of ``x`` (pass -> run)."""
    return PosteriorSummary(
        median=total - summary.median,
        mad=summary.mad,
        hdi_lower=total - summary.hdi_upper,
        hdi_upper=total - summary.hdi_lower,
        hdi_prob=summary.hdi_prob,
    )


def summary_table(draws: np.ndarray, hdi_prob: Optional[float] = None, decimals: int = 1) -> pd.DataFrame:
    """One-row table grouped into Pass and Run columns, plus the SE (MAD)."""
    pass_s = summarize_draws(draws, hdi_prob=hdi_prob)
    run_s = complement(pass_s)
    label = f"{int(round(pass_s.hdi_prob * 100))}% HDI"
    columns = pd.MultiIndex.from_tuples([
        ("Pass", "Probability"),
        ("Pass", label),
        ("Run", "Probability"),
        ("Run", label),
        ("", "SE"),
    ])
    row = [
        round(pass_s.median, decimals),
        pass_s.hdi_label(decimals),
        round(run_s.median, decimals),
        run_s.hdi_label(decimals),
        round(pass_s.mad, decimals),
    ]
    return pd.DataFrame([row], columns=columns)


class ModelEvaluator:
    """Compute discrimination & calibration metrics for pass probabilities."""

    @staticmethod
    def calculate_auc(y, p) -> float:
        return float(roc_auc_score(y, p))

    @staticmethod
    def calculate_auc_pr(y, p) -> float:
        return float(average_precision_score(y, p))

    @staticmethod
    def calculate_log_loss(y, p) -> float:
        return float(log_loss(y, p, labels=[0, 1]))

    @staticmethod
    def calculate_brier_score(y, p) -> float:
        return float(brier_score_loss(y, p))

    @staticmethod
    def calculate_ece(y, p, n_bins: int = 10) -> float:
        """
        Expected calibration error over equally spaced probability bins.

        ``calibration_curve`` drops empty bins, so the histogram weights are
        masked the same way before the weighted gap is taken.
        """
        p = np.asarray(p, dtype=float)
        prob_true, prob_pred = calibration_curve(y, p, n_bins=n_bins, strategy="uniform")

        bin_counts, _ = np.histogram(p, bins=n_bins, range=(0, 1))
        bin_counts = bin_counts[bin_counts > 0]
        if len(bin_counts) != len(prob_true):
            raise ValueError("Length mismatch between calibration bins and histogram weights")

        weights = bin_counts / bin_counts.sum()
        return float(np.sum(np.abs(np.asarray(prob_true) - np.asarray(prob_pred)) * weights))

    def calculate_classification_metrics(self, y_true, y_pred_proba) -> Dict[str, float]:
        """Return a full metric dictionary."""
        y_true = np.asarray(y_true, dtype=int)
        y_pred_proba = np.asarray(y_pred_proba, dtype=float)
        return {
            "auc_roc": self.calculate_auc(y_true, y_pred_proba),
            "auc_pr": self.calculate_auc_pr(y_true, y_pred_proba),
            "log_loss": self.calculate_log_loss(y_true, y_pred_proba),
            "brier": self.calculate_brier_score(y_true, y_pred_proba),
            "ece": self.calculate_ece(y_true, y_pred_proba),
            "accuracy": float(accuracy_score(y_true, (y_pred_proba >= 0.5).astype(int))),
        }

    def compare_models(self, results: Dict[str, Dict[str, float]]) -> pd.DataFrame:
        """
        Turn {model: metric_dict} into a tidy table ordered by log-loss.
        """
        df = pd.DataFrame(results).T
        desired_cols: List[str] = ["auc_roc", "auc_pr", "log_loss", "brier", "ece", "accuracy"]
        for c in desired_cols:
            if c not in df.columns:
                df[c] = np.nan
        return df[desired_cols].sort_values("log_loss")


def evaluate_in_sample(model, table: pd.DataFrame) -> Tuple[Dict[str, float], pd.Series]:
    """Metrics of a fitted model on its own modeling table (rows with rushing EPA)."""
    data = table.dropna(subset=["szn_epa"])
    probs = model.predict_proba(data)
    return ModelEvaluator().calculate_classification_metrics(data["pass"], probs), probs
