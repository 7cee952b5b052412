"""
Log goal-line model fits to MLflow: sampler settings, convergence
diagnostics, in-sample metrics and the team offset table.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import matplotlib.pyplot as plt
import mlflow
import pandas as pd
from matplotlib.figure import Figure

from goal_line_analysis.models.fitted import FittedGoalLineModel, POOLING_PARTIAL
from goal_line_analysis.plots import plot_team_efficiency
from goal_line_analysis.utils.metrics import evaluate_in_sample

from .config import MODEL_FAMILY
from .experiment_utils import setup_mlflow_experiment

logger = logging.getLogger(__name__)


def _log_fig(fig: Figure, name: str) -> None:
    """Log a Matplotlib figure directly without temp files."""
    mlflow.log_figure(fig, artifact_file=name)
    plt.close(fig)


def fit_params(model: FittedGoalLineModel, table: pd.DataFrame) -> Dict[str, Any]:
    params: Dict[str, Any] = dict(model.sampler)
    params.update({
        "pooling": model.pooling,
        "week_cutoff": model.week_cutoff,
        "n_plays": len(table),
        "n_teams": len(model.team_map),
    })
    return params


def log_fit_run(
    model: FittedGoalLineModel,
    table: pd.DataFrame,
    *,
    run_name: Optional[str] = None,
    experiment_name: Optional[str] = None,
    tracking_uri: Optional[str] = None,
    suite_dir: Optional[str] = None,
    comparison: Optional[pd.DataFrame] = None,
) -> str:
    """
    Record one fit as an MLflow run and return its run id.

    Diagnostics are logged as ``rhat_max`` / ``ess_min`` / ``n_divergent``
    so runs can be filtered for convergence in the MLflow UI.
    """
    setup_mlflow_experiment(experiment_name, tracking_uri)
    diag = model.diagnostics(return_scalars=True)
    metrics, _ = evaluate_in_sample(model, table)

    with mlflow.start_run(run_name=run_name or f"goal_line_{model.pooling}") as run:
        mlflow.set_tags({"model_family": MODEL_FAMILY, "pooling": model.pooling})
        mlflow.log_params(fit_params(model, table))
        mlflow.log_metrics({
            **metrics,
            "rhat_max": diag["rhat_max"],
            "ess_min": diag["ess_min"],
            "n_divergent": float(diag["n_divergent"]),
            "summary_ok": float(diag["summary_ok"]),
        })
        if model.pooling == POOLING_PARTIAL:
            mlflow.log_table(model.team_offsets(), artifact_file="team_offsets.json")
        aggregate = pd.DataFrame(
            list(model.team_efficiency.items()), columns=["posteam", "szn_epa"]
        )
        _log_fig(plot_team_efficiency(aggregate), "team_rush_epa.png")
        if comparison is not None:
            mlflow.log_table(
                comparison.rename_axis("pooling").reset_index(),
                artifact_file="pooling_comparison.json",
            )
        if suite_dir is not None:
            mlflow.log_artifacts(str(suite_dir), artifact_path="suite")
        run_id = run.info.run_id

    logger.info("Logged fit to MLflow run %s", run_id)
    return run_id
