"""
End-to-end pipeline: load a season, build the goal-to-go table, fit the
hierarchical model, check diagnostics, persist the suite and optionally
track the run in MLflow.
"""
from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pandas as pd

from goal_line_analysis.config import config
from goal_line_analysis.data.loader import PlayByPlayLoader
from goal_line_analysis.data.preprocessor import GoalLinePreprocessor
from goal_line_analysis.data.team_efficiency import rank_teams
from goal_line_analysis.models.fitted import FittedGoalLineModel, latest_suite_dir
from goal_line_analysis.models.hierarchical import GoalLineModelSuite
from goal_line_analysis.utils.metrics import ModelEvaluator, evaluate_in_sample

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    model: FittedGoalLineModel
    table: pd.DataFrame
    team_efficiency: pd.DataFrame
    suite_dir: Optional[Path]
    diagnostics_ok: bool
    run_id: Optional[str] = None
    comparison: Optional[pd.DataFrame] = None


def build_modeling_table(
    season: Optional[int] = None,
    week_cutoff: Optional[int] = None,
    pbp_file: Optional[Path | str] = None,
    *,
    save: bool = False,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Load play-by-play (provider or local file) and return (table, aggregate)."""
    loader = PlayByPlayLoader()
    pbp = loader.load_file(pbp_file) if pbp_file is not None else loader.load_season(season)

    pre = GoalLinePreprocessor()
    pre.update_config(week_cutoff=week_cutoff)
    table = pre.preprocess_complete(pbp)
    assert pre.team_efficiency is not None
    if save:
        pre.save()
    return table, pre.team_efficiency


def compare_poolings(table: pd.DataFrame, models: dict[str, FittedGoalLineModel]) -> pd.DataFrame:
    """In-sample metrics per fitted model, best log-loss first."""
    results = {name: evaluate_in_sample(m, table)[0] for name, m in models.items()}
    return ModelEvaluator().compare_models(results)


def run_pipeline(
    season: Optional[int] = None,
    week_cutoff: Optional[int] = None,
    *,
    pbp_file: Optional[Path | str] = None,
    pooling: str = "partial",
    draws: Optional[int] = None,
    tune: Optional[int] = None,
    chains: Optional[int] = None,
    suite_dir: Optional[Path | str] = None,
    save: bool = True,
    track: bool = False,
    compare: bool = False,
) -> PipelineResult:
    """Fit a goal-line model from scratch and return everything the app needs."""
    table, aggregate = build_modeling_table(season, week_cutoff, pbp_file, save=save)

    top, bottom = rank_teams(aggregate)
    logger.info("Best rushing offenses: %s", ", ".join(top["posteam"]))
    logger.info("Worst rushing offenses: %s", ", ".join(bottom["posteam"]))

    suite = GoalLineModelSuite(draws=draws, tune=tune, chains=chains, pooling=pooling)
    model = suite.fit(table)
    diag = model.diagnostics(return_scalars=True)
    logger.info(
        "Diagnostics: rhat_max=%.3f ess_min=%.0f divergent=%d",
        diag["rhat_max"], diag["ess_min"], diag["n_divergent"],
    )

    saved: Optional[Path] = None
    if save:
        saved = suite.save_suite(suite_dir)

    comparison = None
    if compare:
        other = "complete" if pooling == "partial" else "partial"
        rival = GoalLineModelSuite(draws=draws, tune=tune, chains=chains, pooling=other).fit(table)
        comparison = compare_poolings(table, {pooling: model, other: rival})
        logger.info("Pooling comparison (in-sample):\n%s", comparison.round(4).to_string())

    run_id = None
    if track:
        from mlops.tracking import log_fit_run
        run_id = log_fit_run(
            model, table, suite_dir=str(saved) if saved else None, comparison=comparison
        )

    return PipelineResult(
        model=model,
        table=table,
        team_efficiency=aggregate,
        suite_dir=saved,
        diagnostics_ok=bool(diag["summary_ok"]),
        run_id=run_id,
        comparison=comparison,
    )


def load_or_fit(suite_dir: Optional[Path | str] = None, **kwargs) -> FittedGoalLineModel:
    """Reuse the newest saved suite when present, otherwise fit one."""
    path = Path(suite_dir) if suite_dir is not None else latest_suite_dir()
    if path is not None and path.exists():
        return FittedGoalLineModel.load(path)
    logger.info("No saved suite found; fitting a new model")
    return run_pipeline(**kwargs).model


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Fit the goal-to-go pass probability model")
    parser.add_argument("--season", type=int, default=config.SEASON)
    parser.add_argument("--week-cutoff", type=int, default=config.WEEK_CUTOFF)
    parser.add_argument("--pbp-file", type=Path, default=None)
    parser.add_argument("--pooling", choices=["partial", "complete"], default="partial")
    parser.add_argument("--draws", type=int, default=None)
    parser.add_argument("--tune", type=int, default=None)
    parser.add_argument("--chains", type=int, default=None)
    parser.add_argument("--track", action="store_true", help="Log the fit to MLflow")
    parser.add_argument("--compare", action="store_true",
                        help="Also fit the other pooling and compare in-sample metrics")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s │ %(levelname)s │ %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    config.ensure_directories()
    result = run_pipeline(
        args.season,
        args.week_cutoff,
        pbp_file=args.pbp_file,
        pooling=args.pooling,
        draws=args.draws,
        tune=args.tune,
        chains=args.chains,
        track=args.track,
        compare=args.compare,
    )
    print(f"✅ Suite saved at {result.suite_dir}")
    if result.comparison is not None:
        print(result.comparison.round(4).to_string())
    if not result.diagnostics_ok:
        print("⚠️  Sampler diagnostics outside recommended thresholds")


if __name__ == "__main__":
    main()
