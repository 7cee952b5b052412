# tasks.py  ── invoke ≥2.2
from invoke import task, Context  # type: ignore
from typing import Optional

import pathlib
import sys


BASE_ENV = pathlib.Path(__file__).parent
SRC = BASE_ENV / "src"


def _pythonpath_env() -> dict:
    return {"PYTHONPATH": str(SRC)}


@task(
    help={
        "season": "Season to fit (defaults to config.SEASON)",
        "week_cutoff": "Last week treated as played (defaults to config.WEEK_CUTOFF)",
        "pbp_file": "Local CSV/parquet export instead of downloading",
        "pooling": "'partial' (random team intercepts) or 'complete'",
        "draws": "Posterior draws per chain",
        "track": "Log the run to MLflow",
        "compare": "Also fit the other pooling and compare in-sample metrics",
    }
)
def fit(
    c: Context,
    season: Optional[int] = None,
    week_cutoff: Optional[int] = None,
    pbp_file: Optional[str] = None,
    pooling: str = "partial",
    draws: Optional[int] = None,
    track: bool = False,
    compare: bool = False,
) -> None:
    """Fit the goal-line model and save the suite under models/bayesian."""
    args = [f"--pooling {pooling}"]
    if season is not None:
        args.append(f"--season {season}")
    if week_cutoff is not None:
        args.append(f"--week-cutoff {week_cutoff}")
    if pbp_file:
        args.append(f"--pbp-file {pbp_file}")
    if draws is not None:
        args.append(f"--draws {draws}")
    if track:
        args.append("--track")
    if compare:
        args.append("--compare")
    c.run(f"{sys.executable} -m goal_line_analysis.pipeline {' '.join(args)}",
          env=_pythonpath_env(), pty=True)


@task(help={"team": "Team abbreviation, e.g. KC", "out_dir": "Output directory"})
def report(c: Context, team: str, out_dir: Optional[str] = None) -> None:
    """Write the static HTML report for one team from the newest saved suite."""
    sys.path.insert(0, str(SRC))
    from goal_line_analysis.pipeline import load_or_fit
    from goal_line_analysis.report import write_team_report

    path = write_team_report(load_or_fit(), team, out_dir)
    print(f"✅ Report written to {path}")


@task(help={"port": "Port to serve on (default: 8501)"})
def app(c: Context, port: int = 8501) -> None:
    """Launch the Streamlit dashboard."""
    c.run(f"streamlit run {BASE_ENV / 'app.py'} --server.port {port}",
          env=_pythonpath_env(), pty=True)


@task
def test(c: Context) -> None:
    """Run the test-suite."""
    c.run(f"{sys.executable} -m pytest {BASE_ENV / 'tests'} -q", env=_pythonpath_env(), pty=True)
