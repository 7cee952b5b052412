"""
Self-contained HTML report of goal-to-go pass/run tendencies for one team.

Figures are embedded as base64 PNGs so the file can be emailed or opened
offline.
"""
from __future__ import annotations

import base64
import datetime as _dt
import html
import io
import logging
from pathlib import Path
from typing import Optional

import matplotlib.pyplot as plt
import pandas as pd
from matplotlib.figure import Figure

from goal_line_analysis.config import config
from goal_line_analysis.models.fitted import FittedGoalLineModel
from goal_line_analysis.plots import plot_pass_curve, plot_predictive_histogram
from goal_line_analysis.predict.predictor import Scenario, predict, predict_grid
from goal_line_analysis.utils.metrics import summarize_draws

logger = logging.getLogger(__name__)

_STYLE = """
body { font-family: Helvetica, Arial, sans-serif; margin: 2rem; color: #222; }
table { border-collapse: collapse; margin-bottom: 1.5rem; }
th, td { border: 1px solid #ccc; padding: 4px 8px; text-align: right; }
th { background: #f0f2f6; }
img { max-width: 100%; }
"""


def _fig_to_base64(fig: Figure) -> str:
    buf = io.BytesIO()
    fig.savefig(buf, format="png", bbox_inches="tight")
    plt.close(fig)
    return base64.b64encode(buf.getvalue()).decode("ascii")


def _img(fig: Figure, alt: str) -> str:
    return f'<img alt="{html.escape(alt)}" src="data:image/png;base64,{_fig_to_base64(fig)}">'


def report_filename(team: str, date: Optional[_dt.date] = None) -> str:
    date = date or _dt.date.today()
    return f"{team}_Goal_Line_Report_{date.isoformat()}.html"


def render_team_report(
    model: FittedGoalLineModel,
    team: str,
    *,
    distance: Optional[int] = None,
) -> str:
    """
    Build the HTML report for ``team``.

    Contains the team's rushing EPA and league rank, a pass-probability
    curve over distances 1-15 for each down, predictive histograms at
    ``distance`` yards, and the full summary tables.
    """
    distance = config.DEFAULT_DISTANCE if distance is None else distance
    szn_epa = model.efficiency_for(team)
    ranking = pd.Series(dict(model.team_efficiency)).rank(ascending=False, method="min")
    rank = int(ranking[team])

    grid = predict_grid(model, team)
    sections = [
        f"<h1>{html.escape(team)} Goal-Line Play-Call Report</h1>",
        f"<p>Generated {_dt.date.today().isoformat()}"
        + (f" using weeks 1-{model.week_cutoff}" if model.week_cutoff else "")
        + f". {model.n_samples:,} posterior draws.</p>",
        f"<p>Season rushing EPA: <b>{szn_epa:.1f}</b> "
        f"(rank {rank} of {len(ranking)})</p>",
        "<h2>Pass probability by down and distance</h2>",
        _img(plot_pass_curve(grid, title=f"{team}: Pass Probability by Down and Distance"), "pass curve"),
    ]

    for down in config.DOWNS:
        draws = predict(Scenario(team, down, distance), model)
        summary = summarize_draws(draws)
        sections.append(f"<h2>Down {down}, {distance} yards to go</h2>")
        sections.append(
            f"<p>Pass {summary.median:.1f}% {summary.hdi_label()} &middot; "
            f"Run {100 - summary.median:.1f}%</p>"
        )
        sections.append(_img(
            plot_predictive_histogram(draws, summary, title=f"Down {down}, {distance} yards"),
            f"down {down} histogram",
        ))

    for down, tbl in grid.groupby("down"):
        sections.append(f"<h2>Summary table: down {down}</h2>")
        sections.append(
            tbl.drop(columns=["team", "down"]).round(1).to_html(index=False, border=0)
        )

    return (
        "<!DOCTYPE html><html><head><meta charset='utf-8'>"
        f"<title>{html.escape(team)} Goal Line Report</title><style>{_STYLE}</style></head>"
        f"<body>{''.join(sections)}</body></html>"
    )


def write_team_report(
    model: FittedGoalLineModel,
    team: str,
    out_dir: Path | str | None = None,
    **kwargs,
) -> Path:
    """Render the report and write ``<TEAM>_Goal_Line_Report_<date>.html``."""
    out_dir = Path(out_dir) if out_dir is not None else config.REPORTS_DIR
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / report_filename(team)
    path.write_text(render_team_report(model, team, **kwargs), encoding="utf-8")
    logger.info("Report for %s written to %s", team, path)
    return path
