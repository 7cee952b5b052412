# app.py
from pathlib import Path
import sys

import pandas as pd
import streamlit as st

sys.path.insert(0, str(Path(__file__).parent / "src"))

from goal_line_analysis.config import config
from goal_line_analysis.models.fitted import FittedGoalLineModel, UnknownTeamError
from goal_line_analysis.pipeline import load_or_fit
from goal_line_analysis.plots import plot_predictive_histogram
from goal_line_analysis.predict.predictor import Scenario, predict
from goal_line_analysis.report import render_team_report, report_filename
from goal_line_analysis.utils.metrics import summarize_draws, summary_table

# ───────────────────────── Streamlit page config ──────────────────────────────
st.set_page_config(
    page_title="Goal-Line Play-Call Probabilities",
    page_icon="🏈",
    layout="wide",
)


# One fitted model per server process, shared read-only by every session
@st.cache_resource(show_spinner="Fitting goal-line model (this takes a few minutes)…")
def get_model() -> FittedGoalLineModel:
    return load_or_fit()


@st.cache_data(show_spinner="Rendering report…")
def build_report(team: str, _model: FittedGoalLineModel) -> str:
    return render_team_report(_model, team)


model = get_model()

# ───────────────────────── Sidebar controls ───────────────────────────────────
st.sidebar.header("⚙️ Scenario")
team = st.sidebar.selectbox("Team", model.teams)
down = st.sidebar.radio("Down:", list(config.DOWNS), horizontal=True)
distance = st.sidebar.slider(
    "Line of scrimmage (yards to goal):",
    min_value=config.MIN_DISTANCE,
    max_value=config.MAX_DISTANCE,
    value=config.DEFAULT_DISTANCE,
)

st.sidebar.download_button(
    "Generate Report",
    data=build_report(team, model),
    file_name=report_filename(team),
    mime="text/html",
)

# ───────────────────────── Main panel ─────────────────────────────────────────
st.header(f"🏈 {team}: goal-to-go pass probability")
st.caption(
    f"Down {down}, {distance} yards to the goal line. "
    f"Season rushing EPA {model.efficiency_for(team):.1f}"
    + (f" through week {model.week_cutoff}." if model.week_cutoff else ".")
)

try:
    draws = predict(Scenario(team, int(down), int(distance)), model)
except (UnknownTeamError, ValueError) as e:
    st.error(f"Cannot score scenario: {e}")
    st.stop()

summary = summarize_draws(draws)
st.pyplot(plot_predictive_histogram(draws, summary))

table: pd.DataFrame = summary_table(draws)
st.table(table)
