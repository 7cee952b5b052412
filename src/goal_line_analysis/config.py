"""
Configuration module for the goal-line play-call analysis package.
Contains all constants, paths, and configuration parameters.
"""
from pathlib import Path
from typing import List, Tuple
import os

class Config:
    """Main configuration class for the goal-line analysis package."""

    # Base paths - resolved from this file so they work locally and in the cloud
    _CONFIG_DIR = Path(__file__).parent.parent.parent  # Go up to project root
    PROJECT_ROOT = _CONFIG_DIR.resolve()

    DATA_DIR = PROJECT_ROOT / "data"
    RAW_DATA_DIR = DATA_DIR / "raw"
    PROCESSED_DATA_DIR = DATA_DIR / "processed"
    OUTPUT_DIR = PROJECT_ROOT / "output"
    REPORTS_DIR = OUTPUT_DIR / "reports"
    MODELS_DIR = PROJECT_ROOT / "models"
    MODEL_DIR = MODELS_DIR / "bayesian"

    # Processed data files
    MODELING_DATA_FILE = PROCESSED_DATA_DIR / "goal_to_go_modeling_data.csv"
    TEAM_EFFICIENCY_FILE = PROCESSED_DATA_DIR / "team_rush_epa.csv"

    # Season under analysis; the cutoff pretends only N weeks have been played
    SEASON = int(os.getenv("GOAL_LINE_SEASON", "2022"))
    WEEK_CUTOFF = int(os.getenv("GOAL_LINE_WEEK_CUTOFF", "17"))

    # Columns pulled from the play-by-play provider
    PBP_COLUMNS: List[str] = [
        "posteam", "defteam", "week", "down", "yardline_100",
        "goal_to_go", "play_type", "epa",
    ]
    PLAY_TYPES: Tuple[str, ...] = ("pass", "run")
    DOWNS: Tuple[int, ...] = (1, 2, 3)

    # Scenario ranges exposed to the dashboard
    MIN_DISTANCE = 1
    MAX_DISTANCE = 15
    DEFAULT_DISTANCE = 10

    # Model parameters (4 chains x 2,500 post-warmup draws)
    BAYESIAN_MCMC_SAMPLES = 2_500
    BAYESIAN_TUNE = 2_500
    BAYESIAN_CHAINS = 4
    BAYESIAN_TARGET_ACCEPT = 0.9
    RANDOM_SEED = 42

    # Prior scales
    FIXED_EFFECT_PRIOR_SD = 2.5
    TEAM_SIGMA_PRIOR_SD = 1.0

    # Posterior summaries
    HDI_PROB = 0.95
    RHAT_THRESHOLD = 1.01
    ESS_THRESHOLD = 100

    # Number of illustrative teams at each end of the efficiency ranking
    N_RANKED_TEAMS = 3

    # Visualization settings
    FIGURE_SIZE = (8, 5)
    DPI = 100
    HISTOGRAM_BINS = 30

    @classmethod
    def ensure_directories(cls):
        """Create all required directories if they don't exist."""
        for dir_path in [cls.RAW_DATA_DIR, cls.PROCESSED_DATA_DIR,
                         cls.OUTPUT_DIR, cls.REPORTS_DIR, cls.MODEL_DIR]:
            dir_path.mkdir(parents=True, exist_ok=True)

# Create global config instance
config = Config()

if __name__ == "__main__":
    print("Goal-Line Analysis Configuration")
    print("=" * 40)
    print(f"Data directory: {config.DATA_DIR}")
    print(f"Season: {config.SEASON} (weeks <= {config.WEEK_CUTOFF})")
    print(f"Sampler: {config.BAYESIAN_CHAINS} chains x {config.BAYESIAN_MCMC_SAMPLES} draws")

    config.ensure_directories()
    print("******* Configuration loaded and directories created!")
