"""Models module for goal-line analysis."""

from .fitted import FittedGoalLineModel, UnknownTeamError, latest_suite_dir
from .hierarchical import GoalLineModelSuite

__all__ = ['FittedGoalLineModel', 'GoalLineModelSuite', 'UnknownTeamError', 'latest_suite_dir']
