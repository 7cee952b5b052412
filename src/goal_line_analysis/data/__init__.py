"""
Data module for goal-line analysis.
"""

from .loader import PlayByPlayLoader
from .preprocessor import GoalLinePreprocessor, filter_goal_to_go
from .team_efficiency import team_rush_efficiency, rank_teams

__all__ = [
    'PlayByPlayLoader',
    'GoalLinePreprocessor',
    'filter_goal_to_go',
    'team_rush_efficiency',
    'rank_teams',
]
