"""
Goal-Line Play-Call Analysis Package
Bayesian estimates of pass vs run tendencies in goal-to-go situations.
"""

__version__ = "1.0.0"
__author__ = "NFL Analytics Team"

from .config import config
from .data.loader import PlayByPlayLoader
from .data.preprocessor import GoalLinePreprocessor

__all__ = [
    'config',
    'PlayByPlayLoader',
    'GoalLinePreprocessor',
]
