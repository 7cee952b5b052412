"""Prediction module for goal-line analysis."""

from .predictor import Scenario, predict, predict_grid

__all__ = ['Scenario', 'predict', 'predict_grid']
