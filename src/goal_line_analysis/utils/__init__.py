"""Utils module for goal-line analysis."""

from .metrics import ModelEvaluator, PosteriorSummary, complement, summarize_draws, summary_table

__all__ = ['ModelEvaluator', 'PosteriorSummary', 'complement', 'summarize_draws', 'summary_table']
