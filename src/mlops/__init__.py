"""MLflow helpers for tracking goal-line model fits."""
