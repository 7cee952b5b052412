"""MLflow experiment utilities."""
from __future__ import annotations

import logging
import pathlib
from typing import Optional

import mlflow
import requests

from .config import EXPERIMENT_NAME, TRACKING_URI

_HEALTH_ENDPOINTS = ("/health", "/version")
logger = logging.getLogger(__name__)


def _ping_tracking_server(uri: str, timeout: float = 2.0) -> bool:
    """Return True iff an HTTP MLflow server is reachable at *uri*."""
    if not uri.startswith("http"):
        return False                        # file store – nothing to ping
    try:
        for ep in _HEALTH_ENDPOINTS:
            response = requests.get(uri.rstrip("/") + ep, timeout=timeout)
            response.raise_for_status()
        return True
    except requests.RequestException as exc:
        logger.debug("MLflow server ping failed: %s", exc)
        return False


def _fallback_uri() -> str:
    """Local file-store *outside* the default ./mlruns to avoid collisions."""
    local = pathlib.Path.cwd() / "mlruns_local"
    local.mkdir(exist_ok=True)
    return local.resolve().as_uri()


def resolve_tracking_uri(uri: Optional[str] = None) -> str:
    """
    Pick the tracking URI: explicit non-HTTP URIs are used as-is, HTTP
    servers only when they answer the health ping, else a local store.
    """
    uri = uri or TRACKING_URI
    if not uri.startswith("http"):
        return uri
    if _ping_tracking_server(uri):
        return uri
    fallback = _fallback_uri()
    logger.warning("MLflow server %s unreachable – using local store %s", uri, fallback)
    return fallback


def setup_mlflow_experiment(
    experiment_name: Optional[str] = None,
    tracking_uri: Optional[str] = None,
) -> str:
    """
    Resolve a reachable MLflow tracking URI and make sure the experiment exists.

    Returns the experiment id.
    """
    exp_name = experiment_name or EXPERIMENT_NAME
    uri = resolve_tracking_uri(tracking_uri)
    mlflow.set_tracking_uri(uri)

    experiment = mlflow.set_experiment(exp_name)
    logger.info("Using MLflow experiment '%s' @ %s", exp_name, uri)
    return experiment.experiment_id
