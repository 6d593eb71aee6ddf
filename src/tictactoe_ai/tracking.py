"""
Experiment tracking helpers (optional MLflow backend).

MLflow is imported only when requested so it stays an optional dependency.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional


@contextmanager
def maybe_mlflow_run(enabled: bool, run_name: str, log_dir: Optional[Path] = None) -> Iterator[None]:
    if not enabled:
        yield None
        return
    try:
        import mlflow  # type: ignore
    except ImportError:
        logging.warning("mlflow is not installed; continuing without tracking")
        yield None
        return
    try:
        if log_dir is not None:
            mlflow.set_tracking_uri((log_dir.resolve() / "mlruns").as_uri())
        run = mlflow.start_run(run_name=run_name)
    except Exception as e:
        # Soft-fail: continue without tracking
        logging.warning("mlflow run could not start (%s: %s); continuing without tracking", type(e).__name__, e)
        yield None
        return
    with run:
        yield None


def _active_mlflow():
    try:
        import mlflow  # type: ignore
    except ImportError:
        return None
    return mlflow if mlflow.active_run() is not None else None


def log_params(params: Dict[str, object]) -> None:
    mlflow = _active_mlflow()
    if mlflow is not None:
        mlflow.log_params(params)


def log_metrics(metrics: Dict[str, float]) -> None:
    mlflow = _active_mlflow()
    if mlflow is not None:
        mlflow.log_metrics(metrics)


def log_artifact(path: Path, artifact_path: Optional[str] = None) -> None:
    mlflow = _active_mlflow()
    if mlflow is not None:
        mlflow.log_artifact(str(path), artifact_path=artifact_path)
