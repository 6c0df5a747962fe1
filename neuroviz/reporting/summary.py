"""Deterministic training-history summarisation helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping, Sequence

import numpy as np

from ..core.types import TrainingHistory

SUMMARY_METRICS = ("loss", "accuracy", "val_loss", "val_accuracy", "learning_rate")


def compute_auc(points: Sequence[float]) -> float:
    """Return the area-under-curve of ``points`` along an implicit step axis."""

    if not points:
        return 0.0
    y = np.asarray(points, dtype=np.float64)
    x = np.arange(len(points), dtype=np.float64)
    return float(np.trapezoid(y, x))


def summarize_history(history: TrainingHistory, *, tail: int = 32) -> Mapping[str, object]:
    """Reduce every metric column to min/max/mean/last and a tail AUC."""

    records = history.records
    tail_window = min(tail, len(records))
    metrics: dict[str, Mapping[str, float]] = {}
    for name in SUMMARY_METRICS:
        values = [getattr(r, name) for r in records if getattr(r, name) is not None]
        if not values:
            continue
        arr = np.asarray(values, dtype=np.float64)
        tail_arr = arr[-tail_window:] if tail_window else arr[:0]
        metrics[name] = {
            "min": float(np.min(arr)),
            "max": float(np.max(arr)),
            "mean": float(np.mean(arr)),
            "last": float(arr[-1]),
            "tail_auc": compute_auc(tail_arr.tolist()),
        }
    return {
        "version": 1,
        "records": len(records),
        "tail_window": tail_window,
        "best_epoch": history.best_epoch,
        "best_val_epoch": history.best_val_epoch,
        "total_time": history.total_time,
        "metrics": metrics,
    }


def write_summary(
    history: TrainingHistory, out_summary_json: str | Path, *, tail: int = 32
) -> str:
    """Write a deterministic summary of ``history``."""

    out_path = Path(out_summary_json)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    summary = summarize_history(history, tail=tail)
    out_path.write_text(json.dumps(summary, sort_keys=True, indent=2))
    return str(out_path)


__all__ = ["SUMMARY_METRICS", "compute_auc", "summarize_history", "write_summary"]
