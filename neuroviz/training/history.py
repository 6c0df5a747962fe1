"""Serialisation of training histories."""

from __future__ import annotations

import csv
import io
import json
from dataclasses import asdict
from typing import Mapping, Optional

from ..core.types import TrainingHistory

EXPORT_FORMATS = ("json", "csv")
CSV_HEADER = ("epoch", "loss", "accuracy", "val_loss", "val_accuracy", "timestamp")


def _fmt(value: Optional[float], digits: int) -> str:
    return "" if value is None else f"{value:.{digits}f}"


def history_summary(history: TrainingHistory) -> Mapping[str, object]:
    last = history.records[-1] if history.records else None
    return {
        "total_epochs": len(history.records),
        "best_loss": history.best_loss,
        "best_epoch": history.best_epoch,
        "best_val_loss": history.best_val_loss,
        "best_val_epoch": history.best_val_epoch,
        "total_time": history.total_time,
        "final_loss": last.loss if last else None,
        "final_accuracy": last.accuracy if last else None,
        "final_val_loss": last.val_loss if last else None,
        "final_val_accuracy": last.val_accuracy if last else None,
    }


def _to_json(history: TrainingHistory) -> str:
    payload = {
        "records": [asdict(record) for record in history.records],
        "summary": history_summary(history),
    }
    return json.dumps(payload, indent=2)


def _to_csv(history: TrainingHistory) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for record in history.records:
        writer.writerow(
            [
                record.epoch,
                _fmt(record.loss, 6),
                _fmt(record.accuracy, 4),
                _fmt(record.val_loss, 6),
                _fmt(record.val_accuracy, 4),
                record.timestamp,
            ]
        )
    return buffer.getvalue().rstrip("\n")


def export_history(history: TrainingHistory, fmt: str = "json") -> str:
    """Serialise ``history`` as ``json`` or ``csv`` text."""

    key = fmt.lower()
    if key == "json":
        return _to_json(history)
    if key == "csv":
        return _to_csv(history)
    raise ValueError(f"Unsupported export format {fmt!r}. Available: {', '.join(EXPORT_FORMATS)}")


__all__ = ["CSV_HEADER", "EXPORT_FORMATS", "export_history", "history_summary"]
