"""Training orchestration: partitioning, schedules and the session loop."""

from .early_stopping import EarlyStopping
from .history import export_history, history_summary
from .partition import SplitData, split, split_statistics, stratified_split
from .presets import TrainingPreset
from .sampling import sample_batch
from .schedule import has_significant_change, scheduled_lr
from .session import SessionOptions, TrainingSession, prediction_grid

__all__ = [
    "EarlyStopping",
    "SessionOptions",
    "SplitData",
    "TrainingPreset",
    "TrainingSession",
    "export_history",
    "has_significant_change",
    "history_summary",
    "prediction_grid",
    "sample_batch",
    "scheduled_lr",
    "split",
    "split_statistics",
    "stratified_split",
]
