"""neuroviz public API."""

from .core import types  # noqa: F401
from .core.types import (
    Hyperparameters,
    LRScheduleConfig,
    Point,
    Prediction,
    TrainingConfig,
    TrainingState,
    TrainResult,
)
from .errors import EngineNotInitialisedError, NeuroVizError, NotReadyError
from .training.presets import load_preset, presets
from .training.session import SessionOptions, TrainingSession

__all__ = [
    "EngineNotInitialisedError",
    "Hyperparameters",
    "LRScheduleConfig",
    "NeuroVizError",
    "NotReadyError",
    "Point",
    "Prediction",
    "SessionOptions",
    "TrainResult",
    "TrainingConfig",
    "TrainingSession",
    "TrainingState",
    "load_preset",
    "presets",
    "types",
]
