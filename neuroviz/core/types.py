"""Core typing contracts for neuroviz."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from typing import Any, Optional, Tuple

LR_SCHEDULE_TYPES = (
    "none",
    "exponential",
    "step",
    "cosine",
    "cyclic_triangular",
    "cyclic_cosine",
)
OPTIMIZERS = ("sgd", "adam", "rmsprop", "adagrad")
ACTIVATIONS = ("relu", "sigmoid", "tanh", "elu")


@dataclass(frozen=True)
class Point:
    """A labelled point in the 2D plane."""

    x: float
    y: float
    label: int
    is_validation: Optional[bool] = None


@dataclass(frozen=True)
class Prediction:
    """Network output for a single location."""

    x: float
    y: float
    confidence: float
    predicted_class: int
    probabilities: Tuple[float, ...] = ()


@dataclass(frozen=True)
class TrainResult:
    """Loss and accuracy reported by a train or evaluate call."""

    loss: float
    accuracy: float


@dataclass(frozen=True)
class LRScheduleConfig:
    """Learning-rate schedule settings.

    Attributes
    ----------
    type:
        One of ``none``, ``exponential``, ``step``, ``cosine``,
        ``cyclic_triangular`` or ``cyclic_cosine``.
    decay_rate:
        Multiplicative decay for the exponential and step families.
    decay_steps:
        Epochs between two decays of the step family.
    warmup_epochs:
        Epochs of linear ramp-up before the schedule proper starts.
    cycle_length, min_lr:
        Period and floor of the cyclic families.  ``min_lr`` defaults to a
        tenth of the initial rate.
    """

    type: str = "none"
    decay_rate: float = 0.95
    decay_steps: int = 10
    warmup_epochs: int = 0
    cycle_length: int = 20
    min_lr: Optional[float] = None

    def __post_init__(self) -> None:
        if self.type not in LR_SCHEDULE_TYPES:
            raise ValueError(
                f"Unknown learning-rate schedule {self.type!r}. "
                f"Available: {', '.join(LR_SCHEDULE_TYPES)}"
            )
        if self.decay_rate <= 0:
            raise ValueError("decay_rate must be positive")
        if self.decay_steps < 1:
            raise ValueError("decay_steps must be >= 1")
        if self.warmup_epochs < 0:
            raise ValueError("warmup_epochs must be >= 0")
        if self.cycle_length < 1:
            raise ValueError("cycle_length must be >= 1")


@dataclass(frozen=True)
class Hyperparameters:
    """Network configuration handed to the compute engine on initialisation.

    Only ``learning_rate`` is interpreted by the training session; the other
    fields are passed through untouched.
    """

    learning_rate: float
    layers: Tuple[int, ...] = (8, 4)
    optimizer: str = "adam"
    activation: str = "relu"
    l2_regularization: float = 0.0
    momentum: float = 0.9
    l1_regularization: float = 0.0
    num_classes: int = 2
    loss: str = "cross_entropy"
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "layers", tuple(int(n) for n in self.layers))
        if not (self.learning_rate > 0 and math.isfinite(self.learning_rate)):
            raise ValueError("learning_rate must be a positive finite number")
        if any(n < 1 for n in self.layers):
            raise ValueError("every hidden layer needs at least one neuron")
        if self.optimizer not in OPTIMIZERS:
            raise ValueError(f"Unknown optimizer: {self.optimizer}")
        if self.activation not in ACTIVATIONS:
            raise ValueError(f"Unknown activation: {self.activation}")
        if self.l1_regularization < 0 or self.l2_regularization < 0:
            raise ValueError("regularization strengths must be >= 0")
        if self.num_classes < 2:
            raise ValueError("num_classes must be >= 2")

    def with_learning_rate(self, learning_rate: float) -> "Hyperparameters":
        return replace(self, learning_rate=learning_rate)


@dataclass(frozen=True)
class TrainingConfig:
    """Runtime training settings; may change while a session is running."""

    batch_size: int = 0
    max_epochs: int = 0
    target_fps: float = 60.0
    epoch_delay_ms: float = 0.0
    validation_split: float = 0.2
    early_stopping_patience: int = 0
    lr_schedule: LRScheduleConfig = field(default_factory=LRScheduleConfig)
    stratified_split: bool = False

    def __post_init__(self) -> None:
        if self.batch_size < 0:
            raise ValueError("batch_size must be >= 0 (0 = full batch)")
        if self.max_epochs < 0:
            raise ValueError("max_epochs must be >= 0 (0 = unbounded)")
        if not self.target_fps > 0:
            raise ValueError("target_fps must be positive")
        if self.epoch_delay_ms < 0:
            raise ValueError("epoch_delay_ms must be >= 0")
        if not 0 <= self.validation_split < 1:
            raise ValueError("validation_split must be in [0, 1)")
        if self.early_stopping_patience < 0:
            raise ValueError("early_stopping_patience must be >= 0 (0 = disabled)")
        if isinstance(self.lr_schedule, dict):
            object.__setattr__(self, "lr_schedule", LRScheduleConfig(**self.lr_schedule))

    @property
    def min_step_interval(self) -> float:
        """Minimum seconds between two executed steps."""

        if self.epoch_delay_ms > 0:
            return self.epoch_delay_ms / 1000.0
        return 1.0 / self.target_fps

    def merged(self, **changes: Any) -> "TrainingConfig":
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise KeyError(f"Unknown training config keys: {', '.join(sorted(unknown))}")
        return replace(self, **changes)


@dataclass(frozen=True)
class TrainingRecord:
    """Metrics of one completed epoch."""

    epoch: int
    loss: float
    accuracy: float
    val_loss: Optional[float]
    val_accuracy: Optional[float]
    timestamp: float
    learning_rate: Optional[float] = None


@dataclass(frozen=True)
class TrainingHistory:
    """Append-only record of a training run with running best metrics."""

    records: Tuple[TrainingRecord, ...] = ()
    best_loss: Optional[float] = None
    best_epoch: Optional[int] = None
    best_val_loss: Optional[float] = None
    best_val_epoch: Optional[int] = None
    total_time: float = 0.0

    def append(self, record: TrainingRecord) -> "TrainingHistory":
        is_best = self.best_loss is None or record.loss < self.best_loss
        is_best_val = record.val_loss is not None and (
            self.best_val_loss is None or record.val_loss < self.best_val_loss
        )
        started = self.records[0].timestamp if self.records else record.timestamp
        return TrainingHistory(
            records=self.records + (record,),
            best_loss=record.loss if is_best else self.best_loss,
            best_epoch=record.epoch if is_best else self.best_epoch,
            best_val_loss=record.val_loss if is_best_val else self.best_val_loss,
            best_val_epoch=record.epoch if is_best_val else self.best_val_epoch,
            total_time=record.timestamp - started,
        )

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class TrainingState:
    """Read-only snapshot of a training session."""

    epoch: int
    loss: Optional[float]
    accuracy: Optional[float]
    val_loss: Optional[float]
    val_accuracy: Optional[float]
    is_running: bool
    is_paused: bool
    is_initialised: bool
    dataset_loaded: bool
    max_epochs: int
    batch_size: int
    target_fps: float
    validation_split: float
    learning_rate: Optional[float]
    training_size: int
    validation_size: int
    history: TrainingHistory
    last_error: Optional[str] = None


__all__ = [
    "ACTIVATIONS",
    "Hyperparameters",
    "LRScheduleConfig",
    "LR_SCHEDULE_TYPES",
    "OPTIMIZERS",
    "Point",
    "Prediction",
    "TrainResult",
    "TrainingConfig",
    "TrainingHistory",
    "TrainingRecord",
    "TrainingState",
]
