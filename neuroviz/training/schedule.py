"""Learning-rate schedules as pure functions of the epoch."""

from __future__ import annotations

import math

from ..core.types import LRScheduleConfig

# Cosine horizon used when training is unbounded (max_epochs == 0).
DEFAULT_COSINE_HORIZON = 100


def _cosine(initial_lr: float, epoch: int, max_epochs: int, warmup: int) -> float:
    horizon = max((max_epochs or DEFAULT_COSINE_HORIZON) - warmup, 1)
    progress = min(epoch / horizon, 1.0)
    return initial_lr * 0.5 * (1.0 + math.cos(math.pi * progress))


def _cyclic_floor(schedule: LRScheduleConfig, initial_lr: float) -> float:
    return schedule.min_lr if schedule.min_lr is not None else initial_lr / 10.0


def _cyclic_triangular(schedule: LRScheduleConfig, initial_lr: float, epoch: int) -> float:
    floor = _cyclic_floor(schedule, initial_lr)
    half = schedule.cycle_length / 2.0
    position = epoch % schedule.cycle_length
    if position < half:
        wave = position / half
    else:
        wave = 1.0 - (position - half) / half
    return floor + (initial_lr - floor) * wave


def _cyclic_cosine(schedule: LRScheduleConfig, initial_lr: float, epoch: int) -> float:
    floor = _cyclic_floor(schedule, initial_lr)
    position = epoch % schedule.cycle_length
    wave = 0.5 * (1.0 + math.cos(math.pi * position / schedule.cycle_length))
    return floor + (initial_lr - floor) * wave


def scheduled_lr(
    epoch: int,
    schedule: LRScheduleConfig,
    initial_lr: float,
    max_epochs: int = 0,
) -> float:
    """Return the learning rate for the zero-based ``epoch``."""

    warmup = schedule.warmup_epochs
    if warmup > 0 and epoch < warmup:
        return initial_lr * (epoch + 1) / warmup

    effective = epoch - warmup
    kind = schedule.type
    if kind == "exponential":
        return initial_lr * schedule.decay_rate**effective
    if kind == "step":
        return initial_lr * schedule.decay_rate ** (effective // schedule.decay_steps)
    if kind == "cosine":
        return _cosine(initial_lr, effective, max_epochs, warmup)
    if kind == "cyclic_triangular":
        return _cyclic_triangular(schedule, initial_lr, effective)
    if kind == "cyclic_cosine":
        return _cyclic_cosine(schedule, initial_lr, effective)
    return initial_lr


def has_significant_change(current: float, previous: float, threshold: float = 0.01) -> bool:
    """True when ``current`` differs from ``previous`` by more than ``threshold`` (relative)."""

    if previous == 0:
        return current != 0
    return abs(current - previous) / abs(previous) > threshold


__all__ = ["DEFAULT_COSINE_HORIZON", "has_significant_change", "scheduled_lr"]
