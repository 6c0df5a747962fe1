import math

import pytest

from neuroviz.core.types import LRScheduleConfig
from neuroviz.training.early_stopping import EarlyStopping
from neuroviz.training.schedule import has_significant_change, scheduled_lr


def test_constant_schedule():
    assert scheduled_lr(25, LRScheduleConfig(), 0.1) == 0.1


def test_exponential_decay():
    schedule = LRScheduleConfig(type="exponential", decay_rate=0.9)
    assert scheduled_lr(3, schedule, 0.1) == pytest.approx(0.1 * 0.9**3)


def test_step_decay():
    schedule = LRScheduleConfig(type="step", decay_rate=0.5, decay_steps=10)
    assert scheduled_lr(9, schedule, 0.2) == pytest.approx(0.2)
    assert scheduled_lr(10, schedule, 0.2) == pytest.approx(0.1)
    assert scheduled_lr(25, schedule, 0.2) == pytest.approx(0.05)


def test_cosine_uses_max_epochs_or_default_horizon():
    schedule = LRScheduleConfig(type="cosine")
    assert scheduled_lr(0, schedule, 0.1, max_epochs=20) == pytest.approx(0.1)
    assert scheduled_lr(10, schedule, 0.1, max_epochs=20) == pytest.approx(0.05)
    assert scheduled_lr(20, schedule, 0.1, max_epochs=20) == pytest.approx(0.0)
    assert scheduled_lr(50, schedule, 0.1) == pytest.approx(0.05)


def test_warmup_ramps_linearly():
    schedule = LRScheduleConfig(type="exponential", decay_rate=0.5, warmup_epochs=4)
    assert [scheduled_lr(e, schedule, 0.4) for e in range(4)] == pytest.approx(
        [0.1, 0.2, 0.3, 0.4]
    )
    assert scheduled_lr(4, schedule, 0.4) == pytest.approx(0.4)
    assert scheduled_lr(5, schedule, 0.4) == pytest.approx(0.2)


def test_cyclic_triangular_wave():
    schedule = LRScheduleConfig(type="cyclic_triangular", cycle_length=10, min_lr=0.0)
    assert scheduled_lr(0, schedule, 1.0) == pytest.approx(0.0)
    assert scheduled_lr(5, schedule, 1.0) == pytest.approx(1.0)
    assert scheduled_lr(10, schedule, 1.0) == pytest.approx(0.0)


def test_cyclic_cosine_restarts():
    schedule = LRScheduleConfig(type="cyclic_cosine", cycle_length=10)
    assert scheduled_lr(0, schedule, 1.0) == pytest.approx(1.0)
    assert scheduled_lr(10, schedule, 1.0) == pytest.approx(1.0)
    assert scheduled_lr(5, schedule, 1.0) == pytest.approx(0.1 + 0.9 * 0.5)


def test_unknown_schedule_rejected():
    with pytest.raises(ValueError):
        LRScheduleConfig(type="linear")


def test_significant_change_threshold():
    assert has_significant_change(0.1, 0.1) is False
    assert has_significant_change(0.1005, 0.1) is False
    assert has_significant_change(0.102, 0.1) is True
    assert has_significant_change(0.0, 0.0) is False
    assert has_significant_change(0.1, 0.0) is True


def test_early_stopping_counts_non_improving_epochs():
    stopper = EarlyStopping()
    results = [stopper.check(v, patience=2) for v in (1.0, 0.8, 0.8, 0.9)]
    assert results == [False, False, False, True]
    assert stopper.best_val_loss == 0.8


def test_early_stopping_disabled():
    stopper = EarlyStopping()
    assert not any(stopper.check(1.0, patience=0) for _ in range(10))
    assert stopper.check(None, patience=1) is False
    assert stopper.best_val_loss is None


def test_early_stopping_reset():
    stopper = EarlyStopping()
    stopper.check(0.5, patience=1)
    stopper.check(math.inf, patience=1)
    stopper.reset()
    assert stopper.best_val_loss is None
    assert stopper.epochs_without_improvement == 0
