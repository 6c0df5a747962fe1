import asyncio
import csv
import io
import json

import pytest

from neuroviz.core.types import (
    Hyperparameters,
    LRScheduleConfig,
    TrainingConfig,
    TrainingHistory,
    TrainingRecord,
)
from neuroviz.training.frames import FrameScheduler
from neuroviz.training.history import CSV_HEADER, export_history, history_summary


def _record(epoch, loss, val_loss=None, timestamp=None):
    return TrainingRecord(
        epoch=epoch,
        loss=loss,
        accuracy=0.5,
        val_loss=val_loss,
        val_accuracy=None if val_loss is None else 0.5,
        timestamp=float(epoch if timestamp is None else timestamp),
    )


def test_history_append_is_pure_and_tracks_bests():
    empty = TrainingHistory()
    first = empty.append(_record(1, 0.9, 1.0, timestamp=10.0))
    second = first.append(_record(2, 0.7, 1.2, timestamp=12.5))
    third = second.append(_record(3, 0.8, 0.6, timestamp=13.0))
    assert len(empty) == 0 and len(first) == 1
    assert third.best_loss == 0.7 and third.best_epoch == 2
    assert third.best_val_loss == 0.6 and third.best_val_epoch == 3
    assert third.total_time == pytest.approx(3.0)


def test_history_without_validation_keeps_val_best_empty():
    history = TrainingHistory().append(_record(1, 0.5))
    assert history.best_val_loss is None and history.best_val_epoch is None


def test_training_config_defaults_and_interval():
    config = TrainingConfig()
    assert (config.batch_size, config.max_epochs, config.target_fps) == (0, 0, 60.0)
    assert config.validation_split == 0.2
    assert config.lr_schedule == LRScheduleConfig()
    assert config.min_step_interval == pytest.approx(1 / 60)
    assert TrainingConfig(epoch_delay_ms=250).min_step_interval == pytest.approx(0.25)


def test_training_config_accepts_schedule_mapping():
    config = TrainingConfig(lr_schedule={"type": "step", "decay_steps": 5})
    assert config.lr_schedule.type == "step"
    assert config.merged(max_epochs=3).max_epochs == 3


@pytest.mark.parametrize(
    "kwargs",
    [
        {"validation_split": 1.0},
        {"target_fps": 0},
        {"batch_size": -1},
        {"early_stopping_patience": -2},
    ],
)
def test_training_config_validation(kwargs):
    with pytest.raises(ValueError):
        TrainingConfig(**kwargs)


def test_hyperparameters_validation():
    hp = Hyperparameters(learning_rate=0.1, layers=[3, 2])
    assert hp.layers == (3, 2)
    assert hp.with_learning_rate(0.2).learning_rate == 0.2
    with pytest.raises(ValueError):
        Hyperparameters(learning_rate=0.0)
    with pytest.raises(ValueError):
        Hyperparameters(learning_rate=0.1, optimizer="lbfgs")


def test_export_csv_layout():
    history = TrainingHistory().append(_record(1, 0.123456789, None, timestamp=5.0))
    text = export_history(history, "csv")
    rows = list(csv.reader(io.StringIO(text)))
    assert tuple(rows[0]) == CSV_HEADER
    assert rows[1] == ["1", "0.123457", "0.5000", "", "", "5.0"]
    assert not text.endswith("\n")


def test_export_json_contains_records_and_summary():
    history = TrainingHistory().append(_record(1, 0.4, 0.5)).append(_record(2, 0.3, 0.45))
    payload = json.loads(export_history(history, "JSON"))
    assert [r["epoch"] for r in payload["records"]] == [1, 2]
    assert payload["summary"] == dict(history_summary(history))
    assert payload["summary"]["final_val_loss"] == 0.45


def test_export_rejects_unknown_format():
    with pytest.raises(ValueError, match="Unsupported export format"):
        export_history(TrainingHistory(), "xml")


def test_frame_scheduler_keeps_single_pending_frame():
    async def scenario():
        frames = FrameScheduler(0.001)
        ticks = []
        frames.request(ticks.append)
        frames.request(ticks.append)
        assert frames.pending
        await asyncio.sleep(0.02)
        return frames, ticks

    frames, ticks = asyncio.run(scenario())
    assert len(ticks) == 1
    assert not frames.pending


def test_frame_scheduler_passes_loop_time():
    async def scenario():
        frames = FrameScheduler(0.001)
        ticks = []
        before = asyncio.get_running_loop().time()
        frames.request(ticks.append)
        await asyncio.sleep(0.02)
        return before, ticks

    before, ticks = asyncio.run(scenario())
    assert len(ticks) == 1
    assert ticks[0] >= before


def test_frame_scheduler_cancel():
    async def scenario():
        frames = FrameScheduler(0.001)
        ticks = []
        frames.request(ticks.append)
        frames.cancel()
        await asyncio.sleep(0.02)
        return ticks

    assert asyncio.run(scenario()) == []
