import json

import pytest

from neuroviz.core.types import (
    Hyperparameters,
    Point,
    Prediction,
    TrainingConfig,
    TrainingHistory,
    TrainingRecord,
)
from neuroviz.reporting import (
    MatplotlibVisualizer,
    compute_auc,
    summarize_history,
    write_manifest,
    write_summary,
)


def _history():
    history = TrainingHistory()
    for epoch, loss in enumerate([0.9, 0.6, 0.5], start=1):
        history = history.append(
            TrainingRecord(epoch, loss, 0.5, None, None, float(epoch), learning_rate=0.1)
        )
    return history


def test_compute_auc():
    assert compute_auc([]) == 0.0
    assert compute_auc([1.0, 1.0, 1.0]) == pytest.approx(2.0)


def test_summary_is_deterministic(tmp_path):
    history = _history()
    summary = summarize_history(history, tail=2)
    assert summary["records"] == 3
    assert summary["metrics"]["loss"]["min"] == 0.5
    assert summary["metrics"]["loss"]["tail_auc"] == pytest.approx(0.55)
    assert "val_loss" not in summary["metrics"]
    first = write_summary(history, tmp_path / "a.json")
    second = write_summary(history, tmp_path / "b.json")
    assert open(first).read() == open(second).read()


def test_manifest_captures_configuration(tmp_path):
    path = write_manifest(
        tmp_path / "manifest.json",
        hyperparameters=Hyperparameters(learning_rate=0.1),
        config=TrainingConfig(max_epochs=3),
        dataset={"type": "xor"},
        extra={"preset": "quick_demo"},
    )
    manifest = json.loads(open(path).read())
    assert manifest["hyperparameters"]["layers"] == [8, 4]
    assert manifest["training"]["lr_schedule"]["type"] == "none"
    assert manifest["dataset"] == {"type": "xor"}
    assert manifest["preset"] == "quick_demo"


def _grid(n):
    return [Prediction(x=0.0, y=0.0, confidence=0.8, predicted_class=i % 2) for i in range(n * n)]


def test_visualizer_tracks_renders_without_plots():
    visualizer = MatplotlibVisualizer()
    visualizer.render_data([Point(0.1, 0.2, 1)])
    visualizer.render_boundary(_grid(3), 3)
    visualizer.render_data([Point(0.1, 0.2, 1)])
    assert visualizer.boundary.shape == (2, 3, 3)
    assert visualizer.snapshots == []
    visualizer.clear()
    assert visualizer.points == () and visualizer.boundary is None


def test_visualizer_rejects_mismatched_grid():
    with pytest.raises(ValueError):
        MatplotlibVisualizer().render_boundary(_grid(2), 3)


def test_visualizer_writes_snapshots(tmp_path):
    visualizer = MatplotlibVisualizer(tmp_path, enable_plots=True)
    visualizer.render_boundary(_grid(4), 4)
    visualizer.render_data([Point(0.1, 0.2, 1), Point(-0.3, 0.4, 0, is_validation=True)])
    assert visualizer.snapshots == [tmp_path / "boundary_0001.png"]
    assert (tmp_path / "boundary_0001.png").stat().st_size > 0
