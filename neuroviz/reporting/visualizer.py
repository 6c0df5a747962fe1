"""Headless-safe decision-boundary rendering."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence, Tuple

import numpy as np

from ..core.types import Point, Prediction

logger = logging.getLogger(__name__)


class MatplotlibVisualizer:
    """Keep the latest points and boundary; optionally write PNG snapshots.

    A snapshot is written whenever points are re-rendered after a new
    boundary arrived, so one image corresponds to one boundary update.
    """

    def __init__(self, run_dir: str | Path | None = None, enable_plots: bool = False):
        self.enable_plots = enable_plots and run_dir is not None
        self.run_dir = Path(run_dir) if run_dir is not None else None
        self.points: Tuple[Point, ...] = ()
        self.boundary: Optional[np.ndarray] = None
        self.data_renders = 0
        self.boundary_renders = 0
        self.snapshots: list[Path] = []
        self._pending_snapshot = False
        if self.enable_plots and self.run_dir is not None:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def render_data(self, points: Sequence[Point]) -> None:
        self.points = tuple(points)
        self.data_renders += 1
        if self._pending_snapshot:
            self._pending_snapshot = False
            if self.enable_plots and self.run_dir is not None:
                path = self.run_dir / f"boundary_{self.boundary_renders:04d}.png"
                self.save(path)

    def render_boundary(self, predictions: Sequence[Prediction], grid_size: int) -> None:
        if len(predictions) != grid_size * grid_size:
            raise ValueError(
                f"expected {grid_size * grid_size} predictions for a {grid_size}x{grid_size} grid, "
                f"got {len(predictions)}"
            )
        # Grid points are ordered x-major; transpose so rows follow y.
        classes = np.asarray([p.predicted_class for p in predictions], dtype=np.float64)
        confidence = np.asarray([p.confidence for p in predictions], dtype=np.float64)
        self.boundary = np.stack(
            [
                classes.reshape(grid_size, grid_size).T,
                confidence.reshape(grid_size, grid_size).T,
            ]
        )
        self.boundary_renders += 1
        self._pending_snapshot = True

    def clear(self) -> None:
        self.points = ()
        self.boundary = None
        self._pending_snapshot = False

    def save(self, path: str | Path) -> Path:
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # imported lazily for headless safety

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fig, ax = plt.subplots(figsize=(5, 5))
        if self.boundary is not None:
            classes, confidence = self.boundary
            ax.imshow(
                classes,
                extent=(-1, 1, -1, 1),
                origin="lower",
                cmap="coolwarm",
                alpha=0.25 + 0.35 * float(np.mean(confidence)),
                interpolation="bilinear",
            )
        if self.points:
            xs = [p.x for p in self.points]
            ys = [p.y for p in self.points]
            labels = [p.label for p in self.points]
            markers = ["^" if p.is_validation else "o" for p in self.points]
            for marker in sorted(set(markers)):
                idx = [i for i, m in enumerate(markers) if m == marker]
                ax.scatter(
                    [xs[i] for i in idx],
                    [ys[i] for i in idx],
                    c=[labels[i] for i in idx],
                    cmap="coolwarm",
                    marker=marker,
                    edgecolors="k",
                    linewidths=0.3,
                    s=14,
                )
        ax.set_xlim(-1, 1)
        ax.set_ylim(-1, 1)
        ax.set_title("Decision Boundary")
        fig.savefig(path)
        plt.close(fig)
        self.snapshots.append(path)
        logger.debug("Wrote boundary snapshot %s", path)
        return path


__all__ = ["MatplotlibVisualizer"]
