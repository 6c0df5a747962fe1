"""Collaborator contracts consumed by the training session."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

from .types import Hyperparameters, Point, Prediction, TrainResult


class NeuralNetworkService(Protocol):
    """Compute engine that owns the network weights.

    Engines may additionally provide ``async update_learning_rate(lr)``; the
    session uses it instead of a full re-initialisation when present.
    """

    async def initialize(self, hyperparameters: Hyperparameters) -> None:
        """(Re)build the network from ``hyperparameters``."""

    async def train(self, points: Sequence[Point]) -> TrainResult:
        """Run one optimisation step over ``points``."""

    async def evaluate(self, points: Sequence[Point]) -> TrainResult:
        """Score ``points`` without touching the weights."""

    async def predict(self, points: Sequence[Point]) -> list[Prediction]:
        """Classify ``points``; labels are ignored."""


class VisualizerService(Protocol):
    """Rendering surface for points and decision boundaries."""

    def render_data(self, points: Sequence[Point]) -> None:
        """Draw the labelled points."""

    def render_boundary(self, predictions: Sequence[Prediction], grid_size: int) -> None:
        """Draw a ``grid_size`` x ``grid_size`` prediction grid."""

    def clear(self) -> None:
        """Remove everything that has been drawn."""


class DatasetRepository(Protocol):
    """Source of labelled point sets."""

    async def get_dataset(
        self, dataset_type: str, options: Mapping[str, Any] | None = None
    ) -> list[Point]:
        """Return the points for ``dataset_type``."""


__all__ = ["DatasetRepository", "NeuralNetworkService", "VisualizerService"]
