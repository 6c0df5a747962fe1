"""Dense numpy classifier exposed through the async engine contract."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..core.types import Hyperparameters, Point, Prediction, TrainResult
from ..errors import EngineNotInitialisedError
from .activations import Array, get_activation
from .losses import REGISTRY, softmax
from .optimizers import Optimizer, build_optimizer

logger = logging.getLogger(__name__)

INPUT_DIM = 2


def points_to_arrays(points: Sequence[Point]) -> Tuple[Array, Array]:
    """Stack ``points`` into an ``(n, 2)`` input matrix and a label vector."""

    X = np.asarray([(p.x, p.y) for p in points], dtype=np.float64).reshape(-1, INPUT_DIM)
    y = np.asarray([p.label for p in points], dtype=np.int64)
    return X, y


class DenseClassifier:
    """Fully connected network with softmax outputs, trained synchronously."""

    def __init__(self, hyperparameters: Hyperparameters) -> None:
        self.hyperparameters = hyperparameters
        self.num_classes = hyperparameters.num_classes
        self.activation = get_activation(hyperparameters.activation)
        self.loss = REGISTRY.resolve(hyperparameters.loss)
        self.optimizer: Optimizer = build_optimizer(
            hyperparameters.optimizer,
            hyperparameters.learning_rate,
            momentum=hyperparameters.momentum,
        )

        rng = np.random.default_rng(hyperparameters.seed)
        sizes = [INPUT_DIM, *hyperparameters.layers, self.num_classes]
        self.weights: List[Array] = []
        self.biases: List[Array] = []
        for fan_in, fan_out in zip(sizes[:-1], sizes[1:]):
            scale = np.sqrt(2.0 / (fan_in + fan_out))
            self.weights.append(rng.normal(0.0, scale, size=(fan_in, fan_out)))
            self.biases.append(np.zeros(fan_out))

    def forward(self, X: Array) -> Tuple[Array, List[Array], List[Array]]:
        """Return logits plus per-layer inputs and activation derivatives."""

        inputs: List[Array] = []
        derivs: List[Array] = []
        h = X
        for W, b in zip(self.weights[:-1], self.biases[:-1]):
            inputs.append(h)
            h, deriv = self.activation(h @ W + b)
            derivs.append(deriv)
        inputs.append(h)
        logits = h @ self.weights[-1] + self.biases[-1]
        return logits, inputs, derivs

    def _check_labels(self, y: Array) -> None:
        if y.size and (y.min() < 0 or y.max() >= self.num_classes):
            raise ValueError(
                f"labels must lie in [0, {self.num_classes - 1}] for a "
                f"{self.num_classes}-class network"
            )

    def train_step(self, X: Array, y: Array) -> TrainResult:
        if X.shape[0] == 0:
            raise ValueError("cannot train on an empty batch")
        self._check_labels(y)
        logits, inputs, derivs = self.forward(X)
        loss, delta = self.loss(logits, y)
        accuracy = float(np.mean(np.argmax(logits, axis=1) == y))

        hp = self.hyperparameters
        grad_w: List[Array] = [np.empty(0)] * len(self.weights)
        grad_b: List[Array] = [np.empty(0)] * len(self.biases)
        for layer in reversed(range(len(self.weights))):
            W = self.weights[layer]
            grad_w[layer] = inputs[layer].T @ delta
            grad_b[layer] = delta.sum(axis=0)
            if hp.l2_regularization:
                grad_w[layer] = grad_w[layer] + hp.l2_regularization * W
            if hp.l1_regularization:
                grad_w[layer] = grad_w[layer] + hp.l1_regularization * np.sign(W)
            if layer:
                delta = (delta @ W.T) * derivs[layer - 1]

        self.optimizer.step(self.weights + self.biases, grad_w + grad_b)
        return TrainResult(loss=loss, accuracy=accuracy)

    def evaluate(self, X: Array, y: Array) -> TrainResult:
        if X.shape[0] == 0:
            raise ValueError("cannot evaluate an empty point set")
        self._check_labels(y)
        logits, _, _ = self.forward(X)
        loss, _ = self.loss(logits, y)
        return TrainResult(loss=loss, accuracy=float(np.mean(np.argmax(logits, axis=1) == y)))

    def predict_proba(self, X: Array) -> Array:
        logits, _, _ = self.forward(X)
        return softmax(logits)


class NumpyNeuralNet:
    """Async facade over :class:`DenseClassifier`.

    Every numeric call runs in a worker thread via :func:`asyncio.to_thread`
    so the event loop keeps ticking while an epoch is computed.
    """

    def __init__(self) -> None:
        self._model: Optional[DenseClassifier] = None

    @property
    def model(self) -> DenseClassifier:
        if self._model is None:
            raise EngineNotInitialisedError("Network not initialised. Call initialize() first.")
        return self._model

    @property
    def learning_rate(self) -> float:
        return self.model.optimizer.learning_rate

    async def initialize(self, hyperparameters: Hyperparameters) -> None:
        self._model = await asyncio.to_thread(DenseClassifier, hyperparameters)
        logger.debug(
            "Built %d-layer network %s",
            len(self._model.weights),
            [INPUT_DIM, *hyperparameters.layers, hyperparameters.num_classes],
        )

    async def train(self, points: Sequence[Point]) -> TrainResult:
        model = self.model
        X, y = points_to_arrays(points)
        return await asyncio.to_thread(model.train_step, X, y)

    async def evaluate(self, points: Sequence[Point]) -> TrainResult:
        model = self.model
        X, y = points_to_arrays(points)
        return await asyncio.to_thread(model.evaluate, X, y)

    async def predict(self, points: Sequence[Point]) -> list[Prediction]:
        model = self.model
        X, _ = points_to_arrays(points)
        probs = await asyncio.to_thread(model.predict_proba, X)
        classes = np.argmax(probs, axis=1)
        return [
            Prediction(
                x=p.x,
                y=p.y,
                confidence=float(row[cls]),
                predicted_class=int(cls),
                probabilities=tuple(float(v) for v in row),
            )
            for p, row, cls in zip(points, probs, classes)
        ]

    async def update_learning_rate(self, learning_rate: float) -> None:
        if learning_rate <= 0:
            raise ValueError("learning_rate must be positive")
        self.model.optimizer.learning_rate = float(learning_rate)


__all__ = ["DenseClassifier", "INPUT_DIM", "NumpyNeuralNet", "points_to_arrays"]
