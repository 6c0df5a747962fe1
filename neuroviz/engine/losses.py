"""Classification losses computed on logits."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

import numpy as np

from .activations import Array

LossFn = Callable[[Array, Array], tuple[float, Array]]


@dataclass(frozen=True)
class Loss:
    """Loss wrapper returning both the scalar loss and dL/dlogits."""

    name: str
    fn: LossFn

    def __call__(self, logits: Array, labels: Array) -> tuple[float, Array]:
        return self.fn(logits, labels)


class LossRegistry:
    """Central registry for loss functions."""

    def __init__(self) -> None:
        self._registry: Dict[str, Loss] = {}

    def register(self, name: str, fn: LossFn) -> None:
        self._registry[name] = Loss(name, fn)

    def names(self) -> Iterable[str]:
        return sorted(self._registry)

    def resolve(self, name: str) -> Loss:
        if name not in self._registry:
            available = ", ".join(sorted(self._registry))
            raise KeyError(f"Unknown loss {name!r}. Available losses: {available}")
        return self._registry[name]


REGISTRY = LossRegistry()


def softmax(logits: Array) -> Array:
    shifted = logits - np.max(logits, axis=1, keepdims=True)
    exp = np.exp(shifted)
    return exp / np.sum(exp, axis=1, keepdims=True)


def one_hot(labels: Array, num_classes: int) -> Array:
    return np.eye(num_classes, dtype=np.float64)[labels.astype(int)]


def _cross_entropy(logits: Array, labels: Array) -> tuple[float, Array]:
    n, num_classes = logits.shape
    target = one_hot(labels, num_classes)
    probs = softmax(logits)
    eps = 1e-12
    loss = float(-np.mean(np.sum(target * np.log(probs + eps), axis=1)))
    return loss, (probs - target) / n


def _mse(logits: Array, labels: Array) -> tuple[float, Array]:
    # Squared error between softmax probabilities and one-hot targets.
    n, num_classes = logits.shape
    probs = softmax(logits)
    diff = probs - one_hot(labels, num_classes)
    loss = float(np.mean(np.sum(diff**2, axis=1)))
    grad_probs = 2.0 * diff / n
    grad = probs * (grad_probs - np.sum(grad_probs * probs, axis=1, keepdims=True))
    return loss, grad


def _hinge(logits: Array, labels: Array) -> tuple[float, Array]:
    n = logits.shape[0]
    rows = np.arange(n)
    idx = labels.astype(int)
    correct = logits[rows, idx][:, None]
    margins = np.maximum(0.0, 1.0 + logits - correct)
    margins[rows, idx] = 0.0
    loss = float(np.mean(np.sum(margins, axis=1)))
    active = (margins > 0).astype(np.float64)
    active[rows, idx] = -np.sum(active, axis=1)
    return loss, active / n


REGISTRY.register("cross_entropy", _cross_entropy)
REGISTRY.register("mse", _mse)
REGISTRY.register("hinge", _hinge)

__all__ = ["Loss", "LossRegistry", "REGISTRY", "one_hot", "softmax"]
