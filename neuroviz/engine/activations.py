"""Hidden-layer activations and their derivatives."""

from __future__ import annotations

from typing import Callable, Dict, Tuple

import numpy as np

Array = np.ndarray
ActivationFn = Callable[[Array], Tuple[Array, Array]]


def relu(x: Array) -> Tuple[Array, Array]:
    """Return the ReLU activation and its derivative."""

    return np.maximum(x, 0.0), (x > 0).astype(x.dtype)


def sigmoid(x: Array) -> Tuple[Array, Array]:
    out = 1.0 / (1.0 + np.exp(-np.clip(x, -60.0, 60.0)))
    return out, out * (1.0 - out)


def tanh(x: Array) -> Tuple[Array, Array]:
    out = np.tanh(x)
    return out, 1.0 - out**2


def elu(x: Array, alpha: float = 1.0) -> Tuple[Array, Array]:
    negative = alpha * np.expm1(np.minimum(x, 0.0))
    out = np.where(x > 0, x, negative)
    deriv = np.where(x > 0, 1.0, negative + alpha)
    return out, deriv


ACTIVATIONS: Dict[str, ActivationFn] = {
    "relu": relu,
    "sigmoid": sigmoid,
    "tanh": tanh,
    "elu": elu,
}


def get_activation(name: str) -> ActivationFn:
    try:
        return ACTIVATIONS[name]
    except KeyError as exc:
        raise KeyError(f"Unknown activation: {name}") from exc


__all__ = ["ACTIVATIONS", "ActivationFn", "elu", "get_activation", "relu", "sigmoid", "tanh"]
