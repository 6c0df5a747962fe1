"""First-order optimizers updating parameter arrays in place."""

from __future__ import annotations

from typing import Dict, List, Sequence

import numpy as np

from .activations import Array


class Optimizer:
    """Base class; ``learning_rate`` may be changed between steps."""

    def __init__(self, learning_rate: float) -> None:
        self.learning_rate = float(learning_rate)
        self.iterations = 0

    def step(self, params: Sequence[Array], grads: Sequence[Array]) -> None:
        self.iterations += 1
        for index, (param, grad) in enumerate(zip(params, grads)):
            param -= self._update(index, param, grad)

    def _update(self, index: int, param: Array, grad: Array) -> Array:
        raise NotImplementedError


class SGD(Optimizer):
    """SGD with classical momentum."""

    def __init__(self, learning_rate: float, momentum: float = 0.0) -> None:
        super().__init__(learning_rate)
        self.momentum = momentum
        self._velocity: Dict[int, Array] = {}

    def _update(self, index: int, param: Array, grad: Array) -> Array:
        if not self.momentum:
            return self.learning_rate * grad
        velocity = self._velocity.get(index, np.zeros_like(param))
        velocity = self.momentum * velocity + self.learning_rate * grad
        self._velocity[index] = velocity
        return velocity


class Adam(Optimizer):
    def __init__(
        self,
        learning_rate: float,
        beta1: float = 0.9,
        beta2: float = 0.999,
        eps: float = 1e-8,
    ) -> None:
        super().__init__(learning_rate)
        self.beta1 = beta1
        self.beta2 = beta2
        self.eps = eps
        self._m: Dict[int, Array] = {}
        self._v: Dict[int, Array] = {}

    def _update(self, index: int, param: Array, grad: Array) -> Array:
        m = self.beta1 * self._m.get(index, np.zeros_like(param)) + (1 - self.beta1) * grad
        v = self.beta2 * self._v.get(index, np.zeros_like(param)) + (1 - self.beta2) * grad**2
        self._m[index] = m
        self._v[index] = v
        m_hat = m / (1 - self.beta1**self.iterations)
        v_hat = v / (1 - self.beta2**self.iterations)
        return self.learning_rate * m_hat / (np.sqrt(v_hat) + self.eps)


class RMSProp(Optimizer):
    def __init__(self, learning_rate: float, rho: float = 0.9, eps: float = 1e-8) -> None:
        super().__init__(learning_rate)
        self.rho = rho
        self.eps = eps
        self._avg: Dict[int, Array] = {}

    def _update(self, index: int, param: Array, grad: Array) -> Array:
        avg = self.rho * self._avg.get(index, np.zeros_like(param)) + (1 - self.rho) * grad**2
        self._avg[index] = avg
        return self.learning_rate * grad / (np.sqrt(avg) + self.eps)


class Adagrad(Optimizer):
    def __init__(self, learning_rate: float, eps: float = 1e-8) -> None:
        super().__init__(learning_rate)
        self.eps = eps
        self._sum: Dict[int, Array] = {}

    def _update(self, index: int, param: Array, grad: Array) -> Array:
        total = self._sum.get(index, np.zeros_like(param)) + grad**2
        self._sum[index] = total
        return self.learning_rate * grad / (np.sqrt(total) + self.eps)


def build_optimizer(name: str, learning_rate: float, momentum: float = 0.9) -> Optimizer:
    if name == "sgd":
        return SGD(learning_rate, momentum=momentum)
    if name == "adam":
        return Adam(learning_rate)
    if name == "rmsprop":
        return RMSProp(learning_rate)
    if name == "adagrad":
        return Adagrad(learning_rate)
    raise ValueError(f"Unknown optimizer: {name}")


OPTIMIZER_NAMES: List[str] = ["sgd", "adam", "rmsprop", "adagrad"]

__all__ = [
    "Adagrad",
    "Adam",
    "OPTIMIZER_NAMES",
    "Optimizer",
    "RMSProp",
    "SGD",
    "build_optimizer",
]
