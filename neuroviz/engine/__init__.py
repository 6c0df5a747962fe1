"""Reference numpy compute engine."""

from .losses import REGISTRY as LOSSES
from .network import DenseClassifier, NumpyNeuralNet
from .optimizers import build_optimizer

__all__ = ["DenseClassifier", "LOSSES", "NumpyNeuralNet", "build_optimizer"]
