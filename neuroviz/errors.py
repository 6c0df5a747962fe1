"""Exception hierarchy for neuroviz."""

from __future__ import annotations


class NeuroVizError(Exception):
    """Base class for errors raised by neuroviz."""


class NotReadyError(NeuroVizError):
    """Training was requested before hyperparameters or data were provided."""


class EngineNotInitialisedError(NeuroVizError, RuntimeError):
    """The compute engine was used before ``initialize`` completed."""


__all__ = ["EngineNotInitialisedError", "NeuroVizError", "NotReadyError"]
