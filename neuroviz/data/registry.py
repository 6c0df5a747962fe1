"""Registry of 2D point-set generators."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, Iterable, Mapping, MutableMapping

import numpy as np

from ..core.types import Point


@dataclass(frozen=True)
class DatasetOptions:
    """Parameters shared by every generator.

    Attributes
    ----------
    samples:
        Requested number of points.  Generators may return slightly fewer
        when the classes cannot be split evenly.
    noise:
        Generator-specific noise level, ``0`` for a clean shape.
    num_classes:
        Number of labels for generators that support more than two.
    class_balance:
        Fraction of the samples assigned to class ``0``.
    seed:
        Seed for the generator's random stream.
    extra:
        Loader-specific keys, e.g. ``path`` for CSV files.
    """

    samples: int = 200
    noise: float = 0.1
    num_classes: int = 2
    class_balance: float = 0.5
    seed: int | None = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.samples < 1:
            raise ValueError("samples must be >= 1")
        if self.noise < 0:
            raise ValueError("noise must be >= 0")
        if self.num_classes < 2:
            raise ValueError("num_classes must be >= 2")
        if not 0 < self.class_balance < 1:
            raise ValueError("class_balance must be in (0, 1)")

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> "DatasetOptions":
        known = {f.name for f in fields(cls)} - {"extra"}
        data = dict(options or {})
        base = {key: data.pop(key) for key in list(data) if key in known}
        return cls(**base, extra=data)


DatasetFactory = Callable[[DatasetOptions, np.random.Generator], list[Point]]

_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a point-set factory.

    Usable as a decorator::

        @register_dataset("circle")
        def make_circle(options, rng):
            ...

    or directly as ``register_dataset("circle", make_circle)``.
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    if name is None:
        raise TypeError("register_dataset requires a name when used without a decorator")
    return _decorator


def get_points(dataset: str, options: Mapping[str, Any] | None = None) -> list[Point]:
    """Generate the points of ``dataset``; names are case-insensitive."""

    key = dataset.lower()
    if key not in _REGISTRY:
        raise KeyError(
            f"Unknown dataset type: {dataset!r}. Available: {', '.join(available_datasets())}"
        )
    resolved = DatasetOptions.from_mapping(options)
    rng = np.random.default_rng(resolved.seed)
    return _REGISTRY[key](resolved, rng)


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


def class_sizes(samples: int, num_classes: int, class_balance: float) -> list[int]:
    """Split ``samples`` between classes; class ``0`` receives ``class_balance``."""

    first = int(round(samples * class_balance))
    if num_classes == 2:
        return [first, samples - first]
    rest = (samples - first) // (num_classes - 1)
    return [first] + [rest] * (num_classes - 1)


__all__ = [
    "DatasetFactory",
    "DatasetOptions",
    "available_datasets",
    "class_sizes",
    "get_points",
    "register_dataset",
]
