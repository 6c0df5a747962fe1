"""Dataset registry and repository."""

# Ensure built-in datasets register themselves when the package is imported.
from . import csv_points as _csv_points  # noqa: F401
from . import generators as _generators  # noqa: F401
from .registry import (
    DatasetOptions,
    available_datasets,
    class_sizes,
    get_points,
    register_dataset,
)
from .repository import GeneratedDatasetRepository

__all__ = [
    "DatasetOptions",
    "GeneratedDatasetRepository",
    "available_datasets",
    "class_sizes",
    "get_points",
    "register_dataset",
]
