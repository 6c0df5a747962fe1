"""Training/validation partitioning of point sets."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Dict, Mapping, Sequence, Tuple

import numpy as np

from ..core.types import Point


@dataclass(frozen=True)
class SplitData:
    """Result of a partition.

    ``all`` holds the training points followed by the validation points, each
    tagged with ``is_validation`` so a visualiser can tell them apart.
    """

    training: Tuple[Point, ...]
    validation: Tuple[Point, ...]
    all: Tuple[Point, ...]


def _check_fraction(validation_split: float) -> None:
    if not 0 <= validation_split < 1:
        raise ValueError("validation_split must be in [0, 1)")


def _shuffled(points: Sequence[Point], rng: np.random.Generator) -> list[Point]:
    order = rng.permutation(len(points))
    return [points[int(i)] for i in order]


def _training_count(n_points: int, validation_split: float) -> int:
    # Tolerance keeps e.g. 100 * (1 - 0.2) from rounding down to 79.
    return int(math.floor(n_points * (1.0 - validation_split) + 1e-9))


def _tag(points: Sequence[Point], is_validation: bool) -> Tuple[Point, ...]:
    return tuple(replace(p, is_validation=is_validation) for p in points)


def split(
    points: Sequence[Point],
    validation_split: float,
    rng: np.random.Generator,
    *,
    shuffle: bool = True,
) -> SplitData:
    """Partition ``points`` into disjoint training and validation subsets."""

    _check_fraction(validation_split)
    ordered = _shuffled(points, rng) if shuffle else list(points)
    cut = _training_count(len(ordered), validation_split)
    training = _tag(ordered[:cut], False)
    validation = _tag(ordered[cut:], True)
    return SplitData(training=training, validation=validation, all=training + validation)


def stratified_split(
    points: Sequence[Point],
    validation_split: float,
    rng: np.random.Generator,
) -> SplitData:
    """Partition each label separately so both subsets keep the class mix."""

    _check_fraction(validation_split)
    by_label: Dict[int, list[Point]] = {}
    for point in points:
        by_label.setdefault(point.label, []).append(point)

    training: list[Point] = []
    validation: list[Point] = []
    for label in sorted(by_label):
        group = _shuffled(by_label[label], rng)
        cut = _training_count(len(group), validation_split)
        training.extend(group[:cut])
        validation.extend(group[cut:])

    train_tagged = _tag(_shuffled(training, rng), False)
    val_tagged = _tag(_shuffled(validation, rng), True)
    return SplitData(training=train_tagged, validation=val_tagged, all=train_tagged + val_tagged)


def split_statistics(data: SplitData) -> Mapping[str, object]:
    """Summarise sizes and the per-class distribution of a partition."""

    classes: Dict[int, Dict[str, int]] = {}
    for name, subset in (("training", data.training), ("validation", data.validation)):
        for point in subset:
            counts = classes.setdefault(point.label, {"training": 0, "validation": 0})
            counts[name] += 1
    total = len(data.all)
    return {
        "total_samples": total,
        "training_samples": len(data.training),
        "validation_samples": len(data.validation),
        "validation_fraction": len(data.validation) / max(total, 1),
        "class_distribution": {label: classes[label] for label in sorted(classes)},
    }


__all__ = ["SplitData", "split", "split_statistics", "stratified_split"]
