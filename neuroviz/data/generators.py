"""Synthetic 2D classification datasets."""

from __future__ import annotations

import math

import numpy as np
from sklearn.datasets import make_blobs, make_moons

from ..core.types import Point
from .registry import DatasetOptions, class_sizes, register_dataset


def _to_points(xs: np.ndarray, ys: np.ndarray, labels: np.ndarray, rng: np.random.Generator) -> list[Point]:
    order = rng.permutation(len(labels))
    return [Point(x=float(xs[i]), y=float(ys[i]), label=int(labels[i])) for i in order]


def _uniform(rng: np.random.Generator, scale: float, size: int) -> np.ndarray:
    return rng.uniform(-scale, scale, size=size)


@register_dataset("circle")
def make_circle(options: DatasetOptions, rng: np.random.Generator) -> list[Point]:
    """Concentric rings, one per class."""

    xs, ys, labels = [], [], []
    sizes = class_sizes(options.samples, options.num_classes, options.class_balance)
    for label, count in enumerate(sizes):
        if not count:
            continue
        base = 0.2 + (label * 0.6) / max(options.num_classes - 1, 1)
        angle = 2 * math.pi * np.arange(count) / count
        radius = base + _uniform(rng, 0.25 * options.noise, count)
        xs.append(radius * np.cos(angle) + _uniform(rng, 0.2 * options.noise, count))
        ys.append(radius * np.sin(angle) + _uniform(rng, 0.2 * options.noise, count))
        labels.append(np.full(count, label))
    return _to_points(np.concatenate(xs), np.concatenate(ys), np.concatenate(labels), rng)


@register_dataset("xor")
def make_xor(options: DatasetOptions, rng: np.random.Generator) -> list[Point]:
    """Four quadrant blobs; diagonal quadrants share a label."""

    jitter = 0.3 * options.noise
    xs, ys, labels = [], [], []
    quadrants = {0: ((1, 1), (-1, -1)), 1: ((1, -1), (-1, 1))}
    for label, count in enumerate(class_sizes(options.samples, 2, options.class_balance)):
        half = count // 2
        for sx, sy in quadrants[label]:
            xs.append(sx * rng.uniform(0.2, 0.8, half) + _uniform(rng, jitter, half))
            ys.append(sy * rng.uniform(0.2, 0.8, half) + _uniform(rng, jitter, half))
            labels.append(np.full(half, label))
    return _to_points(np.concatenate(xs), np.concatenate(ys), np.concatenate(labels), rng)


@register_dataset("spiral")
def make_spiral(options: DatasetOptions, rng: np.random.Generator) -> list[Point]:
    """Interleaved spiral arms, one per class."""

    xs, ys, labels = [], [], []
    sizes = class_sizes(options.samples, options.num_classes, options.class_balance)
    for arm, count in enumerate(sizes):
        if not count:
            continue
        t = np.arange(count) / count * 2 * math.pi
        radius = (0.1 + t / (2 * math.pi) * 0.8) * (1 + _uniform(rng, options.noise, count))
        angle = t + arm * 2 * math.pi / options.num_classes
        xs.append(radius * np.cos(angle))
        ys.append(radius * np.sin(angle))
        labels.append(np.full(count, arm))
    return _to_points(np.concatenate(xs), np.concatenate(ys), np.concatenate(labels), rng)


@register_dataset("gaussian")
def make_gaussian(options: DatasetOptions, rng: np.random.Generator) -> list[Point]:
    """Two normal clouds centred on opposite diagonal corners."""

    spread = 0.15 + 0.3 * options.noise
    xs, ys, labels = [], [], []
    centres = ((-0.5, -0.5), (0.5, 0.5))
    for label, count in enumerate(class_sizes(options.samples, 2, options.class_balance)):
        cx, cy = centres[label]
        xs.append(rng.normal(cx, spread, count))
        ys.append(rng.normal(cy, spread, count))
        labels.append(np.full(count, label))
    return _to_points(np.concatenate(xs), np.concatenate(ys), np.concatenate(labels), rng)


@register_dataset("clusters")
def make_clusters(options: DatasetOptions, rng: np.random.Generator) -> list[Point]:
    """Isotropic blobs laid out on a square grid inside ``[-0.7, 0.7]``."""

    k = options.num_classes
    side = math.ceil(math.sqrt(k))
    centres = [
        (((i % side) + 0.5) / side * 1.4 - 0.7, ((i // side) + 0.5) / side * 1.4 - 0.7)
        for i in range(k)
    ]
    sizes = class_sizes(options.samples, k, options.class_balance)
    X, y = make_blobs(
        n_samples=sizes,
        centers=centres,
        cluster_std=0.12 + 0.2 * options.noise,
        shuffle=False,
        random_state=int(rng.integers(0, 2**31 - 1)),
    )
    return _to_points(X[:, 0], X[:, 1], y, rng)


@register_dataset("moons")
def make_two_moons(options: DatasetOptions, rng: np.random.Generator) -> list[Point]:
    """Two interleaving half circles scaled into ``[-1, 1]``."""

    X, y = make_moons(
        n_samples=tuple(class_sizes(options.samples, 2, options.class_balance)),
        noise=0.2 * options.noise,
        shuffle=False,
        random_state=int(rng.integers(0, 2**31 - 1)),
    )
    # make_moons spans roughly [-1, 2] x [-0.5, 1].
    xs = (X[:, 0] - 0.5) / 1.5
    ys = (X[:, 1] - 0.25) / 1.5
    return _to_points(xs, ys, y, rng)


__all__ = [
    "make_circle",
    "make_clusters",
    "make_gaussian",
    "make_spiral",
    "make_two_moons",
    "make_xor",
]
