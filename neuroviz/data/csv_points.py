"""Load labelled 2D points from CSV files."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pandas as pd
from sklearn.preprocessing import LabelEncoder

from ..core.types import Point
from .registry import DatasetOptions, register_dataset

logger = logging.getLogger(__name__)


def read_points(
    path: str | Path,
    *,
    x_col: str = "x",
    y_col: str = "y",
    label_col: str = "label",
    normalize: bool = True,
) -> list[Point]:
    """Read ``path`` into points, encoding arbitrary labels as ``0..k-1``.

    Rows with missing or non-numeric coordinates are dropped with a warning.
    With ``normalize`` the coordinates are rescaled into ``[-1, 1]``.
    """

    df = pd.read_csv(path)
    for column in (x_col, y_col, label_col):
        if column not in df.columns:
            raise KeyError(f"Column {column!r} not found in CSV")

    coords = df[[x_col, y_col]].apply(pd.to_numeric, errors="coerce")
    usable = coords.notna().all(axis=1) & df[label_col].notna()
    dropped = int((~usable).sum())
    if dropped:
        logger.warning("Dropped %d unusable rows from %s", dropped, path)
    coords = coords[usable].to_numpy(dtype=np.float64)
    if coords.shape[0] == 0:
        raise ValueError(f"No usable rows in {path}")

    labels = LabelEncoder().fit_transform(df.loc[usable, label_col].astype(str))
    if normalize:
        low = coords.min(axis=0)
        span = coords.max(axis=0) - low
        span[span == 0] = 1.0
        coords = (coords - low) / span * 2.0 - 1.0

    return [
        Point(x=float(x), y=float(y), label=int(label))
        for (x, y), label in zip(coords, labels)
    ]


@register_dataset("csv")
def load_csv(options: DatasetOptions, rng: np.random.Generator) -> list[Point]:
    """Registry adapter; ``options.extra`` carries ``path``, column names and an optional
    ``limit`` on the number of rows kept."""

    extra = dict(options.extra)
    try:
        path = extra.pop("path")
    except KeyError as exc:
        raise KeyError("csv dataset requires a 'path' option") from exc
    limit = extra.pop("limit", None)
    points = read_points(path, **extra)
    if limit is not None and int(limit) < len(points):
        keep = np.sort(rng.permutation(len(points))[: int(limit)])
        points = [points[int(i)] for i in keep]
    return points


__all__ = ["load_csv", "read_points"]
