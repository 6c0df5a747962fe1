"""Mini-batch sampling over the training partition."""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from ..core.types import Point


def sample_batch(
    training: Sequence[Point],
    batch_size: int,
    rng: np.random.Generator,
) -> Tuple[Point, ...]:
    """Draw ``batch_size`` points uniformly without replacement.

    A non-positive ``batch_size`` or one that covers the whole partition
    yields every point.  The result is always a fresh tuple.
    """

    n = len(training)
    if batch_size <= 0 or batch_size >= n:
        return tuple(training)
    order = rng.permutation(n)[:batch_size]
    return tuple(training[int(i)] for i in order)


__all__ = ["sample_batch"]
