"""Async dataset repository backed by the generator registry."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Mapping

from ..core.types import Point
from .registry import available_datasets, get_points

logger = logging.getLogger(__name__)

LATENCY_ENV = "NEUROVIZ_DATA_LATENCY_MS"


def _default_latency_ms() -> float:
    raw = os.environ.get(LATENCY_ENV, "0")
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{LATENCY_ENV} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ValueError(f"{LATENCY_ENV} must be >= 0")
    return value


class GeneratedDatasetRepository:
    """Serve registry datasets, optionally after a simulated network delay."""

    def __init__(self, latency_ms: float | None = None) -> None:
        self.latency_ms = _default_latency_ms() if latency_ms is None else float(latency_ms)

    def available_types(self) -> list[str]:
        return list(available_datasets())

    async def get_dataset(
        self, dataset_type: str, options: Mapping[str, Any] | None = None
    ) -> list[Point]:
        if self.latency_ms > 0:
            await asyncio.sleep(self.latency_ms / 1000.0)
        points = await asyncio.to_thread(get_points, dataset_type, options)
        logger.debug("Generated %d points for %r", len(points), dataset_type)
        return points


__all__ = ["GeneratedDatasetRepository", "LATENCY_ENV"]
