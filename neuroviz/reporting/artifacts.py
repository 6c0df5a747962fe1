"""Run artifact helpers."""

from __future__ import annotations

import json
import platform
import time
from dataclasses import asdict
from pathlib import Path
from typing import Mapping

from ..core.types import Hyperparameters, TrainingConfig


def write_manifest(
    path: str | Path,
    *,
    hyperparameters: Hyperparameters,
    config: TrainingConfig,
    dataset: Mapping[str, object],
    extra: Mapping[str, object] | None = None,
) -> str:
    """Write a manifest JSON file capturing the run's configuration."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    manifest = {
        "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "hyperparameters": asdict(hyperparameters),
        "training": asdict(config),
        "dataset": dict(dataset),
        "environment": {"python": platform.python_version()},
    }
    if extra:
        manifest.update(extra)
    path.write_text(json.dumps(manifest, indent=2, sort_keys=True))
    return str(path)


__all__ = ["write_manifest"]
