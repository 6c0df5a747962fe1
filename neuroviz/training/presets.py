"""Named training presets, built in or loaded from preset files."""

from __future__ import annotations

import json
import os
from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping

from ..core.types import Hyperparameters, TrainingConfig

PRESET_DIR_ENV = "NEUROVIZ_PRESET_DIR"


@dataclass(frozen=True)
class TrainingPreset:
    """Everything needed to reproduce a demo run."""

    name: str
    description: str
    hyperparameters: Hyperparameters
    dataset_type: str
    recommended_epochs: int
    training: TrainingConfig = field(default_factory=TrainingConfig)
    dataset_options: Mapping[str, Any] = field(default_factory=dict)


_PRESETS: Dict[str, Mapping[str, Any]] = {
    "quick_demo": {
        "description": "Fast training with a single small hidden layer",
        "hyperparameters": {
            "learning_rate": 0.1,
            "layers": [4],
            "activation": "relu",
            "optimizer": "adam",
        },
        "dataset": {"type": "circle"},
        "recommended_epochs": 100,
    },
    "deep_network": {
        "description": "Multiple hidden layers for complex pattern learning",
        "hyperparameters": {
            "learning_rate": 0.01,
            "layers": [16, 16, 8],
            "activation": "relu",
            "optimizer": "adam",
            "l2_regularization": 0.0001,
        },
        "dataset": {"type": "spiral"},
        "recommended_epochs": 500,
    },
    "high_accuracy": {
        "description": "Smaller learning rate, longer schedule",
        "hyperparameters": {
            "learning_rate": 0.005,
            "layers": [12, 8],
            "activation": "tanh",
            "optimizer": "adam",
            "momentum": 0.95,
            "l2_regularization": 0.0001,
        },
        "training": {
            "early_stopping_patience": 50,
            "lr_schedule": {"type": "cosine"},
        },
        "dataset": {"type": "xor"},
        "recommended_epochs": 1000,
    },
    "overfit_demo": {
        "description": "Large unregularised network on a small noisy set",
        "hyperparameters": {
            "learning_rate": 0.05,
            "layers": [32, 32, 16, 8],
            "activation": "relu",
            "optimizer": "sgd",
            "momentum": 0.9,
        },
        "training": {"validation_split": 0.3},
        "dataset": {"type": "gaussian", "options": {"samples": 60, "noise": 0.4}},
        "recommended_epochs": 2000,
    },
    "regularization": {
        "description": "Same network as overfit_demo with l1/l2 penalties",
        "hyperparameters": {
            "learning_rate": 0.05,
            "layers": [32, 32, 16, 8],
            "activation": "relu",
            "optimizer": "sgd",
            "momentum": 0.9,
            "l1_regularization": 0.0001,
            "l2_regularization": 0.001,
        },
        "training": {"validation_split": 0.3, "early_stopping_patience": 100},
        "dataset": {"type": "gaussian", "options": {"samples": 60, "noise": 0.4}},
        "recommended_epochs": 2000,
    },
}


def _preset_dir() -> Path | None:
    value = os.environ.get(PRESET_DIR_ENV)
    return Path(value) if value else None


def read_preset_file(path: Path) -> Mapping[str, Any]:
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported preset file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Preset {path.name} must decode to a mapping")
    return data


def _file_presets() -> Dict[str, Mapping[str, Any]]:
    directory = _preset_dir()
    found: Dict[str, Mapping[str, Any]] = {}
    if directory is None or not directory.is_dir():
        return found
    for file in sorted(directory.iterdir()):
        if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
            continue
        data = read_preset_file(file)
        missing = {"hyperparameters", "dataset"} - set(data)
        if missing:
            raise KeyError(
                f"Preset {file.name} is missing required sections: {', '.join(sorted(missing))}"
            )
        found[file.stem] = json.loads(json.dumps(data))
    return found


def preset_from_mapping(data: Mapping[str, Any], name: str = "custom") -> TrainingPreset:
    """Build a :class:`TrainingPreset` from its JSON/YAML representation."""

    dataset = dict(data.get("dataset") or {})
    if "type" not in dataset:
        raise KeyError(f"Preset {name!r} must name a dataset type")
    return TrainingPreset(
        name=name,
        description=str(data.get("description", "")),
        hyperparameters=Hyperparameters(**dict(data["hyperparameters"])),
        dataset_type=str(dataset["type"]),
        dataset_options=dict(dataset.get("options") or {}),
        recommended_epochs=int(data.get("recommended_epochs", 0)),
        training=TrainingConfig(**dict(data.get("training") or {})),
    )


def presets() -> Mapping[str, Mapping[str, Any]]:
    """Return raw preset mappings; files override built-ins of the same name."""

    combined: Dict[str, Mapping[str, Any]] = {
        name: deepcopy(cfg) for name, cfg in _PRESETS.items()
    }
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> TrainingPreset:
    available = presets()
    if name not in available:
        raise KeyError(f"Unknown preset {name!r}. Available: {', '.join(sorted(available))}")
    return preset_from_mapping(available[name], name=name)


__all__ = [
    "PRESET_DIR_ENV",
    "TrainingPreset",
    "load_preset",
    "preset_from_mapping",
    "presets",
    "read_preset_file",
]
