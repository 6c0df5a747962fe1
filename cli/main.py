"""Command line entry point for headless neuroviz training runs."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Iterable

from neuroviz.core.types import TrainingState
from neuroviz.data import GeneratedDatasetRepository, available_datasets
from neuroviz.engine import NumpyNeuralNet
from neuroviz.reporting import MatplotlibVisualizer, write_manifest, write_summary
from neuroviz.training.presets import (
    TrainingPreset,
    load_preset,
    preset_from_mapping,
    presets,
    read_preset_file,
)
from neuroviz.training.session import SessionOptions, TrainingSession

logger = logging.getLogger(__name__)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="quick_demo",
        help="Preset configuration to execute",
    )
    parser.add_argument(
        "--config", type=Path, help="JSON/YAML preset file used instead of --preset"
    )
    parser.add_argument(
        "--dataset",
        choices=sorted(available_datasets()),
        help="Override the dataset used by the run",
    )
    parser.add_argument("--csv-path", help="Path to a CSV file for the csv dataset")
    parser.add_argument("--samples", type=int, help="Number of generated points")
    parser.add_argument("--noise", type=float, help="Generator noise level")
    parser.add_argument(
        "--epochs", type=int, help="Epoch limit (defaults to the preset recommendation)"
    )
    parser.add_argument("--batch-size", type=int, help="Mini-batch size, 0 for full batch")
    parser.add_argument("--learning-rate", type=float, help="Override the initial learning rate")
    parser.add_argument("--validation-split", type=float, help="Validation fraction in [0, 1)")
    parser.add_argument(
        "--stratified", action="store_true", help="Keep class proportions in both partitions"
    )
    parser.add_argument("--patience", type=int, help="Early-stopping patience, 0 to disable")
    parser.add_argument(
        "--lr-schedule",
        choices=["none", "exponential", "step", "cosine", "cyclic_triangular", "cyclic_cosine"],
        help="Learning-rate schedule",
    )
    parser.add_argument(
        "--target-fps",
        type=float,
        default=1000.0,
        help="Step-rate cap of the headless loop",
    )
    parser.add_argument("--seed", type=int, default=0, help="Seed for data, splits and weights")
    parser.add_argument("--run-dir", type=Path, default=Path("runs/neuroviz"))
    parser.add_argument(
        "--enable-plots", action="store_true", help="Write decision-boundary snapshots"
    )
    parser.add_argument(
        "--render-interval", type=int, default=10, help="Epochs between boundary renders"
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def _resolve_preset(args: argparse.Namespace) -> TrainingPreset:
    if args.config:
        data = read_preset_file(args.config)
        preset = preset_from_mapping(data, name=args.config.stem)
    else:
        preset = load_preset(args.preset)

    hyperparameters = replace(preset.hyperparameters, seed=args.seed)
    if args.learning_rate is not None:
        hyperparameters = hyperparameters.with_learning_rate(args.learning_rate)

    changes: dict[str, object] = {"target_fps": args.target_fps}
    max_epochs = args.epochs if args.epochs is not None else preset.recommended_epochs
    if max_epochs <= 0:
        raise SystemExit("A headless run needs --epochs when the preset recommends none")
    changes["max_epochs"] = max_epochs
    if args.batch_size is not None:
        changes["batch_size"] = args.batch_size
    if args.validation_split is not None:
        changes["validation_split"] = args.validation_split
    if args.stratified:
        changes["stratified_split"] = True
    if args.patience is not None:
        changes["early_stopping_patience"] = args.patience
    if args.lr_schedule is not None:
        changes["lr_schedule"] = replace(preset.training.lr_schedule, type=args.lr_schedule)

    dataset_type = args.dataset or preset.dataset_type
    options = dict(preset.dataset_options) if dataset_type == preset.dataset_type else {}
    options["seed"] = args.seed
    if args.samples is not None:
        options["samples"] = args.samples
    if args.noise is not None:
        options["noise"] = args.noise
    if args.csv_path:
        options["path"] = args.csv_path

    return replace(
        preset,
        hyperparameters=hyperparameters,
        training=preset.training.merged(**changes),
        dataset_type=dataset_type,
        dataset_options=options,
    )


async def run_session(preset: TrainingPreset, args: argparse.Namespace) -> TrainingState:
    """Train ``preset`` headlessly until the loop stops and write artifacts."""

    run_dir = Path(args.run_dir)
    run_dir.mkdir(parents=True, exist_ok=True)
    visualizer = MatplotlibVisualizer(run_dir, enable_plots=args.enable_plots)
    session = TrainingSession(
        NumpyNeuralNet(),
        visualizer,
        GeneratedDatasetRepository(latency_ms=0),
        SessionOptions(render_interval=args.render_interval, frame_interval=0.0, seed=args.seed),
        config=preset.training,
    )
    await session.set_hyperparameters(preset.hyperparameters)
    await session.load_data(preset.dataset_type, preset.dataset_options)
    logger.info(
        "Running preset %r on %r for up to %d epochs",
        preset.name,
        preset.dataset_type,
        preset.training.max_epochs,
    )
    session.start()
    await session.join()
    state = session.get_state()

    (run_dir / "history.json").write_text(session.export_history("json"))
    (run_dir / "history.csv").write_text(session.export_history("csv") + "\n")
    write_summary(state.history, run_dir / "summary.json")
    write_manifest(
        run_dir / "manifest.json",
        hyperparameters=preset.hyperparameters,
        config=preset.training,
        dataset={
            "type": preset.dataset_type,
            "options": dict(preset.dataset_options),
            "training_size": state.training_size,
            "validation_size": state.validation_size,
        },
        extra={"preset": preset.name, "epochs": state.epoch, "last_error": state.last_error},
    )
    session.dispose()
    return state


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list_presets:
        for name in sorted(presets().keys()):
            print(name)
        raise SystemExit(0)

    preset = _resolve_preset(args)
    state = asyncio.run(run_session(preset, args))
    payload = {
        "preset": preset.name,
        "epochs": state.epoch,
        "loss": state.loss,
        "accuracy": state.accuracy,
        "val_loss": state.val_loss,
        "val_accuracy": state.val_accuracy,
        "run_dir": str(args.run_dir),
    }
    print(json.dumps(payload, sort_keys=True))
    if state.last_error:
        raise SystemExit(f"Training failed: {state.last_error}")


if __name__ == "__main__":
    main()
