"""Frame-driven training session with a single-step re-entrancy guard.

The session drives an asynchronous compute engine one epoch at a time.  Each
frame decides whether to run a step, skip, or stop; a step that is still in
flight makes every later frame (and every manual :meth:`TrainingSession.step`)
a no-op until it settles.  Work is never queued, so a slow engine simply
lowers the step rate.

Every continuation after an ``await`` re-checks the session generation.
``reset``, ``clear_all``, new hyperparameters and new data bump the
generation, which turns the result of a step that was in flight into a no-op.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence, Set, Tuple

import numpy as np

from ..core.ports import DatasetRepository, NeuralNetworkService, VisualizerService
from ..core.types import (
    Hyperparameters,
    Point,
    TrainingConfig,
    TrainingHistory,
    TrainingRecord,
    TrainingState,
)
from ..errors import NotReadyError
from .early_stopping import EarlyStopping
from .frames import DISPLAY_REFRESH_INTERVAL, FrameScheduler
from .history import export_history
from .partition import SplitData, split, stratified_split
from .sampling import sample_batch
from .schedule import has_significant_change, scheduled_lr

logger = logging.getLogger(__name__)

StateListener = Callable[[TrainingState], None]

_EMPTY_SPLIT = SplitData(training=(), validation=(), all=())
# Floor for scheduled rates so a re-initialised engine never sees zero.
_MIN_LEARNING_RATE = 1e-8


@dataclass(frozen=True)
class SessionOptions:
    """Construction-time settings of a :class:`TrainingSession`.

    Attributes
    ----------
    render_interval:
        Render the decision boundary every ``render_interval`` epochs
        (``0`` disables boundary rendering).
    grid_size:
        Points per axis of the prediction grid spanning ``[-1, 1]``.
    frame_interval:
        Seconds between two frame callbacks.
    lr_change_threshold:
        Relative change below which a scheduled learning rate is not applied.
    seed:
        Seed for partition shuffles and batch sampling.
    """

    render_interval: int = 10
    grid_size: int = 50
    frame_interval: float = DISPLAY_REFRESH_INTERVAL
    lr_change_threshold: float = 0.01
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.render_interval < 0:
            raise ValueError("render_interval must be >= 0")
        if self.grid_size < 2:
            raise ValueError("grid_size must be >= 2")
        if self.lr_change_threshold < 0:
            raise ValueError("lr_change_threshold must be >= 0")


def prediction_grid(grid_size: int) -> Tuple[Point, ...]:
    """Return ``grid_size**2`` unlabelled points covering ``[-1, 1]^2``."""

    coords = np.linspace(-1.0, 1.0, grid_size)
    return tuple(Point(x=float(x), y=float(y), label=0) for x in coords for y in coords)


class TrainingSession:
    """Coordinate engine, visualiser and dataset repository for one run."""

    def __init__(
        self,
        engine: NeuralNetworkService,
        visualizer: VisualizerService,
        repository: DatasetRepository,
        options: SessionOptions | None = None,
        config: TrainingConfig | None = None,
    ) -> None:
        self._engine = engine
        self._visualizer = visualizer
        self._repository = repository
        self.options = options or SessionOptions()
        self._config = config or TrainingConfig()

        self._listeners: list[StateListener] = []
        self._frames = FrameScheduler(self.options.frame_interval)
        self._rng = np.random.default_rng(self.options.seed)
        self._grid = prediction_grid(self.options.grid_size)
        self._early_stopping = EarlyStopping()

        self._hyperparameters: Optional[Hyperparameters] = None
        self._applied_lr: Optional[float] = None
        self._all_data: Tuple[Point, ...] = ()
        self._split = _EMPTY_SPLIT
        self._dataset_loaded = False

        self._epoch = 0
        self._loss: Optional[float] = None
        self._accuracy: Optional[float] = None
        self._val_loss: Optional[float] = None
        self._val_accuracy: Optional[float] = None
        self._history = TrainingHistory()
        self._last_error: Optional[str] = None

        self._is_running = False
        self._is_paused = False
        self._disposed = False
        self._step_in_flight = False
        self._last_step_time = -math.inf
        self._generation = 0
        self._load_generation = 0
        self._tasks: Set[asyncio.Task] = set()
        self._idle = asyncio.Event()
        self._idle.set()

    # ------------------------------------------------------------------
    # Read side

    @property
    def config(self) -> TrainingConfig:
        return self._config

    @property
    def hyperparameters(self) -> Optional[Hyperparameters]:
        return self._hyperparameters

    @property
    def all_data(self) -> Tuple[Point, ...]:
        return self._all_data

    @property
    def training_data(self) -> Tuple[Point, ...]:
        return self._split.training

    @property
    def validation_data(self) -> Tuple[Point, ...]:
        return self._split.validation

    @property
    def step_in_flight(self) -> bool:
        return self._step_in_flight

    def get_state(self) -> TrainingState:
        return TrainingState(
            epoch=self._epoch,
            loss=self._loss,
            accuracy=self._accuracy,
            val_loss=self._val_loss,
            val_accuracy=self._val_accuracy,
            is_running=self._is_running,
            is_paused=self._is_paused,
            is_initialised=self._hyperparameters is not None,
            dataset_loaded=self._dataset_loaded,
            max_epochs=self._config.max_epochs,
            batch_size=self._config.batch_size,
            target_fps=self._config.target_fps,
            validation_split=self._config.validation_split,
            learning_rate=self._applied_lr,
            training_size=len(self._split.training),
            validation_size=len(self._split.validation),
            history=self._history,
            last_error=self._last_error,
        )

    def on_state_change(self, callback: StateListener) -> Callable[[], None]:
        """Subscribe ``callback`` to state snapshots; returns an unsubscriber."""

        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def export_history(self, fmt: str = "json") -> str:
        return export_history(self._history, fmt)

    async def join(self) -> None:
        """Wait until the loop has stopped and no step is in flight."""

        await self._idle.wait()

    # ------------------------------------------------------------------
    # Configuration

    async def set_hyperparameters(self, hyperparameters: Hyperparameters) -> None:
        """Initialise the engine and clear training progress.

        Engine errors propagate to the caller; the session is left stopped
        and uninitialised-for-this-config in that case.
        """

        self._halt()
        token = self._invalidate()
        await self._engine.initialize(hyperparameters)
        if token != self._generation:
            logger.debug("Hyperparameters superseded while the engine initialised")
            return
        self._hyperparameters = hyperparameters
        self._applied_lr = hyperparameters.learning_rate
        self._clear_progress()
        logger.info(
            "Engine initialised (layers=%s, lr=%g, optimizer=%s)",
            list(hyperparameters.layers),
            hyperparameters.learning_rate,
            hyperparameters.optimizer,
        )
        self._refresh_idle()
        self._notify()

    def set_training_config(self, config: TrainingConfig | None = None, **changes: Any) -> None:
        """Replace or partially update the runtime training configuration."""

        previous = self._config
        updated = config if config is not None else previous
        if changes:
            updated = updated.merged(**changes)
        self._config = updated
        resplit = (
            updated.validation_split != previous.validation_split
            or updated.stratified_split != previous.stratified_split
        )
        if resplit and self._dataset_loaded:
            self._resplit()
            self._visualizer.render_data(self._split.all)
        self._notify()

    async def load_data(
        self, dataset_type: str, options: Mapping[str, Any] | None = None
    ) -> None:
        """Fetch ``dataset_type`` from the repository and make it current."""

        self._load_generation += 1
        token = self._load_generation
        points = await self._repository.get_dataset(dataset_type, options)
        if token != self._load_generation:
            logger.debug("Discarding dataset %r superseded during loading", dataset_type)
            return
        self._install_data(points)
        logger.info(
            "Loaded dataset %r (%d points, %d training / %d validation)",
            dataset_type,
            len(self._all_data),
            len(self._split.training),
            len(self._split.validation),
        )

    def set_custom_data(self, points: Sequence[Point]) -> None:
        if not points:
            raise ValueError("custom data must contain at least one point")
        self._load_generation += 1
        self._install_data(points)

    # ------------------------------------------------------------------
    # Control

    def start(self) -> None:
        """Start or resume the frame loop."""

        self._ensure_ready()
        if self._is_running and not self._is_paused:
            return
        self._is_running = True
        self._is_paused = False
        self._last_error = None
        self._idle.clear()
        logger.info("Training started at epoch %d", self._epoch)
        self._notify()
        self._frames.request(self._on_frame)

    def pause(self) -> None:
        """Stop scheduling new steps; a step in flight is allowed to finish."""

        if not self._is_running or self._is_paused:
            return
        self._is_paused = True
        self._frames.cancel()
        logger.info("Training paused at epoch %d", self._epoch)
        self._refresh_idle()
        self._notify()

    def step(self) -> "asyncio.Future[None]":
        """Run one epoch outside the frame loop.

        Readiness is checked immediately.  While another step is in flight
        (or the epoch limit is reached) the returned awaitable is already
        resolved and nothing happens.
        """

        self._ensure_ready()
        loop = asyncio.get_running_loop()
        if self._step_in_flight or self._limit_reached():
            skipped: asyncio.Future[None] = loop.create_future()
            skipped.set_result(None)
            return skipped
        return self._launch_step(loop)

    def reset(self) -> None:
        """Stop and clear progress; data and hyperparameters are kept."""

        self._halt()
        self._invalidate()
        self._clear_progress()
        if self._dataset_loaded:
            self._resplit()
            self._visualizer.render_data(self._split.all)
        self._refresh_idle()
        self._notify()

    def clear_all(self) -> None:
        """Stop, clear progress and drop the dataset."""

        self._halt()
        self._invalidate()
        self._load_generation += 1
        self._clear_progress()
        self._all_data = ()
        self._split = _EMPTY_SPLIT
        self._dataset_loaded = False
        self._visualizer.clear()
        self._refresh_idle()
        self._notify()

    def dispose(self) -> None:
        """Terminate the loop and release listeners."""

        self._halt()
        self._invalidate()
        self._load_generation += 1
        self._listeners.clear()
        self._disposed = True
        self._refresh_idle()

    # ------------------------------------------------------------------
    # Frame loop

    def _on_frame(self, now: float) -> None:
        if not self._is_running or self._is_paused:
            return
        if self._limit_reached():
            self._stop(f"epoch limit {self._config.max_epochs} reached")
            return
        if self._step_in_flight:
            logger.debug("Frame skipped: step in flight")
            self._frames.request(self._on_frame)
            return
        if now - self._last_step_time < self._config.min_step_interval:
            self._frames.request(self._on_frame)
            return
        self._last_step_time = now
        self._launch_step(asyncio.get_running_loop())

    def _launch_step(self, loop: asyncio.AbstractEventLoop) -> "asyncio.Task[None]":
        self._step_in_flight = True
        self._idle.clear()
        task = loop.create_task(self._run_step())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_step(self) -> None:
        token = self._generation
        epoch = self._epoch + 1
        try:
            await self._execute_step(token)
        except Exception as exc:
            if token == self._generation:
                logger.exception("Training step failed at epoch %d; stopping", epoch)
                self._last_error = str(exc) or exc.__class__.__name__
                self._halt()
                self._notify()
            else:
                logger.debug("Ignoring failure of a superseded step: %s", exc)
        finally:
            self._step_in_flight = False
            self._refresh_idle()
        if self._is_running and not self._is_paused:
            self._frames.request(self._on_frame)

    async def _execute_step(self, token: int) -> None:
        """Train one epoch and commit it once every engine call has succeeded.

        Nothing observable changes until the end of the step, so a failure in
        any awaited engine call discards the epoch as a whole.
        """

        config = self._config
        hyperparameters = self._hyperparameters
        if hyperparameters is None:
            raise NotReadyError("Hyperparameters not set. Call set_hyperparameters() first.")

        # Scheduled rate of the epoch about to run.
        await self._apply_scheduled_lr(token, config, hyperparameters, self._epoch)
        if token != self._generation:
            return

        batch = sample_batch(self._split.training, config.batch_size, self._rng)
        validation = self._split.validation
        learning_rate = self._applied_lr

        trained = await self._engine.train(batch)
        if token != self._generation:
            return
        evaluated = None
        if validation:
            evaluated = await self._engine.evaluate(validation)
            if token != self._generation:
                return

        record = TrainingRecord(
            epoch=self._epoch + 1,
            loss=float(trained.loss),
            accuracy=float(trained.accuracy),
            val_loss=float(evaluated.loss) if evaluated else None,
            val_accuracy=float(evaluated.accuracy) if evaluated else None,
            timestamp=time.time(),
            learning_rate=learning_rate,
        )
        early_stopping = copy.copy(self._early_stopping)
        should_stop = early_stopping.check(record.val_loss, config.early_stopping_patience)

        predictions = None
        render = False
        if not should_stop:
            await self._apply_scheduled_lr(token, config, hyperparameters, record.epoch)
            if token != self._generation:
                return
            interval = self.options.render_interval
            render = bool(interval) and record.epoch % interval == 0
            if render:
                predictions = await self._engine.predict(self._grid)
                if token != self._generation:
                    return

        self._commit(record, early_stopping)
        if should_stop:
            self._stop(
                f"early stopping after {early_stopping.epochs_without_improvement} "
                f"epochs without improvement (best val_loss={early_stopping.best_val_loss:.6f})"
            )
            return
        if render and predictions is not None:
            self._visualizer.render_boundary(predictions, self.options.grid_size)
            self._visualizer.render_data(self._split.all)
        self._notify()

    def _commit(self, record: TrainingRecord, early_stopping: EarlyStopping) -> None:
        self._epoch = record.epoch
        self._loss = record.loss
        self._accuracy = record.accuracy
        self._val_loss = record.val_loss
        self._val_accuracy = record.val_accuracy
        self._history = self._history.append(record)
        self._early_stopping = early_stopping
        logger.debug(
            "epoch=%d loss=%.6f acc=%.4f val_loss=%s",
            record.epoch,
            record.loss,
            record.accuracy,
            "-" if record.val_loss is None else f"{record.val_loss:.6f}",
        )

    async def _apply_scheduled_lr(
        self,
        token: int,
        config: TrainingConfig,
        hyperparameters: Hyperparameters,
        epoch: int,
    ) -> None:
        """Bring the engine to the scheduled rate of zero-based ``epoch``.

        ``_applied_lr`` mirrors the rate the engine actually holds, so it is
        updated as soon as the engine accepts a new one.
        """

        target = scheduled_lr(
            epoch,
            config.lr_schedule,
            hyperparameters.learning_rate,
            config.max_epochs,
        )
        target = max(target, _MIN_LEARNING_RATE)
        current = self._applied_lr
        if current is not None and not has_significant_change(
            target, current, self.options.lr_change_threshold
        ):
            return

        update = getattr(self._engine, "update_learning_rate", None)
        if update is not None:
            await update(target)
        else:
            await self._engine.initialize(hyperparameters.with_learning_rate(target))
        if token != self._generation:
            return
        logger.debug("Learning rate %s -> %g for epoch %d", current, target, epoch + 1)
        self._applied_lr = target

    # ------------------------------------------------------------------
    # Internal helpers

    def _ensure_ready(self) -> None:
        if self._disposed:
            raise NotReadyError("Session has been disposed.")
        if self._hyperparameters is None:
            raise NotReadyError("Hyperparameters not set. Call set_hyperparameters() first.")
        if not self._dataset_loaded:
            raise NotReadyError("No data loaded. Call load_data() first.")
        if not self._split.training:
            raise NotReadyError(
                "Training partition is empty. Load more points or lower validation_split."
            )

    def _limit_reached(self) -> bool:
        limit = self._config.max_epochs
        return limit > 0 and self._epoch >= limit

    def _install_data(self, points: Sequence[Point]) -> None:
        self._halt()
        self._invalidate()
        self._all_data = tuple(points)
        self._dataset_loaded = True
        self._clear_progress()
        self._resplit()
        self._visualizer.render_data(self._split.all)
        self._refresh_idle()
        self._notify()

    def _resplit(self) -> None:
        partition = stratified_split if self._config.stratified_split else split
        self._split = partition(self._all_data, self._config.validation_split, self._rng)

    def _clear_progress(self) -> None:
        self._epoch = 0
        self._loss = None
        self._accuracy = None
        self._val_loss = None
        self._val_accuracy = None
        self._history = TrainingHistory()
        self._early_stopping.reset()
        self._last_error = None
        self._last_step_time = -math.inf

    def _invalidate(self) -> int:
        self._generation += 1
        return self._generation

    def _halt(self) -> None:
        self._frames.cancel()
        self._is_running = False
        self._is_paused = False

    def _stop(self, reason: str) -> None:
        logger.info("Training stopped at epoch %d: %s", self._epoch, reason)
        self._halt()
        self._refresh_idle()
        self._notify()

    def _refresh_idle(self) -> None:
        looping = self._is_running and not self._is_paused
        if looping or self._step_in_flight:
            self._idle.clear()
        else:
            self._idle.set()

    def _notify(self) -> None:
        state = self.get_state()
        for listener in list(self._listeners):
            listener(state)


__all__ = ["SessionOptions", "StateListener", "TrainingSession", "prediction_grid"]
