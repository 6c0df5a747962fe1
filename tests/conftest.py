import asyncio

import pytest

from neuroviz.core.types import Point, Prediction, TrainResult


def make_points(n, num_classes=2):
    return [Point(x=i / n, y=-i / n, label=i % num_classes) for i in range(n)]


class FakeEngine:
    """Scripted engine; ``gate`` (an asyncio.Event) holds ``train`` open."""

    def __init__(self):
        self.initialized = []
        self.train_batches = []
        self.evaluated = []
        self.predicted = []
        self.losses = []
        self.val_losses = []
        self.fail_on_train = None
        self.fail_on_initialize = None
        self.fail_on_predict = None
        self.gate = None

    @property
    def train_calls(self):
        return len(self.train_batches)

    async def initialize(self, hyperparameters):
        self.initialized.append(hyperparameters)
        if self.fail_on_initialize == len(self.initialized):
            raise RuntimeError("initialize exploded")

    async def train(self, points):
        self.train_batches.append(tuple(points))
        call = self.train_calls
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_on_train == call:
            raise RuntimeError("engine exploded")
        loss = self.losses[call - 1] if call <= len(self.losses) else 1.0 / call
        return TrainResult(loss=loss, accuracy=0.5)

    async def evaluate(self, points):
        self.evaluated.append(tuple(points))
        call = len(self.evaluated)
        loss = self.val_losses[call - 1] if call <= len(self.val_losses) else 1.0 / call
        return TrainResult(loss=loss, accuracy=0.25)

    async def predict(self, points):
        self.predicted.append(len(points))
        if self.fail_on_predict == len(self.predicted):
            raise RuntimeError("predict exploded")
        return [Prediction(x=p.x, y=p.y, confidence=0.9, predicted_class=0) for p in points]


class FakeLREngine(FakeEngine):
    def __init__(self):
        super().__init__()
        self.lr_updates = []

    async def update_learning_rate(self, learning_rate):
        self.lr_updates.append(learning_rate)


class FakeVisualizer:
    def __init__(self):
        self.data_renders = []
        self.boundary_renders = []
        self.clears = 0

    def render_data(self, points):
        self.data_renders.append(tuple(points))

    def render_boundary(self, predictions, grid_size):
        self.boundary_renders.append((len(predictions), grid_size))

    def clear(self):
        self.clears += 1


class FakeRepository:
    def __init__(self):
        self.datasets = {"circle": make_points(100)}
        self.requests = []
        self.gate = None

    async def get_dataset(self, dataset_type, options=None):
        self.requests.append((dataset_type, options))
        if self.gate is not None:
            await self.gate.wait()
        if dataset_type not in self.datasets:
            raise KeyError(f"Unknown dataset type: {dataset_type}")
        return list(self.datasets[dataset_type])


async def wait_until(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.001)


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def lr_engine():
    return FakeLREngine()


@pytest.fixture
def visualizer():
    return FakeVisualizer()


@pytest.fixture
def repository():
    return FakeRepository()
