import asyncio

import numpy as np

from neuroviz.core.types import Hyperparameters, Prediction, TrainResult
from neuroviz.data import get_points
from neuroviz.engine import NumpyNeuralNet
from neuroviz.training.session import prediction_grid


def test_numpy_engine_honours_service_contract():
    points = get_points("gaussian", {"samples": 80, "seed": 2})
    grid = prediction_grid(5)

    async def scenario():
        engine = NumpyNeuralNet()
        await engine.initialize(Hyperparameters(learning_rate=0.05, layers=(6, 4), seed=1))
        trained = await engine.train(points)
        evaluated = await engine.evaluate(points)
        predictions = await engine.predict(grid)
        return trained, evaluated, predictions

    trained, evaluated, predictions = asyncio.run(scenario())
    assert isinstance(trained, TrainResult) and isinstance(evaluated, TrainResult)
    assert 0.0 <= trained.accuracy <= 1.0
    assert np.isfinite(evaluated.loss)
    assert len(predictions) == len(grid)
    assert all(isinstance(p, Prediction) for p in predictions)
    first = predictions[0]
    assert (first.x, first.y) == (grid[0].x, grid[0].y)
    assert abs(sum(first.probabilities) - 1.0) < 1e-9
    assert first.confidence == max(first.probabilities)
    assert first.predicted_class == int(np.argmax(first.probabilities))


def test_evaluate_leaves_weights_untouched():
    points = get_points("xor", {"samples": 40, "seed": 0})

    async def scenario():
        engine = NumpyNeuralNet()
        await engine.initialize(Hyperparameters(learning_rate=0.1, seed=0))
        before = [W.copy() for W in engine.model.weights]
        await engine.evaluate(points)
        await engine.predict(points)
        return before, engine.model.weights

    before, after = asyncio.run(scenario())
    assert all(np.array_equal(a, b) for a, b in zip(before, after))
