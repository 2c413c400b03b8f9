import unittest
from unittest import TestCase

import numpy as np

from src.celldnn.domain._errors import ConfigurationError, ShapeMismatchError
from src.celldnn.infrastructure._losses import (
    BinaryCrossEntropy,
    CategoricalCrossEntropy,
    MeanAbsoluteError,
    MeanSquaredError,
    get_loss,
)
from src.celldnn.infrastructure.tensor._tensor import Tensor


def _numeric_grad(loss, pred: np.ndarray, target: np.ndarray, h: float = 1e-6) -> np.ndarray:
    g = np.zeros_like(pred)
    for i in range(pred.size):
        p = pred.copy().reshape(-1)
        p[i] += h
        up = loss.forward(Tensor(p, shape=pred.shape), Tensor(target))
        p[i] -= 2 * h
        down = loss.forward(Tensor(p, shape=pred.shape), Tensor(target))
        g.reshape(-1)[i] = (up - down) / (2 * h)
    return g


class TestLossRegistry(TestCase):
    def test_lookup(self):
        self.assertIsInstance(get_loss("mse"), MeanSquaredError)
        self.assertIsInstance(get_loss("mae"), MeanAbsoluteError)
        self.assertIsInstance(get_loss("binary_cross_entropy"), BinaryCrossEntropy)
        self.assertIsInstance(get_loss("categorical_cross_entropy"), CategoricalCrossEntropy)

    def test_none_and_unknown(self):
        with self.assertRaises(ConfigurationError):
            get_loss(None)
        with self.assertRaises(ConfigurationError):
            get_loss("hinge")


class TestLossValues(TestCase):
    def test_mse(self):
        loss = MeanSquaredError()
        pred, target = Tensor([1.0, 2.0]), Tensor([0.0, 4.0])
        self.assertAlmostEqual(loss.forward(pred, target), 2.5)
        np.testing.assert_allclose(loss.backward(pred, target).data, [1.0, -2.0])

    def test_mae(self):
        loss = MeanAbsoluteError()
        pred, target = Tensor([1.0, 2.0, 3.0]), Tensor([0.0, 4.0, 3.0])
        self.assertAlmostEqual(loss.forward(pred, target), 1.0)
        np.testing.assert_allclose(loss.backward(pred, target).data, [1 / 3, -1 / 3, 0.0])

    def test_shape_mismatch(self):
        with self.assertRaises(ShapeMismatchError):
            MeanSquaredError().forward(Tensor([1.0, 2.0]), Tensor([1.0]))

    def test_gradients_match_finite_differences(self):
        pred = np.array([[0.2, 0.7], [0.6, 0.1]])
        target = np.array([[0.0, 1.0], [1.0, 0.0]])
        for loss in (MeanSquaredError(), BinaryCrossEntropy(), CategoricalCrossEntropy()):
            with self.subTest(loss=loss.name):
                analytic = loss.backward(Tensor(pred), Tensor(target)).data
                np.testing.assert_allclose(
                    analytic, _numeric_grad(loss, pred, target), rtol=1e-5, atol=1e-8
                )

    def test_cross_entropy_clips_extremes(self):
        value = BinaryCrossEntropy().forward(Tensor([0.0, 1.0]), Tensor([1.0, 0.0]))
        self.assertTrue(np.isfinite(value))


if __name__ == "__main__":
    unittest.main()
