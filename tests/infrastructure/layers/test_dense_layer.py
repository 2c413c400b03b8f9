import unittest
from unittest import TestCase

import numpy as np

from src.celldnn.domain._errors import (
    ConfigurationError,
    NotBuiltError,
    ShapeMismatchError,
)
from src.celldnn.infrastructure.fully_connected import Dense
from src.celldnn.infrastructure.tensor._tensor import Tensor


def _build(units: int, in_features: int, activation: str, seed: int) -> Dense:
    layer = Dense(units, activation=activation, input_shape=(in_features,))
    layer.build()
    layer.initialize("xavier_uniform", "normal", np.random.default_rng(seed))
    return layer


def _scalar_loss(layer: Dense, x: np.ndarray, w: np.ndarray) -> float:
    # Weighted sum of outputs so every output receives a distinct gradient.
    return float(np.sum(layer.forward(Tensor(x)).data * w))


class TestDenseShapes(TestCase):
    def test_output_shapes(self):
        d = Dense(4, input_shape=(3,))
        d.build()
        self.assertEqual(d.output_shape, (4,))
        self.assertEqual(d.kernel.shape, (3, 4))
        self.assertEqual(d.bias.shape, (4,))
        self.assertEqual(d.num_parameters(), 16)

        batch = Dense(4, input_shape=(5, 3))
        batch.build()
        self.assertEqual(batch.output_shape, (5, 4))

    def test_no_bias(self):
        d = Dense(2, use_bias=False, input_shape=(3,))
        d.build()
        self.assertIsNone(d.bias)
        self.assertEqual(len(d.parameters()), 1)

    def test_invalid_units(self):
        with self.assertRaises(ConfigurationError):
            Dense(0)

    def test_rejects_3d_input(self):
        with self.assertRaises(ConfigurationError):
            Dense(2, input_shape=(1, 2, 3)).build()

    def test_unbuilt_access(self):
        d = Dense(2)
        with self.assertRaises(NotBuiltError):
            d.forward([1.0, 2.0])
        with self.assertRaises(NotBuiltError):
            _ = d.kernel
        with self.assertRaises(ConfigurationError):
            d.build()

    def test_build_twice(self):
        d = Dense(2, input_shape=(3,))
        d.build()
        with self.assertRaises(ConfigurationError):
            d.build()

    def test_wrong_input_shape(self):
        d = Dense(2, input_shape=(3,))
        d.build()
        with self.assertRaises(ShapeMismatchError):
            d.forward([1.0, 2.0])
        with self.assertRaises(ShapeMismatchError):
            d.backward([1.0, 2.0, 3.0])


class TestDenseForward(TestCase):
    def test_known_values(self):
        d = Dense(2, input_shape=(3,))
        d.build()
        d.kernel.copy_from(np.array([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]]))
        d.bias.copy_from(np.array([0.5, -0.5]))
        out = d.forward([1.0, 2.0, 3.0])
        np.testing.assert_allclose(out.data, [4.5, 4.5])
        np.testing.assert_allclose(d.pre_activation.data, [4.5, 4.5])

    def test_output_buffer_is_reused(self):
        d = _build(2, 3, "tanh", 0)
        first = d.forward([1.0, 2.0, 3.0])
        second = d.forward([0.0, 0.0, 0.0])
        self.assertIs(first, second)


class TestDenseGradients(TestCase):
    def _check(self, activation: str, seed: int) -> None:
        rng = np.random.default_rng(100 + seed)
        layer = _build(3, 4, activation, seed)
        x = rng.standard_normal(4)
        w = rng.standard_normal(3)
        h = 1e-5

        layer.zero_grad()
        layer.forward(Tensor(x))
        grad_x = layer.backward(Tensor(w)).data.copy()

        num_x = np.zeros_like(x)
        for i in range(x.size):
            xp, xm = x.copy(), x.copy()
            xp[i] += h
            xm[i] -= h
            num_x[i] = (_scalar_loss(layer, xp, w) - _scalar_loss(layer, xm, w)) / (2 * h)
        np.testing.assert_allclose(grad_x, num_x, rtol=0, atol=1e-5)

        for param, grad in zip(layer.parameters(), layer.gradients()):
            flat = param.data.reshape(-1)
            num = np.zeros(flat.size)
            for i in range(flat.size):
                orig = flat[i]
                flat[i] = orig + h
                up = _scalar_loss(layer, x, w)
                flat[i] = orig - h
                down = _scalar_loss(layer, x, w)
                flat[i] = orig
                num[i] = (up - down) / (2 * h)
            np.testing.assert_allclose(grad.data.reshape(-1), num, rtol=0, atol=1e-5)

    def test_finite_differences(self):
        for activation in ("linear", "tanh", "sigmoid", "gelu", "softmax"):
            for seed in range(3):
                with self.subTest(activation=activation, seed=seed):
                    self._check(activation, seed)

    def test_backward_known_values(self):
        d = Dense(2, input_shape=(3,))
        d.build()
        d.kernel.copy_from(np.array([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]]))
        d.forward([1.0, 2.0, 3.0])
        grad_x = d.backward([1.0, 1.0])
        np.testing.assert_allclose(grad_x.data, [1.0, 1.0, 2.0])
        np.testing.assert_allclose(d.grad_kernel.data, [[1.0, 1.0], [2.0, 2.0], [3.0, 3.0]])
        np.testing.assert_allclose(d.grad_bias.data, [1.0, 1.0])

    def test_gradients_accumulate_until_zero_grad(self):
        layer = _build(2, 2, "linear", 0)
        layer.forward([1.0, 1.0])
        layer.backward([1.0, 1.0])
        once = layer.grad_kernel.clone()
        layer.forward([1.0, 1.0])
        layer.backward([1.0, 1.0])
        np.testing.assert_allclose(layer.grad_kernel.data, 2 * once.data)
        layer.zero_grad()
        np.testing.assert_array_equal(layer.grad_kernel.data, np.zeros((2, 2)))

    def test_batched_input_gradients(self):
        layer = Dense(2, input_shape=(3, 2))
        layer.build()
        layer.kernel.copy_from(np.array([[1.0, 2.0], [3.0, 4.0]]))
        x = np.array([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])
        g = np.ones((3, 2))
        layer.forward(x)
        grad_x = layer.backward(g)
        np.testing.assert_allclose(layer.grad_kernel.data, x.T @ g)
        np.testing.assert_allclose(layer.grad_bias.data, [3.0, 3.0])
        np.testing.assert_allclose(grad_x.data, g @ layer.kernel.data.T)


if __name__ == "__main__":
    unittest.main()
