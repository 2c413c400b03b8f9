import unittest
from unittest import TestCase

import numpy as np

from src.celldnn.domain._errors import ConfigurationError
from src.celldnn.infrastructure._activations import (
    ELU,
    LeakyReLU,
    ReLU,
    Softmax,
    activation_token,
    available_activations,
    get_activation,
)
from src.celldnn.infrastructure.tensor._tensor import Tensor


def _apply(tag: str, z: np.ndarray):
    act = get_activation(tag)
    zt = Tensor(z)
    y = Tensor.zeros(*zt.shape)
    d = Tensor.zeros(*zt.shape)
    act.forward(zt, y)
    act.derivative(zt, y, d)
    return y.data, d.data


class TestActivationRegistry(TestCase):
    def test_builtin_tags(self):
        for tag in ("linear", "relu", "leaky_relu", "elu", "sigmoid", "tanh",
                    "atan", "softplus", "swish", "sin", "gelu", "softmax", "argmax"):
            self.assertIn(tag, available_activations())
            self.assertEqual(get_activation(tag).name, tag)

    def test_none_is_linear(self):
        self.assertEqual(get_activation(None).name, "linear")

    def test_instance_passes_through(self):
        act = LeakyReLU(alpha=0.2)
        self.assertIs(get_activation(act), act)

    def test_unknown_tag(self):
        with self.assertRaises(ConfigurationError):
            get_activation("softmaxx")

    def test_case_insensitive(self):
        self.assertIsInstance(get_activation("ReLU"), ReLU)

    def test_token_carries_alpha(self):
        self.assertEqual(activation_token(get_activation("relu")), "relu")
        token = activation_token(LeakyReLU(alpha=0.25))
        self.assertEqual(token, "leaky_relu(alpha=0.25)")
        back = get_activation(token)
        self.assertIsInstance(back, LeakyReLU)
        self.assertEqual(back.alpha, 0.25)
        self.assertEqual(get_activation("elu( alpha = 2 )").alpha, 2.0)
        self.assertIsInstance(get_activation("elu()"), ELU)

    def test_bad_token_arguments(self):
        for token in ("elu(alpha)", "elu(alpha=x)", "relu(alpha=1)", "elu(beta=1)", "elu(alpha=1"):
            with self.subTest(token=token):
                with self.assertRaises(ConfigurationError):
                    get_activation(token)


class TestActivationValues(TestCase):
    def test_relu(self):
        y, d = _apply("relu", np.array([-1.0, 0.0, 2.0]))
        np.testing.assert_allclose(y, [0.0, 0.0, 2.0])
        np.testing.assert_allclose(d, [0.0, 0.0, 1.0])

    def test_sigmoid(self):
        y, d = _apply("sigmoid", np.array([0.0]))
        np.testing.assert_allclose(y, [0.5])
        np.testing.assert_allclose(d, [0.25])

    def test_tanh(self):
        z = np.array([-0.3, 0.7])
        y, d = _apply("tanh", z)
        np.testing.assert_allclose(y, np.tanh(z))
        np.testing.assert_allclose(d, 1.0 - np.tanh(z) ** 2)

    def test_leaky_relu_default_alpha(self):
        y, d = _apply("leaky_relu", np.array([-2.0, 3.0]))
        np.testing.assert_allclose(y, [-0.02, 3.0])
        np.testing.assert_allclose(d, [0.01, 1.0])

    def test_derivatives_match_finite_differences(self):
        z = np.array([-1.3, -0.2, 0.4, 1.7])
        h = 1e-6
        for tag in ("sigmoid", "tanh", "atan", "softplus", "swish", "sin", "elu", "linear", "gelu"):
            with self.subTest(activation=tag):
                _, d = _apply(tag, z)
                yp, _ = _apply(tag, z + h)
                ym, _ = _apply(tag, z - h)
                np.testing.assert_allclose(d, (yp - ym) / (2 * h), rtol=1e-5, atol=1e-7)

    def test_swish(self):
        z = np.array([0.5, -0.5])
        y, _ = _apply("swish", z)
        np.testing.assert_allclose(y, z / (1.0 + np.exp(-z)))

    def test_gelu(self):
        y, d = _apply("gelu", np.array([0.0, 3.0, -3.0]))
        np.testing.assert_allclose(y, [0.0, 2.99636, -0.00364], atol=1e-5)
        self.assertAlmostEqual(d[0], 0.5)

    def test_softmax_rows_sum_to_one(self):
        z = np.array([[1.0, 2.0, 3.0], [1000.0, 1000.0, 1000.0]])
        y, _ = _apply("softmax", z)
        np.testing.assert_allclose(y.sum(axis=-1), [1.0, 1.0])
        np.testing.assert_allclose(y[1], [1 / 3, 1 / 3, 1 / 3])
        e = np.exp([1.0, 2.0, 3.0])
        np.testing.assert_allclose(y[0], e / e.sum())

    def test_softmax_backward_is_jacobian_product(self):
        rng = np.random.default_rng(3)
        z = rng.standard_normal(4)
        g = rng.standard_normal(4)
        act = Softmax()
        h = 1e-6

        def f(v):
            out = Tensor.zeros(4)
            act.forward(Tensor(v), out)
            return out.data.copy()

        y = Tensor(f(z))
        dz = Tensor.zeros(4)
        act.backward(Tensor(z), y, Tensor(g), dz)
        expected = np.empty(4)
        for i in range(4):
            e = np.zeros(4)
            e[i] = h
            expected[i] = np.dot(g, (f(z + e) - f(z - e)) / (2 * h))
        np.testing.assert_allclose(dz.data, expected, rtol=1e-5, atol=1e-8)

    def test_argmax_is_one_hot_first_max(self):
        y, d = _apply("argmax", np.array([[0.1, 0.7, 0.7], [5.0, -1.0, 2.0]]))
        np.testing.assert_array_equal(y, [[0.0, 1.0, 0.0], [1.0, 0.0, 0.0]])
        np.testing.assert_array_equal(d, np.zeros((2, 3)))

    def test_softplus_is_stable_for_large_inputs(self):
        y, _ = _apply("softplus", np.array([1000.0, -1000.0]))
        np.testing.assert_allclose(y, [1000.0, 0.0], atol=1e-12)


if __name__ == "__main__":
    unittest.main()
