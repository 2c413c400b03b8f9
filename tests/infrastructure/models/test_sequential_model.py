import unittest
from unittest import TestCase

import numpy as np

from src.celldnn.domain._errors import (
    ConfigurationError,
    IndexOutOfRangeError,
    NotBuiltError,
    ShapeMismatchError,
    UnsupportedOperationError,
)
from src.celldnn.infrastructure._losses import MeanSquaredError
from src.celldnn.infrastructure.convolution import Convolutional
from src.celldnn.infrastructure.flatten import Flatten
from src.celldnn.infrastructure.fully_connected import Dense
from src.celldnn.infrastructure.models import Sequential
from src.celldnn.infrastructure.optimizers import SGD, Adam
from src.celldnn.infrastructure.pooling import MaxPooling
from src.celldnn.infrastructure.tensor._tensor import Tensor


def _mlp(seed: int = 0, optimizer="gd") -> Sequential:
    model = Sequential([
        Dense(4, activation="tanh", input_shape=(2,)),
        Dense(1, activation="sigmoid"),
    ])
    model.compile(optimizer, "mse", seed=seed)
    return model


def _cnn(seed: int = 0) -> Sequential:
    model = Sequential([
        Convolutional(2, 3, activation="relu", input_shape=(1, 6, 6)),
        MaxPooling(2),
        Flatten(),
        Dense(3, activation="sigmoid"),
    ])
    model.compile("adam", "mse", seed=seed)
    return model


class TestSequentialStructure(TestCase):
    def test_compile_chains_shapes(self):
        model = _cnn()
        self.assertEqual(model.input_shape, (1, 6, 6))
        self.assertEqual(model.layer(0).output_shape, (2, 4, 4))
        self.assertEqual(model.layer(1).output_shape, (2, 2, 2))
        self.assertEqual(model.layer(2).output_shape, (8,))
        self.assertEqual(model.output_shape, (3,))
        self.assertEqual([layer.layer_id for layer in model], [0, 1, 2, 3])

    def test_num_parameters(self):
        model = _cnn()
        self.assertEqual(model.num_parameters(), (2 * 9 + 2) + (8 * 3 + 3))
        self.assertEqual(len(model.parameters()), 4)

    def test_kernel_access(self):
        model = _cnn()
        self.assertEqual(model.kernel(0).shape, (2, 1, 3, 3))
        with self.assertRaises(UnsupportedOperationError):
            model.kernel(1)
        with self.assertRaises(IndexOutOfRangeError):
            model.kernel(4)

    def test_add_rejects_non_layers(self):
        with self.assertRaises(ConfigurationError):
            Sequential([object()])

    def test_add_after_compile(self):
        model = _mlp()
        with self.assertRaises(ConfigurationError):
            model.add(Dense(1))

    def test_compile_twice(self):
        model = _mlp()
        with self.assertRaises(ConfigurationError):
            model.compile()

    def test_empty_model(self):
        with self.assertRaises(ConfigurationError):
            Sequential().compile()

    def test_first_layer_needs_input_shape(self):
        with self.assertRaises(ConfigurationError):
            Sequential([Dense(2)]).compile()

    def test_incompatible_chain(self):
        model = Sequential([Dense(3, input_shape=(2,)), MaxPooling(2)])
        with self.assertRaises(ConfigurationError):
            model.compile()

    def test_prebuilt_layer_with_wrong_input(self):
        second = Dense(1, input_shape=(5,))
        second.build()
        model = Sequential([Dense(3, input_shape=(2,)), second])
        with self.assertRaises(ShapeMismatchError):
            model.compile()

    def test_unknown_optimizer_and_loss(self):
        with self.assertRaises(ConfigurationError):
            Sequential([Dense(1, input_shape=(2,))]).compile("adamax")
        with self.assertRaises(ConfigurationError):
            Sequential([Dense(1, input_shape=(2,))]).compile("gd", "hinge")

    def test_compute_before_compile(self):
        model = Sequential([Dense(1, input_shape=(2,))])
        with self.assertRaises(NotBuiltError):
            model.forward([1.0, 2.0])
        with self.assertRaises(NotBuiltError):
            model.train([[1.0, 2.0]], [[1.0]], epochs=1)
        with self.assertRaises(NotBuiltError):
            model.forward_batch([[1.0, 2.0]])
        with self.assertRaises(NotBuiltError):
            model.output_array()

    def test_same_seed_same_parameters(self):
        a, b = _cnn(seed=5), _cnn(seed=5)
        for pa, pb in zip(a.parameters(), b.parameters()):
            self.assertEqual(pa, pb)

    def test_compile_logs(self):
        model = Sequential([Dense(1, input_shape=(2,))])
        with self.assertLogs("src.celldnn", level="DEBUG") as logs:
            model.compile("sgd", MeanSquaredError(), seed=0)
        self.assertTrue(any("compiled" in line for line in logs.output))


class TestSequentialCompute(TestCase):
    def test_forward_matches_manual_chain(self):
        model = _mlp(seed=1)
        x = np.array([0.3, -0.7])
        d1, d2 = model.layer(0), model.layer(1)
        h = np.tanh(x @ d1.kernel.data + d1.bias.data)
        y = 1.0 / (1.0 + np.exp(-(h @ d2.kernel.data + d2.bias.data)))
        np.testing.assert_allclose(model.forward(x).data, y)
        self.assertEqual(len(model.output_array()), 1)
        self.assertAlmostEqual(model.output_array()[0], float(y[0]), places=12)

    def test_copy_output_into(self):
        model = _mlp()
        model.forward([1.0, 0.0])
        buf = Tensor.zeros(1)
        model.copy_output_into(buf)
        self.assertEqual(buf, model.layer(1).output)
        with self.assertRaises(ShapeMismatchError):
            model.copy_output_into(Tensor.zeros(2))

    def test_wrong_input_shape(self):
        with self.assertRaises(ShapeMismatchError):
            _mlp().forward([1.0, 2.0, 3.0])

    def test_backward_returns_input_gradient(self):
        model = _mlp()
        model.forward([0.5, 0.5])
        g = model.backward([1.0])
        self.assertEqual(g.shape, (2,))

    def test_evaluate(self):
        model = _mlp()
        xs = [[0.0, 1.0], [1.0, 0.0]]
        ys = [[1.0], [0.0]]
        expected = np.mean([
            (model.forward(x).get(0) - y[0]) ** 2 for x, y in zip(xs, ys)
        ])
        self.assertAlmostEqual(model.evaluate(xs, ys), float(expected))

    def test_clone_is_independent(self):
        model = _mlp(optimizer=SGD(lr=0.1))
        other = model.clone()
        self.assertTrue(other.is_compiled)
        self.assertIsNot(other.optimizer, model.optimizer)
        x = [0.2, 0.4]
        np.testing.assert_allclose(other.forward(x).data, model.forward(x).data)
        other.train([x], [[1.0]], epochs=3)
        self.assertNotEqual(other.kernel(0), model.kernel(0))


class TestSequentialTraining(TestCase):
    XS = [[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]]
    YS = [[0.0], [1.0], [1.0], [0.0]]

    def test_xor_loss_decreases(self):
        model = _mlp(seed=0)
        before = model.evaluate(self.XS, self.YS)
        history = model.train(self.XS, self.YS, epochs=1000, batch_size=1, history=True)
        after = model.evaluate(self.XS, self.YS)
        self.assertLess(after, before)
        self.assertEqual(len(history), 1000)
        self.assertLess(history.loss[-1], history.loss[0])
        self.assertAlmostEqual(history.loss[-1], after)

    def test_adam_reduces_xor_loss(self):
        model = _mlp(seed=3, optimizer=Adam(lr=0.05))
        before = model.evaluate(self.XS, self.YS)
        model.train(self.XS, self.YS, epochs=300, batch_size=4)
        self.assertLess(model.evaluate(self.XS, self.YS), before)
        self.assertEqual(model.optimizer.iterations, 300)

    def test_softmax_cross_entropy_training(self):
        xs = [[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]]
        ys = [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]
        model = Sequential([
            Dense(4, activation="tanh", input_shape=(2,)),
            Dense(3, activation="softmax"),
        ])
        model.compile("gd", "categorical_cross_entropy", seed=5)
        before = model.evaluate(xs, ys)
        model.train(xs, ys, epochs=200)
        self.assertLess(model.evaluate(xs, ys), before)
        self.assertAlmostEqual(model.forward(xs[0]).sum(), 1.0)

    def test_gradients_cleared_after_training(self):
        model = _mlp()
        model.train(self.XS, self.YS, epochs=2, batch_size=3)
        for g in model.gradients():
            np.testing.assert_array_equal(g.data, np.zeros(g.shape))

    def test_training_flag_reset(self):
        model = _mlp()
        model.train(self.XS, self.YS, epochs=1)
        self.assertFalse(any(layer.training for layer in model))

    def test_no_history_by_default(self):
        history = _mlp().train(self.XS, self.YS, epochs=2)
        self.assertEqual(len(history), 0)

    def test_invalid_arguments(self):
        model = _mlp()
        with self.assertRaises(ConfigurationError):
            model.train(self.XS, self.YS[:3], epochs=1)
        with self.assertRaises(ConfigurationError):
            model.train(self.XS, self.YS, epochs=0)
        with self.assertRaises(ConfigurationError):
            model.train(self.XS, self.YS, epochs=1, batch_size=0)
        with self.assertRaises(ConfigurationError):
            model.train([], [], epochs=1)

    def test_batch_update_sums_gradients(self):
        model = Sequential([Dense(1, input_shape=(1,))])
        model.compile("gd", "mse", kernel_init="ones", bias_init="zeros")
        xs, ys = [[1.0], [2.0]], [[0.0], [0.0]]
        model.train(xs, ys, epochs=1, batch_size=2)
        # dL/dw summed over both examples: 2*1*1 + 2*2*2 = 10
        self.assertAlmostEqual(model.kernel(0).get(0, 0), 1.0 - 0.1 * 10.0)


if __name__ == "__main__":
    unittest.main()
