import unittest
from unittest import TestCase

import numpy as np

from src.celldnn.domain._errors import ConfigurationError, NotBuiltError
from src.celldnn.infrastructure._activations import LeakyReLU
from src.celldnn.infrastructure.convolution import Convolutional
from src.celldnn.infrastructure.fully_connected import Dense
from src.celldnn.infrastructure.layers import layer_class
from src.celldnn.infrastructure.pooling import MaxPooling


def _dense(seed: int = 0) -> Dense:
    d = Dense(3, activation="tanh", input_shape=(2,))
    d.build()
    d.initialize("normal", "normal", np.random.default_rng(seed))
    return d


class TestClone(TestCase):
    def test_clone_is_independent(self):
        d = _dense()
        d.forward([0.5, -0.5])
        c = d.clone()
        self.assertTrue(c.is_built)
        self.assertEqual(c.kernel, d.kernel)
        self.assertEqual(c.output, d.output)
        self.assertFalse(c.kernel.shares_memory(d.kernel))
        c.kernel.fill(0.0)
        self.assertNotEqual(c.kernel, d.kernel)

    def test_clone_keeps_activation_instance_settings(self):
        d = Dense(2, activation=LeakyReLU(alpha=0.3), input_shape=(2,))
        d.build()
        c = d.clone()
        self.assertIsInstance(c.activation, LeakyReLU)
        self.assertEqual(c.activation.alpha, 0.3)

    def test_clone_unbuilt(self):
        d = Dense(2, input_shape=(4,))
        c = d.clone()
        self.assertFalse(c.is_built)
        self.assertEqual(c.declared_input_shape, (4,))

    def test_clone_copies_max_pool_indices(self):
        pool = MaxPooling(2, input_shape=(1, 2, 2))
        pool.build()
        pool.forward([[[0.0, 7.0], [1.0, 2.0]]])
        c = pool.clone()
        np.testing.assert_array_equal(c.argmax_indices, pool.argmax_indices)


class TestReplicate(TestCase):
    def test_replica_shares_parameters_read_only(self):
        d = _dense()
        r = d.replicate()
        self.assertTrue(r.kernel.shares_memory(d.kernel))
        self.assertFalse(r.kernel.writeable)
        with self.assertRaises(ValueError):
            r.kernel.data[0, 0] = 1.0

    def test_replica_has_private_buffers(self):
        d = _dense()
        r = d.replicate()
        a = d.forward([1.0, 2.0]).clone()
        b = r.forward([1.0, 2.0])
        self.assertEqual(a, b)
        self.assertFalse(b.shares_memory(d.output))

    def test_replicate_requires_build(self):
        with self.assertRaises(NotBuiltError):
            Dense(2).replicate()


class TestLayerRegistry(TestCase):
    def test_lookup(self):
        self.assertIs(layer_class("Dense"), Dense)
        self.assertIs(layer_class("Convolutional"), Convolutional)
        self.assertIs(layer_class("MaxPooling"), MaxPooling)

    def test_unknown(self):
        with self.assertRaises(ConfigurationError):
            layer_class("LSTM")

    def test_config_round_trip(self):
        conv = Convolutional(4, (3, 2), stride=(1, 2), activation="relu", input_shape=(1, 8, 8))
        cfg = conv.get_config()
        other = Convolutional.from_config(cfg)
        self.assertEqual(other.kernel_size, (3, 2))
        self.assertEqual(other.stride, (1, 2))
        self.assertEqual(other.activation.name, "relu")
        self.assertEqual(other.declared_input_shape, (1, 8, 8))


if __name__ == "__main__":
    unittest.main()
