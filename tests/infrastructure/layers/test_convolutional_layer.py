import unittest
from unittest import TestCase

import numpy as np

from src.celldnn.domain._errors import ConfigurationError
from src.celldnn.infrastructure.convolution import Convolutional
from src.celldnn.infrastructure.ops.conv2d_cpu import conv2d_output_hw
from src.celldnn.infrastructure.tensor._tensor import Tensor


def _conv_ref(x: np.ndarray, k: np.ndarray, b: np.ndarray, stride) -> np.ndarray:
    C, H, W = x.shape
    F, _, kh, kw = k.shape
    sh, sw = stride
    Ho, Wo = (H - kh) // sh + 1, (W - kw) // sw + 1
    y = np.zeros((F, Ho, Wo))
    for f in range(F):
        for i in range(Ho):
            for j in range(Wo):
                patch = x[:, i * sh:i * sh + kh, j * sw:j * sw + kw]
                y[f, i, j] = np.sum(patch * k[f]) + b[f]
    return y


class TestConvolutionalShapes(TestCase):
    def test_output_hw(self):
        self.assertEqual(conv2d_output_hw(5, 5, (3, 3), (1, 1)), (3, 3))
        self.assertEqual(conv2d_output_hw(7, 6, (3, 2), (2, 2)), (3, 3))

    def test_layer_shapes(self):
        conv = Convolutional(4, 3, stride=2, input_shape=(2, 7, 7))
        conv.build()
        self.assertEqual(conv.output_shape, (4, 3, 3))
        self.assertEqual(conv.kernel.shape, (4, 2, 3, 3))
        self.assertEqual(conv.bias.shape, (4,))
        self.assertEqual(conv.num_parameters(), 4 * 2 * 9 + 4)

    def test_kernel_larger_than_input(self):
        with self.assertRaises(ConfigurationError):
            Convolutional(1, 4, input_shape=(1, 3, 3)).build()

    def test_requires_3d_input(self):
        with self.assertRaises(ConfigurationError):
            Convolutional(1, 2, input_shape=(3, 3)).build()

    def test_invalid_stride(self):
        with self.assertRaises(ConfigurationError):
            Convolutional(1, 2, stride=0)


class TestConvolutionalValues(TestCase):
    def test_known_output(self):
        conv = Convolutional(1, 2, input_shape=(1, 3, 3))
        conv.build()
        conv.kernel.fill(1.0)
        out = conv.forward(np.arange(1.0, 10.0).reshape(1, 3, 3))
        np.testing.assert_allclose(out.data, [[[12.0, 16.0], [24.0, 28.0]]])

    def test_matches_reference_with_stride(self):
        rng = np.random.default_rng(3)
        conv = Convolutional(3, (2, 3), stride=(2, 1), input_shape=(2, 6, 5))
        conv.build()
        conv.initialize("normal", "normal", rng)
        x = rng.standard_normal((2, 6, 5))
        out = conv.forward(x)
        ref = _conv_ref(x, conv.kernel.data, conv.bias.data, (2, 1))
        np.testing.assert_allclose(out.data, ref, rtol=1e-12, atol=1e-12)

    def test_gradients_match_finite_differences(self):
        rng = np.random.default_rng(11)
        conv = Convolutional(2, 2, stride=1, activation="tanh", input_shape=(2, 4, 4))
        conv.build()
        conv.initialize("xavier", "normal", rng)
        x = rng.standard_normal((2, 4, 4))
        w = rng.standard_normal(conv.output_shape)
        h = 1e-5

        def objective(xv: np.ndarray) -> float:
            return float(np.sum(conv.forward(xv).data * w))

        conv.zero_grad()
        conv.forward(x)
        grad_x = conv.backward(w).data.copy()

        num_x = np.zeros_like(x)
        for idx in np.ndindex(x.shape):
            xp, xm = x.copy(), x.copy()
            xp[idx] += h
            xm[idx] -= h
            num_x[idx] = (objective(xp) - objective(xm)) / (2 * h)
        np.testing.assert_allclose(grad_x, num_x, rtol=1e-4, atol=1e-7)

        for param, grad in zip(conv.parameters(), conv.gradients()):
            flat = param.data.reshape(-1)
            num = np.zeros(flat.size)
            for i in range(flat.size):
                orig = flat[i]
                flat[i] = orig + h
                up = objective(x)
                flat[i] = orig - h
                down = objective(x)
                flat[i] = orig
                num[i] = (up - down) / (2 * h)
            np.testing.assert_allclose(grad.data.reshape(-1), num, rtol=1e-4, atol=1e-7)

    def test_input_gradient_is_overwritten_not_accumulated(self):
        conv = Convolutional(1, 2, input_shape=(1, 3, 3))
        conv.build()
        conv.kernel.fill(1.0)
        x = Tensor(np.ones((1, 3, 3)))
        conv.forward(x)
        first = conv.backward(np.ones((1, 2, 2))).clone()
        conv.forward(x)
        second = conv.backward(np.ones((1, 2, 2)))
        self.assertEqual(first, second)
        np.testing.assert_allclose(first.data[0], [[1, 2, 1], [2, 4, 2], [1, 2, 1]])


if __name__ == "__main__":
    unittest.main()
