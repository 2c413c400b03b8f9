import unittest
from unittest import TestCase

import numpy as np

from src.celldnn.domain._errors import (
    ConfigurationError,
    IndexOutOfRangeError,
    ShapeMismatchError,
)
from src.celldnn.infrastructure.tensor import Tensor, as_tensor, as_tensor_list


class TestTensorConstruction(TestCase):
    def test_nested_literal_shape(self):
        t = Tensor([[1, 2, 3], [4, 5, 6]])
        self.assertEqual(t.shape, (2, 3))
        self.assertEqual(t.size, 6)
        self.assertEqual(t.ndim, 2)
        self.assertEqual(t.data.dtype, np.float64)

    def test_flat_values_with_shape(self):
        t = Tensor([1, 2, 3, 4, 5, 6], shape=(3, 2))
        self.assertEqual(t.shape, (3, 2))
        self.assertEqual(t.get(2, 1), 6.0)

    def test_flat_values_wrong_count_raises(self):
        with self.assertRaises(ConfigurationError):
            Tensor([1, 2, 3], shape=(2, 2))

    def test_ragged_literal_raises(self):
        with self.assertRaises(ConfigurationError):
            Tensor([[1, 2], [3]])

    def test_none_raises(self):
        with self.assertRaises(ConfigurationError):
            Tensor(None)

    def test_scalar_becomes_length_one(self):
        t = Tensor(3.5)
        self.assertEqual(t.shape, (1,))
        self.assertEqual(t.item(), 3.5)

    def test_zero_dimension_rejected(self):
        with self.assertRaises(ConfigurationError):
            Tensor.zeros(2, 0)
        with self.assertRaises(ConfigurationError):
            Tensor.zeros()

    def test_zeros_and_full(self):
        np.testing.assert_array_equal(Tensor.zeros(2, 2).data, np.zeros((2, 2)))
        np.testing.assert_array_equal(Tensor.full((3,), 7.0).data, np.full(3, 7.0))

    def test_from_numpy_copies_by_default(self):
        arr = np.arange(4.0)
        t = Tensor.from_numpy(arr)
        arr[0] = 100.0
        self.assertEqual(t.get(0), 0.0)

    def test_copy_constructor_is_independent(self):
        a = Tensor([1.0, 2.0])
        b = Tensor(a)
        b.set(9.0, 0)
        self.assertEqual(a.get(0), 1.0)


class TestTensorIndexing(TestCase):
    def test_get_set_add_at(self):
        t = Tensor.zeros(2, 3)
        t.set(4.0, 1, 2)
        t.add_at(1.5, 1, 2)
        self.assertEqual(t.get(1, 2), 5.5)
        self.assertEqual(t[1, 2], 5.5)
        t[0, 0] = -1.0
        self.assertEqual(t.get(0, 0), -1.0)

    def test_out_of_range_raises(self):
        t = Tensor.zeros(2, 3)
        with self.assertRaises(IndexOutOfRangeError):
            t.get(2, 0)
        with self.assertRaises(IndexOutOfRangeError):
            t.get(0, -1)
        with self.assertRaises(IndexOutOfRangeError):
            t.get(0)

    def test_iteration_follows_first_axis(self):
        t = Tensor([[1, 2], [3, 4], [5, 6]])
        rows = list(t)
        self.assertEqual(len(rows), len(t))
        self.assertEqual(rows[1], Tensor([3, 4]))
        rows[1][0] = 30.0
        self.assertEqual(t.get(1, 0), 30.0)
        self.assertEqual(list(Tensor([1, 2, 3])), [1.0, 2.0, 3.0])
        self.assertEqual(t.to_array(), [1.0, 2.0, 30.0, 4.0, 5.0, 6.0])

    def test_equality_requires_same_shape(self):
        self.assertEqual(Tensor([1, 2, 3, 4]), Tensor([1, 2, 3, 4]))
        self.assertNotEqual(Tensor([1, 2, 3, 4]), Tensor([[1, 2], [3, 4]]))


class TestTensorViews(TestCase):
    def test_reshape_aliases(self):
        t = Tensor([1, 2, 3, 4, 5, 6])
        r = t.reshape(2, 3)
        r.set(0.0, 1, 2)
        self.assertEqual(t.get(5), 0.0)
        self.assertTrue(r.shares_memory(t))

    def test_reshape_count_mismatch(self):
        with self.assertRaises(ShapeMismatchError):
            Tensor.zeros(2, 3).reshape(4, 2)

    def test_transpose_general_2d_is_self_inverse(self):
        t = Tensor([[1, 2, 3], [4, 5, 6]])
        self.assertEqual(t.T.shape, (3, 2))
        self.assertEqual(t.T.T, t)

    def test_transpose_vector_forms(self):
        v = Tensor([1, 2, 3])
        self.assertEqual(v.transpose().shape, (3, 1))
        self.assertEqual(v.transpose().transpose().shape, (3,))

    def test_slice_view(self):
        t = Tensor(np.arange(12.0), shape=(3, 4))
        s = t.slice((1, 1), (3, 3))
        self.assertEqual(s.shape, (2, 2))
        np.testing.assert_array_equal(s.data, [[5, 6], [9, 10]])
        s.fill(0.0)
        self.assertEqual(t.get(1, 1), 0.0)

    def test_slice_bounds(self):
        t = Tensor.zeros(3, 4)
        with self.assertRaises(IndexOutOfRangeError):
            t.slice((0, 0), (4, 4))
        with self.assertRaises(IndexOutOfRangeError):
            t.slice((2, 0), (2, 4))

    def test_squeeze_unsqueeze(self):
        t = Tensor.zeros(1, 3)
        self.assertEqual(t.squeeze(0).shape, (3,))
        self.assertEqual(t.squeeze(0).unsqueeze(1).shape, (3, 1))
        with self.assertRaises(ConfigurationError):
            t.squeeze(1)

    def test_read_only_view_rejects_writes(self):
        t = Tensor([1.0, 2.0])
        ro = t.read_only_view()
        self.assertFalse(ro.writeable)
        with self.assertRaises(ValueError):
            ro.data[0] = 5.0
        t.set(3.0, 0)
        self.assertEqual(ro.get(0), 3.0)

    def test_copy_from_checks_shape(self):
        dst = Tensor.zeros(2, 2)
        dst.copy_from(Tensor([[1, 2], [3, 4]]))
        self.assertEqual(dst.get(1, 1), 4.0)
        with self.assertRaises(ShapeMismatchError):
            dst.copy_from(Tensor([1, 2, 3, 4]))

    def test_clone_is_independent(self):
        t = Tensor([1.0, 2.0])
        c = t.clone()
        c.set(0.0, 0)
        self.assertEqual(t.get(0), 1.0)
        self.assertFalse(c.shares_memory(t))


class TestTensorArithmetic(TestCase):
    def test_in_place_ops(self):
        t = Tensor([1.0, 2.0, 3.0])
        t.add(Tensor([1.0, 1.0, 1.0])).mult(2.0).sub(1.0).div(Tensor([1.0, 2.0, 5.0]))
        np.testing.assert_allclose(t.data, [3.0, 2.5, 1.4])

    def test_operators_return_new_tensors(self):
        a = Tensor([1.0, 2.0])
        b = Tensor([3.0, 4.0])
        np.testing.assert_allclose((a + b).data, [4.0, 6.0])
        np.testing.assert_allclose((b - a).data, [2.0, 2.0])
        np.testing.assert_allclose((2.0 * a).data, [2.0, 4.0])
        np.testing.assert_allclose((1.0 - a).data, [0.0, -1.0])
        np.testing.assert_allclose((-a).data, [-1.0, -2.0])
        np.testing.assert_allclose(a.data, [1.0, 2.0])

    def test_shape_mismatch(self):
        with self.assertRaises(ShapeMismatchError):
            Tensor([1.0, 2.0]).add(Tensor([1.0, 2.0, 3.0]))

    def test_non_numeric_operand(self):
        with self.assertRaises(TypeError):
            Tensor([1.0]).add("x")

    def test_matmul(self):
        a = Tensor([[1, 2], [3, 4]])
        b = Tensor([[5], [6]])
        np.testing.assert_allclose((a @ b).data, [[17], [39]])
        with self.assertRaises(ShapeMismatchError):
            a.matmul(Tensor([[1, 2, 3]]))

    def test_map_and_apply(self):
        t = Tensor([1.0, 4.0, 9.0])
        m = t.map(np.sqrt)
        np.testing.assert_allclose(m.data, [1.0, 2.0, 3.0])
        t.apply(lambda v: v + 1)
        np.testing.assert_allclose(t.data, [2.0, 5.0, 10.0])


class TestTensorReduction(TestCase):
    def test_reductions(self):
        t = Tensor([[1.0, 2.0], [3.0, 6.0]])
        self.assertEqual(t.sum(), 12.0)
        self.assertEqual(t.mean(), 3.0)
        self.assertEqual(t.max(), 6.0)
        self.assertEqual(t.min(), 1.0)
        self.assertAlmostEqual(t.std(), float(np.std([1, 2, 3, 6])))

    def test_item_requires_single_cell(self):
        with self.assertRaises(ConfigurationError):
            Tensor([1.0, 2.0]).item()

    def test_normalize(self):
        t = Tensor([2.0, 4.0, 6.0]).normalize()
        np.testing.assert_allclose(t.data, [0.0, 0.5, 1.0])
        c = Tensor([3.0, 3.0]).normalize(-1.0, 1.0)
        np.testing.assert_allclose(c.data, [-1.0, -1.0])


class TestConversion(TestCase):
    def test_as_tensor_passes_tensor_through(self):
        t = Tensor([1.0])
        self.assertIs(as_tensor(t), t)
        self.assertIsNot(as_tensor(t, copy=True), t)

    def test_as_tensor_list(self):
        xs = as_tensor_list([[1, 2], np.array([3, 4])], "xs")
        self.assertEqual(len(xs), 2)
        self.assertEqual(xs[1].get(0), 3.0)

    def test_as_tensor_none(self):
        with self.assertRaises(ConfigurationError):
            as_tensor(None)


if __name__ == "__main__":
    unittest.main()
