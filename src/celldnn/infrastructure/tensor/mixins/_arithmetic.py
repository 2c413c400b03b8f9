"""
Elementwise arithmetic for Tensor.

Two flavours are provided:

- In-place methods `add`, `sub`, `mult`, `div`, `apply` mutate the receiver's
  cells and return it, so they can be chained.
- Operator forms (`+`, `-`, `*`, `/`) and `map` allocate a new tensor.

Both flavours require identical shapes for tensor operands; scalars are
accepted everywhere. No broadcasting is performed.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Union

import numpy as np
from typing_extensions import Self

from ....domain._errors import ConfigurationError, ShapeMismatchError
from ._base import Number, TensorMixinBase


def _vectorized(fn: Callable[..., Any]) -> Callable[..., np.ndarray]:
    """Return a NumPy-callable version of a scalar function."""
    if isinstance(fn, np.ufunc):
        return fn
    return np.vectorize(fn, otypes=[np.float64])


class TensorMixinArithmetic(TensorMixinBase):
    """In-place and out-of-place elementwise arithmetic."""

    # ------------------------------------------------------------------
    # In-place
    # ------------------------------------------------------------------
    def add(self, other: Union["TensorMixinArithmetic", Number]) -> Self:
        """Add `other` into this tensor, cell by cell."""
        self._data += self._operand(other, "add")
        return self

    def sub(self, other: Union["TensorMixinArithmetic", Number]) -> Self:
        """Subtract `other` from this tensor, cell by cell."""
        self._data -= self._operand(other, "sub")
        return self

    def mult(self, other: Union["TensorMixinArithmetic", Number]) -> Self:
        """Multiply this tensor by `other`, cell by cell."""
        self._data *= self._operand(other, "mult")
        return self

    def div(self, other: Union["TensorMixinArithmetic", Number]) -> Self:
        """Divide this tensor by `other`, cell by cell."""
        self._data /= self._operand(other, "div")
        return self

    def apply(
        self,
        fn: Callable[..., Any],
        other: Optional["TensorMixinArithmetic"] = None,
    ) -> Self:
        """
        Apply a scalar function to every cell, in place.

        Parameters
        ----------
        fn : Callable
            Unary function ``f(x)``, or binary ``f(x, y)`` when `other` is
            given. NumPy ufuncs are applied directly; other callables are
            vectorized.
        other : Tensor, optional
            Second operand of identical shape for binary functions.

        Returns
        -------
        Tensor
            This tensor.
        """
        if fn is None:
            raise ConfigurationError("apply: function must not be None", argument="fn")
        vf = _vectorized(fn)
        if other is None:
            np.copyto(self._data, vf(self._data))
        else:
            rhs = self._operand(other, "apply")
            np.copyto(self._data, vf(self._data, rhs))
        return self

    # ------------------------------------------------------------------
    # Out-of-place
    # ------------------------------------------------------------------
    def map(
        self,
        fn: Callable[..., Any],
        other: Optional["TensorMixinArithmetic"] = None,
    ) -> Self:
        """
        Apply a scalar function to every cell into a new tensor.

        See `apply` for the accepted functions. The receiver is not modified.
        """
        if fn is None:
            raise ConfigurationError("map: function must not be None", argument="fn")
        vf = _vectorized(fn)
        if other is None:
            out = vf(self._data)
        else:
            out = vf(self._data, self._operand(other, "map"))
        return self._wrap(np.array(out, dtype=np.float64).reshape(self._data.shape))

    def matmul(self, other: "TensorMixinArithmetic") -> Self:
        """
        Matrix product of two 2-D tensors.

        Raises
        ------
        ShapeMismatchError
            If either operand is not 2-D or the inner dimensions differ.
        """
        a = self._data
        b = getattr(other, "_data", None)
        if b is None:
            raise TypeError(f"matmul: unsupported operand type {type(other).__name__!r}")
        if a.ndim != 2 or b.ndim != 2 or a.shape[1] != b.shape[0]:
            raise ShapeMismatchError(
                "matmul",
                a.shape,
                b.shape,
                detail="operands must be 2-D with matching inner dimension",
            )
        return self._wrap(a @ b)

    def __matmul__(self, other: "TensorMixinArithmetic") -> Self:
        return self.matmul(other)

    def _binary(self, other: Any, op: str, fn: Callable[..., np.ndarray]) -> Self:
        return self._wrap(fn(self._data, self._operand(other, op)))

    def __add__(self, other: Any) -> Self:
        return self._binary(other, "add", np.add)

    def __radd__(self, other: Any) -> Self:
        return self._binary(other, "add", np.add)

    def __sub__(self, other: Any) -> Self:
        return self._binary(other, "sub", np.subtract)

    def __rsub__(self, other: Any) -> Self:
        return self._wrap(self._operand(other, "sub") - self._data)

    def __mul__(self, other: Any) -> Self:
        return self._binary(other, "mult", np.multiply)

    def __rmul__(self, other: Any) -> Self:
        return self._binary(other, "mult", np.multiply)

    def __truediv__(self, other: Any) -> Self:
        return self._binary(other, "div", np.divide)

    def __rtruediv__(self, other: Any) -> Self:
        return self._wrap(self._operand(other, "div") / self._data)

    def __neg__(self) -> Self:
        return self._wrap(-self._data)
