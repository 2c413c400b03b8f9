"""
Shared helpers for Tensor mixins.

Mixins only assume that the concrete class stores its cells in a NumPy array
named `_data` and can wrap an existing array without copying via `_wrap`.
"""

from __future__ import annotations

from typing import Any, Union

import numpy as np

from ....domain._errors import ShapeMismatchError

Number = Union[int, float]


class TensorMixinBase:
    """Operand normalization used by the arithmetic and reduction mixins."""

    _data: np.ndarray

    @classmethod
    def _wrap(cls, arr: np.ndarray) -> Any:  # pragma: no cover - provided by Tensor
        raise NotImplementedError

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(self._data.shape)

    def _operand(self, other: Any, op: str) -> Union[np.ndarray, float]:
        """
        Resolve the right-hand side of an elementwise operation.

        Scalars pass through; tensors must have exactly this tensor's shape.

        Raises
        ------
        ShapeMismatchError
            If `other` is a tensor of a different shape.
        """
        if isinstance(other, (int, float, np.floating, np.integer)):
            return float(other)
        other_data = getattr(other, "_data", None)
        if other_data is None:
            raise TypeError(
                f"{op}: unsupported operand type {type(other).__name__!r}"
            )
        if other_data.shape != self._data.shape:
            raise ShapeMismatchError(op, self._data.shape, other_data.shape)
        return other_data
