"""
Flatten layer.

Reshapes an example of shape ``(d0, ..., dn)`` into ``(d0 * ... * dn,)`` in
row-major order; backward reshapes the gradient back. Typically placed
between convolution/pooling layers and dense layers.
"""

from __future__ import annotations

from typing import Any, Tuple

import numpy as np

from ..layers._base import Layer, register_layer


@register_layer()
class Flatten(Layer):
    """Row-major flattening of one example; no parameters."""

    def _compute_output_shape(self, input_shape: Tuple[int, ...]) -> Tuple[int, ...]:
        return (int(np.prod(input_shape)),)

    def _forward(self) -> None:
        np.copyto(self._output.data, self._input.data.reshape(-1))  # type: ignore[union-attr]

    def _backward(self, grad: Any) -> None:
        np.copyto(
            self._grad_input.data,  # type: ignore[union-attr]
            grad.data.reshape(self._input_shape),
        )
