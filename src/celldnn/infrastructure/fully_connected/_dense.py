"""
Fully-connected (Dense) layer.

The layer computes ``output = act(x . K + b)`` for one example, where

- `x` is either a feature vector ``(features,)`` or a matrix
  ``(rows, features)`` whose rows are transformed independently;
- `K` has shape ``(features, units)``;
- `b` has shape ``(units,)`` and is added to every row.

Backward pass
-------------
With ``g = act'(z) * grad``:

- ``grad_kernel += x^T . g``
- ``grad_bias   += column sums of g``
- ``grad_input   = g . K^T``

Parameter gradients accumulate across calls until `zero_grad`.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence, Tuple, Union

import numpy as np

from ...domain._activation import IActivation
from ...domain._errors import ConfigurationError
from ..layers._base import TrainableLayer, _positive_int, register_layer


@register_layer()
class Dense(TrainableLayer):
    """
    Keras-style fully-connected layer.

    Parameters
    ----------
    units : int
        Number of output units per row.
    activation : str or IActivation, optional
        Activation applied to the weighted sum. Defaults to ``"linear"``.
    use_bias : bool, optional
        If True, include a learnable bias term. Defaults to True.
    input_shape : int or tuple[int, ...], optional
        ``features`` or ``(rows, features)``; required on the first layer.
    name : str, optional
        Display name.
    """

    def __init__(
        self,
        units: int,
        activation: Union[str, IActivation, None] = "linear",
        use_bias: bool = True,
        input_shape: Optional[Union[int, Sequence[int]]] = None,
        name: Optional[str] = None,
    ) -> None:
        self.units = _positive_int(units, "units")
        super().__init__(
            activation=activation, use_bias=use_bias, input_shape=input_shape, name=name
        )

    def _compute_output_shape(self, input_shape: Tuple[int, ...]) -> Tuple[int, ...]:
        if len(input_shape) == 1:
            return (self.units,)
        if len(input_shape) == 2:
            return (input_shape[0], self.units)
        raise ConfigurationError(
            f"Dense expects input (features,) or (rows, features), got {input_shape}",
            argument="input_shape",
            value=input_shape,
        )

    @property
    def in_features(self) -> int:
        return self.input_shape[-1]

    def _kernel_shape(self) -> Tuple[int, ...]:
        return (self._input_shape[-1], self.units)  # type: ignore[index]

    def _bias_shape(self) -> Tuple[int, ...]:
        return (self.units,)

    def _forward(self) -> None:
        z = self._z.data  # type: ignore[union-attr]
        np.matmul(self._input.data, self._kernel.data, out=z)  # type: ignore[union-attr]
        if self._bias is not None:
            z += self._bias.data
        self._activate()

    def _backward(self, grad: Any) -> None:
        g = self._activation_grad(grad).data
        x = self._input.data  # type: ignore[union-attr]
        k = self._kernel.data  # type: ignore[union-attr]
        gk = self._grad_kernel.data  # type: ignore[union-attr]
        gb = self._grad_bias.data if self._grad_bias is not None else None

        if x.ndim == 1:
            gk += np.outer(x, g)
            if gb is not None:
                gb += g
            np.matmul(k, g, out=self._grad_input.data)  # type: ignore[union-attr]
        else:
            gk += x.T @ g
            if gb is not None:
                gb += g.sum(axis=0)
            np.matmul(g, k.T, out=self._grad_input.data)  # type: ignore[union-attr]

    def get_config(self) -> Dict[str, Any]:
        cfg = super().get_config()
        cfg["units"] = self.units
        return cfg
