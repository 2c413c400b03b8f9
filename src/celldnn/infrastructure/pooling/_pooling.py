"""
2D pooling layers: `MaxPooling` and `AvgPooling`.

Both layers take ``(C, H, W)`` inputs and reduce each channel independently
over windows of ``pool_size`` placed every ``stride`` cells (stride defaults
to the pool size). Windows are clipped to the input and the output has shape

    (C, (H - p_h) // s_h + 1, (W - p_w) // s_w + 1)

Gradients of overlapping windows (stride smaller than pool size) accumulate
in the input gradient.

Pooling layers have no parameters; `as_trainable` rejects them.
"""

from __future__ import annotations

import warnings
from typing import Any, Dict, Optional, Sequence, Tuple, Union

import numpy as np

from ...domain._errors import ConfigurationError
from ..convolution._convolutional import _positive_pair
from ..layers._base import Layer, register_layer
from ..ops.pool2d_cpu import (
    avgpool2d_backward_cpu,
    avgpool2d_forward_cpu,
    maxpool2d_backward_cpu,
    maxpool2d_forward_cpu,
    pool2d_output_hw,
)


class Pooling2d(Layer):
    """
    Shared configuration and shape logic of the 2D pooling layers.

    Parameters
    ----------
    pool_size : int or tuple[int, int]
        Window height and width.
    stride : int or tuple[int, int], optional
        Step between windows. Defaults to `pool_size`.
    input_shape : tuple[int, int, int], optional
        ``(C, H, W)``; required on the first layer.
    name : str, optional
        Display name.
    """

    def __init__(
        self,
        pool_size: Union[int, Sequence[int]],
        stride: Optional[Union[int, Sequence[int]]] = None,
        input_shape: Optional[Sequence[int]] = None,
        name: Optional[str] = None,
    ) -> None:
        self.pool_size = _positive_pair(pool_size, "pool_size")
        self.stride = (
            self.pool_size if stride is None else _positive_pair(stride, "stride")
        )
        super().__init__(input_shape=input_shape, name=name)

    def _compute_output_shape(self, input_shape: Tuple[int, ...]) -> Tuple[int, ...]:
        if len(input_shape) != 3:
            raise ConfigurationError(
                f"{type(self).__name__} expects input (channels, height, width), "
                f"got {input_shape}",
                argument="input_shape",
                value=input_shape,
            )
        C, H, W = input_shape
        p_h, p_w = self.pool_size
        if p_h > H or p_w > W:
            raise ConfigurationError(
                f"pool_size {self.pool_size} does not fit input {H}x{W}",
                argument="pool_size",
                value=self.pool_size,
            )
        H_out, W_out = pool2d_output_hw(H, W, self.pool_size, self.stride)
        s_h, s_w = self.stride
        covered_h = (H_out - 1) * s_h + p_h
        covered_w = (W_out - 1) * s_w + p_w
        if (covered_h < H or covered_w < W) and not self._quiet_build:
            warnings.warn(
                f"{type(self).__name__} with pool_size={self.pool_size} and "
                f"stride={self.stride} leaves {H - covered_h} trailing row(s) and "
                f"{W - covered_w} trailing column(s) of a {H}x{W} input uncovered",
                UserWarning,
                stacklevel=3,
            )
        return (C, H_out, W_out)

    def get_config(self) -> Dict[str, Any]:
        cfg = super().get_config()
        cfg["pool_size"] = list(self.pool_size)
        cfg["stride"] = list(self.stride)
        return cfg


@register_layer()
class MaxPooling(Pooling2d):
    """
    Max pooling.

    Forward records, per window, the flat input index of its first
    (row-major) maximum; backward routes the whole upstream gradient of the
    window to that cell.
    """

    def _build_buffers(self) -> None:
        self._argmax = np.zeros(self._output_shape, dtype=np.int64)

    @property
    def argmax_indices(self) -> np.ndarray:
        """Flat ``h * W + w`` index of each window's maximum (read-only copy)."""
        self._require_built("argmax_indices")
        return self._argmax.copy()

    def _forward(self) -> None:
        maxpool2d_forward_cpu(
            self._input.data,  # type: ignore[union-attr]
            pool_size=self.pool_size,
            stride=self.stride,
            out=self._output.data,  # type: ignore[union-attr]
            argmax_idx=self._argmax,
        )

    def _backward(self, grad: Any) -> None:
        maxpool2d_backward_cpu(
            grad.data,
            self._argmax,
            grad_x=self._grad_input.data,  # type: ignore[union-attr]
        )

    def _copy_buffers_into(self, other: Layer) -> None:
        np.copyto(other._argmax, self._argmax)  # type: ignore[attr-defined]


@register_layer()
class AvgPooling(Pooling2d):
    """
    Average pooling over the cells of each (clipped) window.
    """

    def _forward(self) -> None:
        avgpool2d_forward_cpu(
            self._input.data,  # type: ignore[union-attr]
            pool_size=self.pool_size,
            stride=self.stride,
            out=self._output.data,  # type: ignore[union-attr]
        )

    def _backward(self, grad: Any) -> None:
        avgpool2d_backward_cpu(
            grad.data,
            pool_size=self.pool_size,
            stride=self.stride,
            grad_x=self._grad_input.data,  # type: ignore[union-attr]
        )
