"""
2D convolutional layer (valid mode, strided).

Input examples have shape ``(C, H, W)``. The layer holds `F` filters of shape
``(C, K_h, K_w)`` (kernel ``(F, C, K_h, K_w)``) and, if enabled, one bias per
filter (``(F,)``). The output has shape

    (F, (H - K_h) // s_h + 1, (W - K_w) // s_w + 1)

and is ``act(sum_c corr(x[c], K[f, c]) + b[f])`` for every filter `f`.

Numerics are delegated to `ops.conv2d_cpu`; this module owns shapes,
validation and buffers.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence, Tuple, Union

from ...domain._activation import IActivation
from ...domain._errors import ConfigurationError
from ..layers._base import TrainableLayer, _positive_int, register_layer
from ..ops.conv2d_cpu import _pair, conv2d_backward_cpu, conv2d_forward_cpu, conv2d_output_hw


def _positive_pair(v: Union[int, Sequence[int]], argument: str) -> Tuple[int, int]:
    if isinstance(v, (tuple, list)):
        if len(v) != 2:
            raise ConfigurationError(
                f"{argument} must be an int or a pair, got {v!r}",
                argument=argument,
                value=v,
            )
        return _positive_int(v[0], argument), _positive_int(v[1], argument)
    n = _positive_int(v, argument)
    return _pair(n)


@register_layer()
class Convolutional(TrainableLayer):
    """
    Valid-mode strided 2D convolution over ``(C, H, W)`` inputs.

    Parameters
    ----------
    filters : int
        Number of output channels.
    kernel_size : int or tuple[int, int]
        Filter height and width.
    stride : int or tuple[int, int], optional
        Vertical and horizontal step. Defaults to 1.
    activation : str or IActivation, optional
        Defaults to ``"linear"``.
    use_bias : bool, optional
        One bias per filter when True (default).
    input_shape : tuple[int, int, int], optional
        ``(C, H, W)``; required on the first layer.
    name : str, optional
        Display name.

    Raises
    ------
    ConfigurationError
        For non-positive sizes, or at build time when the kernel does not fit
        inside the input.
    """

    def __init__(
        self,
        filters: int,
        kernel_size: Union[int, Sequence[int]],
        stride: Union[int, Sequence[int]] = 1,
        activation: Union[str, IActivation, None] = "linear",
        use_bias: bool = True,
        input_shape: Optional[Sequence[int]] = None,
        name: Optional[str] = None,
    ) -> None:
        self.filters = _positive_int(filters, "filters")
        self.kernel_size = _positive_pair(kernel_size, "kernel_size")
        self.stride = _positive_pair(stride, "stride")
        super().__init__(
            activation=activation, use_bias=use_bias, input_shape=input_shape, name=name
        )

    def _compute_output_shape(self, input_shape: Tuple[int, ...]) -> Tuple[int, ...]:
        if len(input_shape) != 3:
            raise ConfigurationError(
                f"Convolutional expects input (channels, height, width), got {input_shape}",
                argument="input_shape",
                value=input_shape,
            )
        _, H, W = input_shape
        k_h, k_w = self.kernel_size
        if k_h > H or k_w > W:
            raise ConfigurationError(
                f"kernel_size {self.kernel_size} does not fit input {H}x{W}",
                argument="kernel_size",
                value=self.kernel_size,
            )
        H_out, W_out = conv2d_output_hw(H, W, self.kernel_size, self.stride)
        return (self.filters, H_out, W_out)

    def _kernel_shape(self) -> Tuple[int, ...]:
        channels = self._input_shape[0]  # type: ignore[index]
        return (self.filters, channels, *self.kernel_size)

    def _bias_shape(self) -> Tuple[int, ...]:
        return (self.filters,)

    def _forward(self) -> None:
        conv2d_forward_cpu(
            self._input.data,  # type: ignore[union-attr]
            self._kernel.data,  # type: ignore[union-attr]
            None if self._bias is None else self._bias.data,
            self.stride,
            self._z.data,  # type: ignore[union-attr]
        )
        self._activate()

    def _backward(self, grad: Any) -> None:
        g = self._activation_grad(grad)
        conv2d_backward_cpu(
            self._input.data,  # type: ignore[union-attr]
            self._kernel.data,  # type: ignore[union-attr]
            g.data,
            self.stride,
            grad_x=self._grad_input.data,  # type: ignore[union-attr]
            grad_kernel=self._grad_kernel.data,  # type: ignore[union-attr]
            grad_bias=None if self._grad_bias is None else self._grad_bias.data,
        )

    def get_config(self) -> Dict[str, Any]:
        cfg = super().get_config()
        cfg["filters"] = self.filters
        cfg["kernel_size"] = list(self.kernel_size)
        cfg["stride"] = list(self.stride)
        return cfg
