"""
Layer interface definitions.

Layers are described by a minimal core contract plus optional capability
protocols, using structural subtyping via `typing.Protocol`:

- `ILayer`       build / forward / backward / shapes (every layer)
- `ITrainable`   parameters, gradient accumulators, zero_grad
- `INamed`       stable name and model-assigned id
- `IDuplicable`  deep clone and parameter-sharing replica

A layer implements only the capabilities that are meaningful for it. Pooling
layers, for instance, are not `ITrainable` and therefore have no kernel; code
that needs one goes through `as_trainable`, which raises
`UnsupportedOperationError` instead of relying on stub methods.

Buffer ownership
----------------
A built layer owns fixed-size buffers for its input cache, its output and its
input gradient. `forward` returns the layer's own output buffer and `backward`
its own grad-input buffer; both are overwritten by the next call on the same
layer. Callers that need to keep a result must clone it.
"""

from __future__ import annotations

from typing import Iterable, Optional, Protocol, Tuple, runtime_checkable

from ._errors import UnsupportedOperationError
from ._tensor import ITensor
from ._activation import IActivation


@runtime_checkable
class ILayer(Protocol):
    """
    Core layer contract.

    Notes
    -----
    - `build` must be called exactly once before any compute call.
    - `backward` reads the input cached by the most recent `forward`.
    """

    @property
    def is_built(self) -> bool:
        """Whether `build` has fixed the layer's shapes and buffers."""
        ...

    @property
    def trainable(self) -> bool:
        """Whether the layer owns trainable parameters."""
        ...

    @property
    def training(self) -> bool:
        """Training-mode flag (numerically inert for the built-in layers)."""
        ...

    def set_training(self, flag: bool) -> None:
        """Switch training mode on or off."""
        ...

    def build(self, input_shape: Tuple[int, ...]) -> None:
        """
        Fix all shapes and allocate every buffer.

        Parameters
        ----------
        input_shape : tuple[int, ...]
            Shape of a single input example.
        """
        ...

    def forward(self, x: ITensor) -> ITensor:
        """
        Compute the layer output for one example.

        Returns
        -------
        ITensor
            The layer-owned output buffer.
        """
        ...

    def backward(self, grad: ITensor) -> ITensor:
        """
        Back-propagate an upstream gradient.

        Returns
        -------
        ITensor
            The layer-owned gradient w.r.t. the cached input.
        """
        ...

    @property
    def input_shape(self) -> Tuple[int, ...]:
        """Configured input shape."""
        ...

    @property
    def output_shape(self) -> Tuple[int, ...]:
        """Computed output shape."""
        ...

    def num_parameters(self) -> int:
        """Number of trainable scalars."""
        ...


@runtime_checkable
class ITrainable(Protocol):
    """
    Capability for layers holding trainable parameters.

    Gradient accumulators have exactly the shape of their parameter and keep
    their contents across `backward` calls until `zero_grad` is invoked.
    """

    @property
    def kernel(self) -> ITensor:
        """Primary trainable tensor (weights or filters)."""
        ...

    @property
    def bias(self) -> Optional[ITensor]:
        """Bias tensor, or None when bias is disabled."""
        ...

    @property
    def grad_kernel(self) -> ITensor:
        """Accumulated kernel gradient."""
        ...

    @property
    def grad_bias(self) -> Optional[ITensor]:
        """Accumulated bias gradient, or None when bias is disabled."""
        ...

    @property
    def use_bias(self) -> bool:
        """Whether a bias term is used."""
        ...

    @property
    def activation(self) -> IActivation:
        """Activation strategy applied to the pre-activation sum."""
        ...

    def parameters(self) -> Iterable[ITensor]:
        """Trainable tensors in a fixed order (kernel, then bias)."""
        ...

    def gradients(self) -> Iterable[ITensor]:
        """Gradient accumulators matching `parameters()` one-to-one."""
        ...

    def zero_grad(self) -> None:
        """Clear every gradient accumulator."""
        ...


@runtime_checkable
class INamed(Protocol):
    """Capability for layers with a display name and a model-assigned id."""

    @property
    def name(self) -> str:
        """Display name."""
        ...

    @property
    def layer_id(self) -> int:
        """Position-derived identifier used for deterministic ordering."""
        ...


@runtime_checkable
class IDuplicable(Protocol):
    """Capability for layers that can be copied."""

    def clone(self) -> "IDuplicable":
        """Return a fully independent deep copy."""
        ...

    def replicate(self) -> "IDuplicable":
        """
        Return a copy that shares parameter cells read-only but owns private
        scratch buffers (input cache, output, gradients).
        """
        ...


def as_trainable(layer: object, op: str = "kernel access") -> ITrainable:
    """
    Return `layer` typed as `ITrainable`, or fail explicitly.

    Parameters
    ----------
    layer : object
        Any layer.
    op : str, optional
        Name of the capability being requested, used in the error message.

    Raises
    ------
    UnsupportedOperationError
        If the layer does not implement the trainable capability.
    """
    # Checked on the class so that unbuilt layers are not asked for buffers.
    cls = type(layer)
    if getattr(layer, "trainable", False) and all(
        hasattr(cls, attr) for attr in ("kernel", "grad_kernel", "zero_grad")
    ):
        return layer  # type: ignore[return-value]
    raise UnsupportedOperationError(type(layer).__name__, op)
