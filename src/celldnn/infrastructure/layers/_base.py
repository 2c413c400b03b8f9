"""
Layer base classes and the layer registry.

`Layer` implements the lifecycle shared by every built-in layer:

- construction stores hyperparameters only;
- `build(input_shape)` fixes the input/output shapes and allocates every
  buffer exactly once;
- `forward(x)` validates the input shape, copies it into the layer-owned input
  cache and computes into the layer-owned output buffer, which it returns;
- `backward(grad)` computes into the layer-owned grad-input buffer, which it
  returns.

Subclasses provide `_compute_output_shape`, `_forward` and `_backward`.

`TrainableLayer` adds the kernel/bias parameters, their gradient
accumulators, the activation strategy and weight initialization.

Registry
--------
Concrete layers register under their type tag with `register_layer` so that
persistence can rebuild them from `get_config()` output.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type, Union

import numpy as np

from ...domain._activation import IActivation
from ...domain._errors import (
    ConfigurationError,
    NotBuiltError,
    ShapeMismatchError,
)
from .._activations import activation_token, get_activation
from ..tensor._conversion import as_tensor
from ..tensor._tensor import Tensor
from ..utils.weight_initializer import WeightInitializer

logger = logging.getLogger(__name__)

_LAYER_REGISTRY: Dict[str, Type["Layer"]] = {}


def register_layer(name: Optional[str] = None) -> Callable[[Type[Any]], Type[Any]]:
    """
    Decorator to register a Layer class under a type tag for persistence.
    """

    def deco(cls: Type[Any]) -> Type[Any]:
        key = name or cls.__name__
        _LAYER_REGISTRY[key] = cls
        cls.type_tag = key
        return cls

    return deco


def layer_class(type_tag: str) -> Type["Layer"]:
    """Look up a registered layer class by type tag."""
    try:
        return _LAYER_REGISTRY[type_tag]
    except KeyError as e:
        raise ConfigurationError(
            f"Unknown layer type {type_tag!r}. Register it via @register_layer.",
            argument="type",
            value=type_tag,
        ) from e


def _as_shape(shape: Union[int, Sequence[int]], argument: str) -> Tuple[int, ...]:
    if isinstance(shape, (int, np.integer)) and not isinstance(shape, bool):
        shape = (int(shape),)
    try:
        dims = tuple(shape)  # type: ignore[arg-type]
    except TypeError as e:
        raise ConfigurationError(
            f"{argument} must be an int or a sequence of ints, got {shape!r}",
            argument=argument,
            value=shape,
        ) from e
    if len(dims) == 0 or any(
        isinstance(d, bool) or not isinstance(d, (int, np.integer)) or d < 1 for d in dims
    ):
        raise ConfigurationError(
            f"{argument} must contain positive integers, got {dims}",
            argument=argument,
            value=dims,
        )
    return tuple(int(d) for d in dims)


def _positive_int(value: Any, argument: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < 1:
        raise ConfigurationError(
            f"{argument} must be a positive integer, got {value!r}",
            argument=argument,
            value=value,
        )
    return int(value)


class Layer:
    """
    Base class of every built-in layer.

    Parameters
    ----------
    input_shape : int or tuple[int, ...], optional
        Shape of one input example. Required on the first layer of a model;
        later layers receive it from their predecessor at compile time.
    name : str, optional
        Display name. Defaults to the lower-cased class name.
    """

    type_tag: str = "Layer"
    trainable: bool = False
    _quiet_build: bool = False

    def __init__(
        self,
        input_shape: Optional[Union[int, Sequence[int]]] = None,
        name: Optional[str] = None,
    ) -> None:
        self._declared_input_shape: Optional[Tuple[int, ...]] = (
            None if input_shape is None else _as_shape(input_shape, "input_shape")
        )
        self._name = name or type(self).__name__.lower()
        self._layer_id = -1
        self._training = False
        self._built = False
        self._input_shape: Optional[Tuple[int, ...]] = None
        self._output_shape: Optional[Tuple[int, ...]] = None
        self._input: Optional[Tensor] = None
        self._output: Optional[Tensor] = None
        self._grad_input: Optional[Tensor] = None

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------
    @property
    def name(self) -> str:
        return self._name

    @property
    def layer_id(self) -> int:
        return self._layer_id

    def _assign_id(self, layer_id: int) -> None:
        self._layer_id = int(layer_id)

    def _owner(self) -> str:
        return f"{type(self).__name__} (id {self._layer_id})"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def is_built(self) -> bool:
        return self._built

    @property
    def training(self) -> bool:
        return self._training

    def set_training(self, flag: bool) -> None:
        self._training = bool(flag)

    @property
    def declared_input_shape(self) -> Optional[Tuple[int, ...]]:
        """Input shape given at construction time, if any."""
        return self._declared_input_shape

    def _require_built(self, op: str) -> None:
        if not self._built:
            raise NotBuiltError(self._owner(), op)

    @property
    def input_shape(self) -> Tuple[int, ...]:
        self._require_built("input_shape")
        return self._input_shape  # type: ignore[return-value]

    @property
    def output_shape(self) -> Tuple[int, ...]:
        self._require_built("output_shape")
        return self._output_shape  # type: ignore[return-value]

    def _compute_output_shape(self, input_shape: Tuple[int, ...]) -> Tuple[int, ...]:
        raise NotImplementedError

    def _build_buffers(self) -> None:
        """Hook for subclasses that own buffers beyond input/output/grad-input."""

    def build(self, input_shape: Optional[Union[int, Sequence[int]]] = None) -> None:
        """
        Fix shapes and allocate every buffer.

        Parameters
        ----------
        input_shape : int or tuple[int, ...], optional
            Shape of one input example. Defaults to the shape given at
            construction.

        Raises
        ------
        ConfigurationError
            If the layer is already built, no input shape is known, or the
            shape is invalid for this layer.
        ShapeMismatchError
            If `input_shape` disagrees with the shape declared at construction.
        """
        if self._built:
            raise ConfigurationError(
                f"{self._owner()} is already built", argument="input_shape"
            )
        if input_shape is None:
            if self._declared_input_shape is None:
                raise ConfigurationError(
                    f"{self._owner()}: input_shape is required to build",
                    argument="input_shape",
                )
            shape = self._declared_input_shape
        else:
            shape = _as_shape(input_shape, "input_shape")
            if (
                self._declared_input_shape is not None
                and shape != self._declared_input_shape
            ):
                raise ShapeMismatchError(
                    f"{type(self).__name__}.build", self._declared_input_shape, shape
                )

        out_shape = self._compute_output_shape(shape)
        self._input_shape = shape
        self._output_shape = out_shape
        self._input = Tensor.zeros(*shape)
        self._output = Tensor.zeros(*out_shape)
        self._grad_input = Tensor.zeros(*shape)
        self._build_buffers()
        self._built = True
        logger.debug(
            "built %s: input_shape=%s output_shape=%s", self._owner(), shape, out_shape
        )

    # ------------------------------------------------------------------
    # Compute
    # ------------------------------------------------------------------
    def _check_shape(self, t: Tensor, expected: Tuple[int, ...], op: str) -> None:
        if tuple(t.shape) != expected:
            raise ShapeMismatchError(f"{type(self).__name__}.{op}", expected, t.shape)

    def _forward(self) -> None:
        raise NotImplementedError

    def _backward(self, grad: Tensor) -> None:
        raise NotImplementedError

    def forward(self, x: Any) -> Tensor:
        """
        Compute the output for one example.

        Returns
        -------
        Tensor
            The layer-owned output buffer. It is overwritten by the next
            `forward` on this layer; clone it to keep the values.
        """
        self._require_built("forward")
        x = as_tensor(x)
        self._check_shape(x, self._input_shape, "forward")  # type: ignore[arg-type]
        self._input.copy_from(x)  # type: ignore[union-attr]
        self._forward()
        return self._output  # type: ignore[return-value]

    def backward(self, grad: Any) -> Tensor:
        """
        Back-propagate `grad` (shaped like the output) through the layer.

        Returns
        -------
        Tensor
            The layer-owned gradient w.r.t. the input cached by the last
            `forward`.
        """
        self._require_built("backward")
        grad = as_tensor(grad)
        self._check_shape(grad, self._output_shape, "backward")  # type: ignore[arg-type]
        self._backward(grad)
        return self._grad_input  # type: ignore[return-value]

    def __call__(self, x: Any) -> Tensor:
        return self.forward(x)

    @property
    def output(self) -> Tensor:
        """Output buffer written by the last `forward`."""
        self._require_built("output")
        return self._output  # type: ignore[return-value]

    @property
    def grad_input(self) -> Tensor:
        """Input-gradient buffer written by the last `backward`."""
        self._require_built("grad_input")
        return self._grad_input  # type: ignore[return-value]

    @property
    def last_input(self) -> Tensor:
        """Input cache written by the last `forward`."""
        self._require_built("last_input")
        return self._input  # type: ignore[return-value]

    def num_parameters(self) -> int:
        return 0

    # ------------------------------------------------------------------
    # Configuration and copies
    # ------------------------------------------------------------------
    def get_config(self) -> Dict[str, Any]:
        """Return a JSON-serializable configuration dict."""
        shape = self._input_shape or self._declared_input_shape
        return {
            "name": self._name,
            "input_shape": None if shape is None else list(shape),
        }

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "Layer":
        """Construct an unbuilt layer from `get_config()` output."""
        return cls(**cfg)

    def _runtime_config(self) -> Dict[str, Any]:
        """Constructor arguments that `get_config` can only name, not carry."""
        return {}

    def _copy_state_into(self, other: "Layer") -> None:
        other._layer_id = self._layer_id
        other._training = self._training

    def _build_copy(self, other: "Layer") -> None:
        """Build a copy of this layer; configuration warnings were already
        issued when this layer was built."""
        other._quiet_build = True
        try:
            other.build(self._input_shape)
        finally:
            other._quiet_build = False

    def _share_parameters_into(self, other: "Layer") -> None:
        """Hook for layers whose replicas share parameters."""

    def clone(self) -> "Layer":
        """Return a fully independent deep copy, built if this layer is."""
        other = self.from_config({**self.get_config(), **self._runtime_config()})
        self._copy_state_into(other)
        if self._built:
            self._build_copy(other)
            other._input.copy_from(self._input)  # type: ignore[union-attr]
            other._output.copy_from(self._output)  # type: ignore[union-attr]
            other._grad_input.copy_from(self._grad_input)  # type: ignore[union-attr]
            self._copy_buffers_into(other)
        return other

    def _copy_buffers_into(self, other: "Layer") -> None:
        """Hook for subclasses copying their extra buffers on `clone`."""

    def replicate(self) -> "Layer":
        """
        Return a built copy that shares this layer's parameter cells
        read-only and owns private input, output and gradient buffers.
        """
        self._require_built("replicate")
        other = self.from_config({**self.get_config(), **self._runtime_config()})
        self._copy_state_into(other)
        self._build_copy(other)
        self._share_parameters_into(other)
        return other

    def __repr__(self) -> str:
        shape = self._output_shape if self._built else "unbuilt"
        return f"{type(self).__name__}(name={self._name!r}, output_shape={shape})"


class TrainableLayer(Layer):
    """
    Base class of layers with a kernel, an optional bias and an activation.

    Parameters
    ----------
    activation : str or IActivation, optional
        Activation tag or strategy. Defaults to ``"linear"``.
    use_bias : bool, optional
        Whether to add a bias term. Defaults to True.

    Notes
    -----
    Gradient accumulators have exactly the shape of their parameter and are
    only ever *added into* by `backward`; `zero_grad` clears them.
    """

    trainable: bool = True

    def __init__(
        self,
        activation: Union[str, IActivation, None] = "linear",
        use_bias: bool = True,
        input_shape: Optional[Union[int, Sequence[int]]] = None,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(input_shape=input_shape, name=name)
        self._activation = get_activation(activation)
        self._use_bias = bool(use_bias)
        self._kernel: Optional[Tensor] = None
        self._bias: Optional[Tensor] = None
        self._grad_kernel: Optional[Tensor] = None
        self._grad_bias: Optional[Tensor] = None
        self._z: Optional[Tensor] = None
        self._dz: Optional[Tensor] = None

    def _kernel_shape(self) -> Tuple[int, ...]:
        raise NotImplementedError

    def _bias_shape(self) -> Tuple[int, ...]:
        raise NotImplementedError

    def _build_buffers(self) -> None:
        k_shape = self._kernel_shape()
        self._kernel = Tensor.zeros(*k_shape)
        self._grad_kernel = Tensor.zeros(*k_shape)
        if self._use_bias:
            b_shape = self._bias_shape()
            self._bias = Tensor.zeros(*b_shape)
            self._grad_bias = Tensor.zeros(*b_shape)
        self._z = Tensor.zeros(*self._output_shape)  # type: ignore[misc]
        self._dz = Tensor.zeros(*self._output_shape)  # type: ignore[misc]

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------
    @property
    def use_bias(self) -> bool:
        return self._use_bias

    @property
    def activation(self) -> IActivation:
        return self._activation

    @property
    def kernel(self) -> Tensor:
        self._require_built("kernel")
        return self._kernel  # type: ignore[return-value]

    @property
    def bias(self) -> Optional[Tensor]:
        self._require_built("bias")
        return self._bias

    @property
    def grad_kernel(self) -> Tensor:
        self._require_built("grad_kernel")
        return self._grad_kernel  # type: ignore[return-value]

    @property
    def grad_bias(self) -> Optional[Tensor]:
        self._require_built("grad_bias")
        return self._grad_bias

    @property
    def pre_activation(self) -> Tensor:
        """Weighted sum (before activation) computed by the last `forward`."""
        self._require_built("pre_activation")
        return self._z  # type: ignore[return-value]

    def parameters(self) -> List[Tensor]:
        self._require_built("parameters")
        params = [self._kernel]
        if self._bias is not None:
            params.append(self._bias)
        return params  # type: ignore[return-value]

    def gradients(self) -> List[Tensor]:
        self._require_built("gradients")
        grads = [self._grad_kernel]
        if self._grad_bias is not None:
            grads.append(self._grad_bias)
        return grads  # type: ignore[return-value]

    def zero_grad(self) -> None:
        for g in self.gradients():
            g.zero()

    def num_parameters(self) -> int:
        if not self._built:
            return 0
        return sum(p.size for p in self.parameters())

    def initialize(
        self,
        kernel_init: Union[str, WeightInitializer] = "xavier_uniform",
        bias_init: Union[str, WeightInitializer] = "zeros",
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        """
        Fill kernel and bias using registered initializers.

        Parameters
        ----------
        kernel_init, bias_init : str or WeightInitializer
            Initializer names (see `WeightInitializer.available()`).
        rng : numpy.random.Generator, optional
            Source of randomness. A fresh unseeded generator is used if None.
        """
        self._require_built("initialize")
        if rng is None:
            rng = np.random.default_rng()
        k_init = kernel_init if isinstance(kernel_init, WeightInitializer) else WeightInitializer(kernel_init)
        k_init(self._kernel, rng)  # type: ignore[arg-type]
        if self._bias is not None:
            b_init = bias_init if isinstance(bias_init, WeightInitializer) else WeightInitializer(bias_init)
            b_init(self._bias, rng)

    # ------------------------------------------------------------------
    # Activation helpers
    # ------------------------------------------------------------------
    def _activate(self) -> None:
        self._activation.forward(self._z, self._output)  # type: ignore[arg-type]

    def _activation_grad(self, grad: Tensor) -> Tensor:
        """Return ``act'(z) * grad`` in the layer's scratch buffer."""
        act = self._activation
        if hasattr(type(act), "backward"):
            act.backward(self._z, self._output, grad, self._dz)  # type: ignore[attr-defined]
            return self._dz  # type: ignore[return-value]
        act.derivative(self._z, self._output, self._dz)  # type: ignore[arg-type]
        dz = self._dz.data  # type: ignore[union-attr]
        dz *= grad.data
        return self._dz  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Configuration and copies
    # ------------------------------------------------------------------
    def get_config(self) -> Dict[str, Any]:
        cfg = super().get_config()
        cfg["activation"] = activation_token(self._activation)
        cfg["use_bias"] = self._use_bias
        return cfg

    def _runtime_config(self) -> Dict[str, Any]:
        return {"activation": self._activation}

    def _copy_buffers_into(self, other: "Layer") -> None:
        for src, dst in zip(self.parameters(), other.parameters()):
            dst.copy_from(src)
        for src, dst in zip(self.gradients(), other.gradients()):
            dst.copy_from(src)
        other._z.copy_from(self._z)  # type: ignore[union-attr, arg-type]

    def _share_parameters_into(self, other: "Layer") -> None:
        other._kernel = self._kernel.read_only_view()  # type: ignore[union-attr]
        if self._bias is not None:
            other._bias = self._bias.read_only_view()
