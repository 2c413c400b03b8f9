"""
Activation strategies.

Activations are stateless, elementwise strategies applied by trainable layers
to their pre-activation buffer:

- ``forward(z, out)`` writes ``f(z)`` into `out`.
- ``derivative(z, y, out)`` writes ``f'(z)`` into `out`, where ``y = f(z)`` is
  the already-computed output (several derivatives are cheaper in terms of
  ``y``).

The layer multiplies the derivative by the upstream gradient itself; the
strategy never sees gradients. The exception is an activation whose Jacobian
is not diagonal (``softmax``): it also defines
``backward(z, y, grad, out)``, which writes the full Jacobian-vector product,
and layers call that instead when it exists.

Registry
--------
Every strategy registers under a string tag via `register_activation`, and
`get_activation` resolves a tag (or passes an instance through) at the API
boundary. Built-in tags: ``linear``, ``relu``, ``leaky_relu``, ``elu``,
``sigmoid``, ``tanh``, ``atan``, ``softplus``, ``swish``, ``sin``, ``gelu``,
``softmax``, ``argmax``.

Hyperparameters (the ``alpha`` of ``leaky_relu`` and ``elu``) travel in the
token form ``leaky_relu(alpha=0.2)``; `activation_token` writes it and
`get_activation` reads it back.

Notes
-----
All kernels operate on the tensors' backing arrays with NumPy ``out=``
arguments, so no temporaries are allocated for the common activations.
``softmax`` and ``argmax`` work along the last axis.
"""

from __future__ import annotations

import math
import re
from typing import Any, Callable, Dict, Type, TypeVar, Union

import numpy as np

from ..domain._activation import IActivation
from ..domain._errors import ConfigurationError
from .tensor._tensor import Tensor

A = TypeVar("A", bound=Type["Activation"])

_ACTIVATIONS: Dict[str, Type["Activation"]] = {}

_TOKEN = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*(?:\((.*)\))?\s*$")


def register_activation(name: str) -> Callable[[A], A]:
    """Class decorator registering an activation under `name`."""

    def decorator(cls: A) -> A:
        if name in _ACTIVATIONS:
            raise ConfigurationError(f"Activation already registered: {name!r}")
        cls.name = name
        _ACTIVATIONS[name] = cls
        return cls

    return decorator


def available_activations() -> tuple[str, ...]:
    return tuple(sorted(_ACTIVATIONS))


def _parse_token(token: str) -> tuple[str, Dict[str, float]]:
    match = _TOKEN.match(token)
    if match is None:
        raise ConfigurationError(
            f"Malformed activation token {token!r}", argument="activation", value=token
        )
    tag, arg_text = match.group(1).lower(), match.group(2)
    kwargs: Dict[str, float] = {}
    if arg_text and arg_text.strip():
        for part in arg_text.split(","):
            key, sep, value = part.partition("=")
            try:
                if not sep or not key.strip():
                    raise ValueError(part)
                kwargs[key.strip()] = float(value)
            except ValueError as e:
                raise ConfigurationError(
                    f"Malformed activation argument {part.strip()!r} in {token!r}",
                    argument="activation",
                    value=token,
                ) from e
    return tag, kwargs


def get_activation(activation: Union[str, IActivation, None]) -> IActivation:
    """
    Resolve an activation tag or instance.

    Parameters
    ----------
    activation : str or IActivation or None
        A registered tag, optionally with keyword arguments
        (``"elu(alpha=0.5)"``), or an object implementing `IActivation`.
        None is read as ``"linear"``.

    Raises
    ------
    ConfigurationError
        If the tag is not registered, its arguments are not accepted, or the
        object is not an activation.
    """
    if activation is None:
        activation = "linear"
    if isinstance(activation, str):
        tag, kwargs = _parse_token(activation)
        cls = _ACTIVATIONS.get(tag)
        if cls is None:
            raise ConfigurationError(
                f"Unknown activation {activation!r}. "
                f"Available: {', '.join(available_activations())}",
                argument="activation",
                value=activation,
            )
        try:
            return cls(**kwargs)
        except TypeError as e:
            raise ConfigurationError(
                f"{tag} does not accept arguments {sorted(kwargs)}",
                argument="activation",
                value=activation,
            ) from e
    if isinstance(activation, IActivation):
        return activation
    raise ConfigurationError(
        f"activation must be a tag or an activation object, got {type(activation).__name__}",
        argument="activation",
        value=activation,
    )


def activation_token(activation: IActivation) -> str:
    """
    Text form of an activation that `get_activation` maps back to an
    equivalent strategy: the bare tag, or ``tag(key=value, ...)`` when the
    strategy carries hyperparameters.
    """
    params = activation.params() if hasattr(type(activation), "params") else {}
    if not params:
        return activation.name
    args = ",".join(f"{k}={float(v)!r}" for k, v in sorted(params.items()))
    return f"{activation.name}({args})"


class Activation:
    """Base class for the built-in strategies."""

    name: str = ""

    def forward(self, z: Tensor, out: Tensor) -> None:
        raise NotImplementedError

    def derivative(self, z: Tensor, y: Tensor, out: Tensor) -> None:
        raise NotImplementedError

    def params(self) -> Dict[str, Any]:
        """Hyperparameters needed to rebuild this strategy."""
        return {}

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={v}" for k, v in sorted(self.params().items()))
        return f"{type(self).__name__}({args})"


def _sigmoid(x: np.ndarray, out: np.ndarray) -> np.ndarray:
    np.negative(x, out=out)
    np.exp(out, out=out)
    out += 1.0
    np.reciprocal(out, out=out)
    return out


@register_activation("linear")
class Linear(Activation):
    def forward(self, z: Tensor, out: Tensor) -> None:
        np.copyto(out.data, z.data)

    def derivative(self, z: Tensor, y: Tensor, out: Tensor) -> None:
        out.data.fill(1.0)


@register_activation("relu")
class ReLU(Activation):
    def forward(self, z: Tensor, out: Tensor) -> None:
        np.maximum(z.data, 0.0, out=out.data)

    def derivative(self, z: Tensor, y: Tensor, out: Tensor) -> None:
        np.greater(z.data, 0.0, out=out.data, casting="unsafe")


@register_activation("leaky_relu")
class LeakyReLU(Activation):
    """``x`` for positive inputs, ``alpha * x`` otherwise."""

    def __init__(self, alpha: float = 0.01) -> None:
        if alpha < 0:
            raise ConfigurationError(
                f"alpha must be >= 0, got {alpha}", argument="alpha", value=alpha
            )
        self.alpha = float(alpha)

    def forward(self, z: Tensor, out: Tensor) -> None:
        np.copyto(out.data, np.where(z.data > 0.0, z.data, self.alpha * z.data))

    def derivative(self, z: Tensor, y: Tensor, out: Tensor) -> None:
        np.copyto(out.data, np.where(z.data > 0.0, 1.0, self.alpha))

    def params(self) -> Dict[str, Any]:
        return {"alpha": self.alpha}


@register_activation("elu")
class ELU(Activation):
    """``x`` for positive inputs, ``alpha * (exp(x) - 1)`` otherwise."""

    def __init__(self, alpha: float = 1.0) -> None:
        if alpha <= 0:
            raise ConfigurationError(
                f"alpha must be > 0, got {alpha}", argument="alpha", value=alpha
            )
        self.alpha = float(alpha)

    def forward(self, z: Tensor, out: Tensor) -> None:
        x = z.data
        np.copyto(out.data, np.where(x > 0.0, x, self.alpha * np.expm1(np.minimum(x, 0.0))))

    def derivative(self, z: Tensor, y: Tensor, out: Tensor) -> None:
        np.copyto(out.data, np.where(z.data > 0.0, 1.0, y.data + self.alpha))

    def params(self) -> Dict[str, Any]:
        return {"alpha": self.alpha}


@register_activation("sigmoid")
class Sigmoid(Activation):
    def forward(self, z: Tensor, out: Tensor) -> None:
        _sigmoid(z.data, out.data)

    def derivative(self, z: Tensor, y: Tensor, out: Tensor) -> None:
        o = out.data
        np.subtract(1.0, y.data, out=o)
        o *= y.data


@register_activation("tanh")
class Tanh(Activation):
    def forward(self, z: Tensor, out: Tensor) -> None:
        np.tanh(z.data, out=out.data)

    def derivative(self, z: Tensor, y: Tensor, out: Tensor) -> None:
        np.square(y.data, out=out.data)
        np.subtract(1.0, out.data, out=out.data)


@register_activation("atan")
class Atan(Activation):
    def forward(self, z: Tensor, out: Tensor) -> None:
        np.arctan(z.data, out=out.data)

    def derivative(self, z: Tensor, y: Tensor, out: Tensor) -> None:
        o = out.data
        np.square(z.data, out=o)
        o += 1.0
        np.reciprocal(o, out=o)


@register_activation("softplus")
class Softplus(Activation):
    """``log(1 + exp(x))``; its derivative is the sigmoid."""

    def forward(self, z: Tensor, out: Tensor) -> None:
        np.logaddexp(0.0, z.data, out=out.data)

    def derivative(self, z: Tensor, y: Tensor, out: Tensor) -> None:
        _sigmoid(z.data, out.data)


@register_activation("swish")
class Swish(Activation):
    """``x * sigmoid(x)``."""

    def forward(self, z: Tensor, out: Tensor) -> None:
        o = _sigmoid(z.data, out.data)
        o *= z.data

    def derivative(self, z: Tensor, y: Tensor, out: Tensor) -> None:
        # f' = f + sigmoid(x) * (1 - f)
        s = _sigmoid(z.data, np.empty_like(z.data))
        o = out.data
        np.subtract(1.0, y.data, out=o)
        o *= s
        o += y.data


@register_activation("sin")
class Sin(Activation):
    def forward(self, z: Tensor, out: Tensor) -> None:
        np.sin(z.data, out=out.data)

    def derivative(self, z: Tensor, y: Tensor, out: Tensor) -> None:
        np.cos(z.data, out=out.data)


_GELU_C = math.sqrt(2.0 / math.pi)
_GELU_K = 0.044715


@register_activation("gelu")
class GELU(Activation):
    """
    Gaussian Error Linear Unit, tanh approximation:

        gelu(x) = 0.5 * x * (1 + tanh(c * (x + k * x^3)))

    with ``c = sqrt(2 / pi)`` and ``k = 0.044715``.
    """

    @staticmethod
    def _inner(x: np.ndarray) -> np.ndarray:
        return np.tanh(_GELU_C * (x + _GELU_K * x * x * x))

    def forward(self, z: Tensor, out: Tensor) -> None:
        x = z.data
        np.copyto(out.data, 0.5 * x * (1.0 + self._inner(x)))

    def derivative(self, z: Tensor, y: Tensor, out: Tensor) -> None:
        x = z.data
        t = self._inner(x)
        du = _GELU_C * (1.0 + 3.0 * _GELU_K * x * x)
        np.copyto(out.data, 0.5 * (1.0 + t) + 0.5 * x * (1.0 - t * t) * du)


@register_activation("softmax")
class Softmax(Activation):
    """
    Softmax along the last axis (per row for ``(rows, features)`` inputs).

    `derivative` only writes the Jacobian diagonal ``y * (1 - y)``; layers
    use `backward`, which applies the full Jacobian:

        dz = y * (grad - sum(grad * y))
    """

    def forward(self, z: Tensor, out: Tensor) -> None:
        o = out.data
        np.subtract(z.data, z.data.max(axis=-1, keepdims=True), out=o)
        np.exp(o, out=o)
        o /= o.sum(axis=-1, keepdims=True)

    def derivative(self, z: Tensor, y: Tensor, out: Tensor) -> None:
        o = out.data
        np.subtract(1.0, y.data, out=o)
        o *= y.data

    def backward(self, z: Tensor, y: Tensor, grad: Tensor, out: Tensor) -> None:
        s = y.data
        g = grad.data
        dot = np.sum(g * s, axis=-1, keepdims=True)
        o = out.data
        np.subtract(g, dot, out=o)
        o *= s


@register_activation("argmax")
class Argmax(Activation):
    """
    One-hot of the largest value along the last axis (first one on ties).

    The function is piecewise constant, so its derivative is zero and no
    gradient flows through it.
    """

    def forward(self, z: Tensor, out: Tensor) -> None:
        o = out.data
        o.fill(0.0)
        idx = np.argmax(z.data, axis=-1)
        np.put_along_axis(o, np.expand_dims(idx, -1), 1.0, axis=-1)

    def derivative(self, z: Tensor, y: Tensor, out: Tensor) -> None:
        out.data.fill(0.0)


__all__ = [
    Activation.__name__,
    Linear.__name__,
    ReLU.__name__,
    LeakyReLU.__name__,
    ELU.__name__,
    Sigmoid.__name__,
    Tanh.__name__,
    Atan.__name__,
    Softplus.__name__,
    Swish.__name__,
    Sin.__name__,
    GELU.__name__,
    Softmax.__name__,
    Argmax.__name__,
    register_activation.__name__,
    get_activation.__name__,
    available_activations.__name__,
    activation_token.__name__,
]
