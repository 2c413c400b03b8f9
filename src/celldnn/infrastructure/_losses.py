"""
Loss functions for celldnn.

Each loss reduces a prediction/target pair of identical shape to a Python
float (`forward`) and returns the gradient of that float with respect to the
prediction as a new tensor (`backward`). The training loop feeds that
gradient into the last layer's `backward`.

Currently implemented losses:
- MeanSquaredError         ``mse``
- MeanAbsoluteError        ``mae``
- BinaryCrossEntropy       ``binary_cross_entropy``
- CategoricalCrossEntropy  ``categorical_cross_entropy``

Design notes
------------
- No broadcasting is performed; prediction and target shapes must match
  exactly, otherwise `ShapeMismatchError` is raised.
- Cross-entropy losses operate on probabilities (e.g. sigmoid outputs) and
  clip them into ``[eps, 1 - eps]`` before taking logarithms.
"""

from __future__ import annotations

from typing import Callable, Dict, Type, TypeVar, Union

import numpy as np

from ..domain._errors import ConfigurationError, ShapeMismatchError
from ..domain._loss import ILoss
from .tensor._tensor import Tensor

L = TypeVar("L", bound=Type["Loss"])

_LOSSES: Dict[str, Type["Loss"]] = {}


def register_loss(name: str) -> Callable[[L], L]:
    """Class decorator registering a loss under `name`."""

    def decorator(cls: L) -> L:
        if name in _LOSSES:
            raise ConfigurationError(f"Loss already registered: {name!r}")
        cls.name = name
        _LOSSES[name] = cls
        return cls

    return decorator


def available_losses() -> tuple[str, ...]:
    return tuple(sorted(_LOSSES))


def get_loss(loss: Union[str, ILoss, None]) -> ILoss:
    """
    Resolve a loss tag or instance.

    Raises
    ------
    ConfigurationError
        If `loss` is None, an unknown tag, or not a loss object.
    """
    if loss is None:
        raise ConfigurationError("loss must not be None", argument="loss")
    if isinstance(loss, str):
        cls = _LOSSES.get(loss.lower())
        if cls is None:
            raise ConfigurationError(
                f"Unknown loss {loss!r}. Available: {', '.join(available_losses())}",
                argument="loss",
                value=loss,
            )
        return cls()
    if isinstance(loss, ILoss):
        return loss
    raise ConfigurationError(
        f"loss must be a tag or a loss object, got {type(loss).__name__}",
        argument="loss",
        value=loss,
    )


class Loss:
    """Base class handling the shape check shared by every loss."""

    name: str = ""

    def _arrays(self, pred: Tensor, target: Tensor) -> tuple[np.ndarray, np.ndarray]:
        if tuple(pred.shape) != tuple(target.shape):
            raise ShapeMismatchError(f"{self.name} loss", target.shape, pred.shape)
        return pred.data, target.data

    def forward(self, pred: Tensor, target: Tensor) -> float:
        raise NotImplementedError

    def backward(self, pred: Tensor, target: Tensor) -> Tensor:
        raise NotImplementedError

    def __call__(self, pred: Tensor, target: Tensor) -> float:
        return self.forward(pred, target)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


@register_loss("mse")
class MeanSquaredError(Loss):
    """
    Mean Squared Error.

        MSE(pred, target) = mean((pred - target)^2)

    Gradient: ``2 * (pred - target) / N`` where N is the element count.
    """

    def forward(self, pred: Tensor, target: Tensor) -> float:
        p, t = self._arrays(pred, target)
        d = p - t
        return float(np.mean(d * d))

    def backward(self, pred: Tensor, target: Tensor) -> Tensor:
        p, t = self._arrays(pred, target)
        return Tensor._wrap((p - t) * (2.0 / p.size))


@register_loss("mae")
class MeanAbsoluteError(Loss):
    """
    Mean Absolute Error.

    The gradient uses ``sign(pred - target) / N`` (zero where they are equal).
    """

    def forward(self, pred: Tensor, target: Tensor) -> float:
        p, t = self._arrays(pred, target)
        return float(np.mean(np.abs(p - t)))

    def backward(self, pred: Tensor, target: Tensor) -> Tensor:
        p, t = self._arrays(pred, target)
        return Tensor._wrap(np.sign(p - t) / p.size)


@register_loss("binary_cross_entropy")
class BinaryCrossEntropy(Loss):
    """
    Binary Cross Entropy on probabilities.

        BCE(pred, target) =
            mean( -[ target * log(pred) + (1 - target) * log(1 - pred) ] )

    Gradient: ``(pred - target) / (pred * (1 - pred)) / N`` with `pred`
    clipped into ``[eps, 1 - eps]``.
    """

    def __init__(self, eps: float = 1e-7) -> None:
        if not 0 < eps < 0.5:
            raise ConfigurationError(f"eps must be in (0, 0.5), got {eps}", argument="eps", value=eps)
        self.eps = float(eps)

    def forward(self, pred: Tensor, target: Tensor) -> float:
        p, t = self._arrays(pred, target)
        p = np.clip(p, self.eps, 1.0 - self.eps)
        return float(np.mean(-(t * np.log(p) + (1.0 - t) * np.log(1.0 - p))))

    def backward(self, pred: Tensor, target: Tensor) -> Tensor:
        p, t = self._arrays(pred, target)
        p = np.clip(p, self.eps, 1.0 - self.eps)
        return Tensor._wrap((p - t) / (p * (1.0 - p)) / p.size)


@register_loss("categorical_cross_entropy")
class CategoricalCrossEntropy(Loss):
    """
    Categorical Cross Entropy on probabilities with one-hot targets.

        CCE(pred, target) = -sum(target * log(pred)) / N

    where N is the number of rows for 2-D inputs ``(N, C)`` and 1 for a
    single 1-D example ``(C,)``.
    """

    def __init__(self, eps: float = 1e-7) -> None:
        if not 0 < eps < 0.5:
            raise ConfigurationError(f"eps must be in (0, 0.5), got {eps}", argument="eps", value=eps)
        self.eps = float(eps)

    @staticmethod
    def _rows(p: np.ndarray) -> int:
        return int(p.shape[0]) if p.ndim >= 2 else 1

    def forward(self, pred: Tensor, target: Tensor) -> float:
        p, t = self._arrays(pred, target)
        p = np.clip(p, self.eps, 1.0 - self.eps)
        return float(-np.sum(t * np.log(p)) / self._rows(p))

    def backward(self, pred: Tensor, target: Tensor) -> Tensor:
        p, t = self._arrays(pred, target)
        p = np.clip(p, self.eps, 1.0 - self.eps)
        return Tensor._wrap(-(t / p) / self._rows(p))


__all__ = [
    Loss.__name__,
    MeanSquaredError.__name__,
    MeanAbsoluteError.__name__,
    BinaryCrossEntropy.__name__,
    CategoricalCrossEntropy.__name__,
    register_loss.__name__,
    get_loss.__name__,
    available_losses.__name__,
]
