"""
Name-based optimizer lookup used by `Sequential.compile`.
"""

from __future__ import annotations

from typing import Any, Dict, Type, Union

from ...domain._errors import ConfigurationError
from ...domain._optimizers import IOptimizer
from ._adam import AMSGrad, Adam, Nadam
from ._adaptive import AdaGrad, Adadelta, RMSProp
from ._base import Optimizer
from ._lion import Lion
from ._sgd import GD, SGD

OPTIMIZERS: Dict[str, Type[Optimizer]] = {
    "gd": GD,
    "sgd": SGD,
    "adagrad": AdaGrad,
    "rmsprop": RMSProp,
    "adadelta": Adadelta,
    "adam": Adam,
    "nadam": Nadam,
    "amsgrad": AMSGrad,
    "lion": Lion,
}


def get_optimizer(optimizer: Union[str, IOptimizer, None], **kwargs: Any) -> IOptimizer:
    """
    Resolve an optimizer name (constructed with `kwargs`) or pass an
    instance through.

    Raises
    ------
    ConfigurationError
        If `optimizer` is None, an unknown name, or not an optimizer.
    """
    if optimizer is None:
        raise ConfigurationError("optimizer must not be None", argument="optimizer")
    if isinstance(optimizer, str):
        cls = OPTIMIZERS.get(optimizer.lower())
        if cls is None:
            raise ConfigurationError(
                f"Unknown optimizer {optimizer!r}. Available: {', '.join(sorted(OPTIMIZERS))}",
                argument="optimizer",
                value=optimizer,
            )
        return cls(**kwargs)
    if isinstance(optimizer, IOptimizer):
        return optimizer
    raise ConfigurationError(
        f"optimizer must be a name or an optimizer object, got {type(optimizer).__name__}",
        argument="optimizer",
        value=optimizer,
    )
