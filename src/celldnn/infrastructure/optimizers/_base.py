"""
Optimizer base class.

An optimizer turns the gradients accumulated in trainable layers into
in-place parameter updates. Its lifecycle has two steps:

- `initialize(layers)` runs once, after every trainable layer is built, and
  allocates one auxiliary tensor per tracked moment per parameter, shaped
  exactly like that parameter. Stateless rules allocate nothing.
- `update(layers)` applies the rule once to every trainable layer in
  ascending `layer_id` order. Gradients are read, never cleared.

Design notes
------------
- Subclasses declare the names of their moments in `slots` and implement
  `_apply(param, grad, state)` on NumPy arrays; `state` maps each slot name
  to the auxiliary array of that parameter.
- `iterations` counts completed `update` calls; bias-corrected rules use it
  as the step index ``t`` (starting at 1).
- Hyperparameters are validated at construction and reported with
  `ConfigurationError`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np

from ...domain._errors import (
    ConfigurationError,
    NotBuiltError,
    UnsupportedOperationError,
)
from ..tensor._tensor import Tensor

logger = logging.getLogger(__name__)

_PARAM_NAMES = ("kernel", "bias")


def _check_positive(name: str, value: float) -> float:
    value = float(value)
    if not value > 0.0:
        raise ConfigurationError(f"{name} must be > 0, got {value}", argument=name, value=value)
    return value


def _check_non_negative(name: str, value: float) -> float:
    value = float(value)
    if not value >= 0.0:
        raise ConfigurationError(f"{name} must be >= 0, got {value}", argument=name, value=value)
    return value


def _check_unit_interval(name: str, value: float, *, closed_low: bool = False) -> float:
    value = float(value)
    ok = (0.0 <= value < 1.0) if closed_low else (0.0 < value < 1.0)
    if not ok:
        bounds = "[0, 1)" if closed_low else "(0, 1)"
        raise ConfigurationError(f"{name} must be in {bounds}, got {value}", argument=name, value=value)
    return value


def _trainable_in_order(layers: Sequence[Any]) -> List[Any]:
    return sorted(
        (layer for layer in layers if getattr(layer, "trainable", False)),
        key=lambda layer: layer.layer_id,
    )


class Optimizer:
    """
    Base class of every update rule.

    Parameters
    ----------
    lr : float
        Learning rate. Must be > 0.
    """

    slots: Tuple[str, ...] = ()

    def __init__(self, lr: float) -> None:
        self.lr = _check_positive("lr", lr)
        self.iterations = 0
        self._initialized = False
        # id(layer) -> list (one per parameter) of {slot: Tensor}
        self._state: Dict[int, List[Dict[str, Tensor]]] = {}

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def stateful(self) -> bool:
        return len(self.slots) > 0

    def initialize(self, layers: Sequence[Any]) -> None:
        """
        Allocate auxiliary state for every trainable parameter.

        Parameters
        ----------
        layers : Sequence
            Built layers; non-trainable ones are ignored.

        Raises
        ------
        NotBuiltError
            If a trainable layer is not built yet.
        """
        self._state = {}
        trainables = _trainable_in_order(layers)
        count = 0
        for layer in trainables:
            if not layer.is_built:
                raise NotBuiltError(type(layer).__name__, "initialize")
            per_param: List[Dict[str, Tensor]] = []
            for p in layer.parameters():
                slots = {name: Tensor.zeros(*p.shape) for name in self.slots}
                count += len(slots)
                per_param.append(slots)
            self._state[id(layer)] = per_param
        self.iterations = 0
        self._initialized = True
        logger.debug(
            "%s initialized: %d trainable layer(s), %d auxiliary tensor(s)",
            type(self).__name__,
            len(trainables),
            count,
        )

    def update(self, layers: Sequence[Any]) -> None:
        """
        Apply the update rule once to every trainable layer.

        Raises
        ------
        NotBuiltError
            If `initialize` has not been called, or was called without one of
            these layers.
        """
        if not self._initialized:
            raise NotBuiltError(type(self).__name__, "update")
        trainables = _trainable_in_order(layers)
        self.iterations += 1
        for layer in trainables:
            per_param = self._state.get(id(layer))
            if per_param is None:
                raise NotBuiltError(
                    f"{type(self).__name__} state for {type(layer).__name__} "
                    f"(id {layer.layer_id})",
                    "update",
                )
            for p, g, slots in zip(layer.parameters(), layer.gradients(), per_param):
                self._apply(p.data, g.data, {k: v.data for k, v in slots.items()})

    def _apply(self, param: np.ndarray, grad: np.ndarray, state: Dict[str, np.ndarray]) -> None:
        raise NotImplementedError

    def state(self, layer: Any, name: str, param: str = "kernel") -> Tensor:
        """
        Return the auxiliary tensor `name` tracked for one parameter.

        Parameters
        ----------
        layer : layer
            A trainable layer passed to `initialize`.
        name : str
            Slot name (see `slots`).
        param : {"kernel", "bias"}
            Which parameter of the layer.

        Raises
        ------
        UnsupportedOperationError
            If the rule keeps no state at all.
        NotBuiltError
            If the optimizer has not been initialized with `layer`.
        ConfigurationError
            For an unknown slot or parameter name.
        """
        if not self.stateful:
            raise UnsupportedOperationError(type(self).__name__, "auxiliary state")
        if name not in self.slots:
            raise ConfigurationError(
                f"{type(self).__name__} has no state {name!r}; available: {self.slots}",
                argument="name",
                value=name,
            )
        per_param = self._state.get(id(layer))
        if per_param is None:
            raise NotBuiltError(type(self).__name__, "state")
        try:
            return per_param[_PARAM_NAMES.index(param)][name]
        except (ValueError, IndexError) as e:
            raise ConfigurationError(
                f"layer has no parameter {param!r}", argument="param", value=param
            ) from e

    def _hyperparameters(self) -> Dict[str, Any]:
        return {"lr": self.lr}

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={v}" for k, v in self._hyperparameters().items())
        return f"{type(self).__name__}({args})"
