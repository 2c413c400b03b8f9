"""
Gradient descent optimizers: `GD` and `SGD`.

`GD` applies plain steepest descent. `SGD` adds classical momentum and,
optionally, Nesterov's look-ahead.
"""

from __future__ import annotations

from typing import Any, Dict

import numpy as np

from ._base import Optimizer, _check_unit_interval


class GD(Optimizer):
    """
    Plain gradient descent.

    Update rule
    -----------
        p <- p - lr * g

    Parameters
    ----------
    lr : float, optional
        Learning rate. Must be > 0. Defaults to 0.1.
    """

    def __init__(self, lr: float = 0.1) -> None:
        super().__init__(lr)

    def _apply(self, param: np.ndarray, grad: np.ndarray, state: Dict[str, np.ndarray]) -> None:
        param -= self.lr * grad


class SGD(Optimizer):
    """
    Stochastic gradient descent with momentum.

    Update rule
    -----------
        m <- momentum * m - lr * g
        p <- p + m                                  (classical)
        p <- p + momentum * m - lr * g              (nesterov=True)

    Parameters
    ----------
    lr : float, optional
        Learning rate. Must be > 0. Defaults to 0.01.
    momentum : float, optional
        Momentum coefficient in [0, 1). Defaults to 0.9.
    nesterov : bool, optional
        Use the Nesterov variant. Defaults to False.
    """

    slots = ("m",)

    def __init__(self, lr: float = 0.01, momentum: float = 0.9, nesterov: bool = False) -> None:
        super().__init__(lr)
        self.momentum = _check_unit_interval("momentum", momentum, closed_low=True)
        self.nesterov = bool(nesterov)

    def _apply(self, param: np.ndarray, grad: np.ndarray, state: Dict[str, np.ndarray]) -> None:
        m = state["m"]
        m *= self.momentum
        m -= self.lr * grad
        if self.nesterov:
            param += self.momentum * m - self.lr * grad
        else:
            param += m

    def _hyperparameters(self) -> Dict[str, Any]:
        return {"lr": self.lr, "momentum": self.momentum, "nesterov": self.nesterov}
