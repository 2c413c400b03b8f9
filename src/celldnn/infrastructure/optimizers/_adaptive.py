"""
Per-coordinate adaptive learning-rate rules: `AdaGrad`, `RMSProp` and
`Adadelta`.
"""

from __future__ import annotations

from typing import Any, Dict

import numpy as np

from ._base import Optimizer, _check_positive, _check_unit_interval


class AdaGrad(Optimizer):
    """
    AdaGrad.

    Update rule
    -----------
        acc <- acc + g^2
        p   <- p - lr * g / (sqrt(acc) + eps)
    """

    slots = ("acc",)

    def __init__(self, lr: float = 0.01, eps: float = 1e-7) -> None:
        super().__init__(lr)
        self.eps = _check_positive("eps", eps)

    def _apply(self, param: np.ndarray, grad: np.ndarray, state: Dict[str, np.ndarray]) -> None:
        acc = state["acc"]
        acc += grad * grad
        param -= self.lr * grad / (np.sqrt(acc) + self.eps)

    def _hyperparameters(self) -> Dict[str, Any]:
        return {"lr": self.lr, "eps": self.eps}


class RMSProp(Optimizer):
    """
    RMSProp.

    Update rule
    -----------
        acc <- rho * acc + (1 - rho) * g^2
        p   <- p - lr * g / (sqrt(acc) + eps)
    """

    slots = ("acc",)

    def __init__(self, lr: float = 0.001, rho: float = 0.9, eps: float = 1e-7) -> None:
        super().__init__(lr)
        self.rho = _check_unit_interval("rho", rho)
        self.eps = _check_positive("eps", eps)

    def _apply(self, param: np.ndarray, grad: np.ndarray, state: Dict[str, np.ndarray]) -> None:
        acc = state["acc"]
        acc *= self.rho
        acc += (1.0 - self.rho) * grad * grad
        param -= self.lr * grad / (np.sqrt(acc) + self.eps)

    def _hyperparameters(self) -> Dict[str, Any]:
        return {"lr": self.lr, "rho": self.rho, "eps": self.eps}


class Adadelta(Optimizer):
    """
    Adadelta.

    Update rule
    -----------
        acc   <- rho * acc + (1 - rho) * g^2
        delta  = g * sqrt(acc_u + eps) / sqrt(acc + eps)
        p     <- p - lr * delta
        acc_u <- rho * acc_u + (1 - rho) * delta^2

    With the default ``lr=1.0`` this is the rule as originally published.
    """

    slots = ("acc", "acc_u")

    def __init__(self, lr: float = 1.0, rho: float = 0.95, eps: float = 1e-6) -> None:
        super().__init__(lr)
        self.rho = _check_unit_interval("rho", rho)
        self.eps = _check_positive("eps", eps)

    def _apply(self, param: np.ndarray, grad: np.ndarray, state: Dict[str, np.ndarray]) -> None:
        acc, acc_u = state["acc"], state["acc_u"]
        acc *= self.rho
        acc += (1.0 - self.rho) * grad * grad
        delta = grad * np.sqrt(acc_u + self.eps) / np.sqrt(acc + self.eps)
        param -= self.lr * delta
        acc_u *= self.rho
        acc_u += (1.0 - self.rho) * delta * delta

    def _hyperparameters(self) -> Dict[str, Any]:
        return {"lr": self.lr, "rho": self.rho, "eps": self.eps}
