"""
Lion optimizer (sign-based momentum).
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

import numpy as np

from ...domain._errors import ConfigurationError
from ._base import Optimizer, _check_non_negative, _check_unit_interval


class Lion(Optimizer):
    """
    Lion.

    Update rule
    -----------
        c <- beta1 * m + (1 - beta1) * g
        p <- p - lr * (sign(c) + weight_decay * p)
        m <- beta2 * m + (1 - beta2) * g

    Parameters
    ----------
    lr : float, optional
        Learning rate. Defaults to 1e-4.
    betas : tuple[float, float], optional
        Interpolation rates for the update direction and the momentum.
        Defaults to (0.9, 0.99).
    weight_decay : float, optional
        Decoupled weight decay. Must be >= 0. Defaults to 0.0.
    """

    slots = ("m",)

    def __init__(
        self,
        lr: float = 1e-4,
        betas: Tuple[float, float] = (0.9, 0.99),
        weight_decay: float = 0.0,
    ) -> None:
        super().__init__(lr)
        if len(betas) != 2:
            raise ConfigurationError(f"betas must be a pair, got {betas!r}", argument="betas", value=betas)
        self.betas = (
            _check_unit_interval("beta1", betas[0]),
            _check_unit_interval("beta2", betas[1]),
        )
        self.weight_decay = _check_non_negative("weight_decay", weight_decay)

    def _apply(self, param: np.ndarray, grad: np.ndarray, state: Dict[str, np.ndarray]) -> None:
        b1, b2 = self.betas
        m = state["m"]
        c = b1 * m + (1.0 - b1) * grad
        param -= self.lr * (np.sign(c) + self.weight_decay * param)
        m *= b2
        m += (1.0 - b2) * grad

    def _hyperparameters(self) -> Dict[str, Any]:
        return {"lr": self.lr, "betas": self.betas, "weight_decay": self.weight_decay}
