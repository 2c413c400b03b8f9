"""
Adam-family optimizers: `Adam`, `Nadam` and `AMSGrad`.

All three keep exponentially decaying averages of past gradients (first
moment ``m``) and past squared gradients (second moment ``v``) and correct
their initialization bias with the step index ``t`` (1 on the first update).
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

import numpy as np

from ...domain._errors import ConfigurationError
from ._base import Optimizer, _check_positive, _check_unit_interval


class Adam(Optimizer):
    """
    Adam optimizer.

    Update rule
    -----------
    Let ``g_t`` be the gradient at step ``t``:

        m_t = beta1 * m_{t-1} + (1 - beta1) * g_t
        v_t = beta2 * v_{t-1} + (1 - beta2) * (g_t ** 2)

        m_hat = m_t / (1 - beta1^t)
        v_hat = v_t / (1 - beta2^t)

        p <- p - lr * m_hat / (sqrt(v_hat) + eps)

    Parameters
    ----------
    lr : float, optional
        Learning rate. Must be positive. Defaults to 1e-3.
    betas : tuple[float, float], optional
        Exponential decay rates for the first and second moments.
        Each must be in (0, 1). Defaults to (0.9, 0.999).
    eps : float, optional
        Numerical stability epsilon added to the denominator. Must be positive.
        Defaults to 1e-8.
    """

    slots = ("m", "v")

    def __init__(
        self,
        lr: float = 1e-3,
        betas: Tuple[float, float] = (0.9, 0.999),
        eps: float = 1e-8,
    ) -> None:
        super().__init__(lr)
        if len(betas) != 2:
            raise ConfigurationError(f"betas must be a pair, got {betas!r}", argument="betas", value=betas)
        self.betas = (
            _check_unit_interval("beta1", betas[0]),
            _check_unit_interval("beta2", betas[1]),
        )
        self.eps = _check_positive("eps", eps)

    def _moments(self, grad: np.ndarray, state: Dict[str, np.ndarray]) -> Tuple[np.ndarray, np.ndarray]:
        b1, b2 = self.betas
        m, v = state["m"], state["v"]
        m *= b1
        m += (1.0 - b1) * grad
        v *= b2
        v += (1.0 - b2) * grad * grad
        return m, v

    def _apply(self, param: np.ndarray, grad: np.ndarray, state: Dict[str, np.ndarray]) -> None:
        b1, b2 = self.betas
        t = self.iterations
        m, v = self._moments(grad, state)
        m_hat = m / (1.0 - b1**t)
        v_hat = v / (1.0 - b2**t)
        param -= self.lr * m_hat / (np.sqrt(v_hat) + self.eps)

    def _hyperparameters(self) -> Dict[str, Any]:
        return {"lr": self.lr, "betas": self.betas, "eps": self.eps}


class Nadam(Adam):
    """
    Adam with Nesterov momentum.

    The first-moment estimate looks one step ahead:

        m_hat = beta1 * m_t / (1 - beta1^(t+1)) + (1 - beta1) * g_t / (1 - beta1^t)
        v_hat = v_t / (1 - beta2^t)
        p    <- p - lr * m_hat / (sqrt(v_hat) + eps)
    """

    def _apply(self, param: np.ndarray, grad: np.ndarray, state: Dict[str, np.ndarray]) -> None:
        b1, b2 = self.betas
        t = self.iterations
        m, v = self._moments(grad, state)
        m_hat = b1 * m / (1.0 - b1 ** (t + 1)) + (1.0 - b1) * grad / (1.0 - b1**t)
        v_hat = v / (1.0 - b2**t)
        param -= self.lr * m_hat / (np.sqrt(v_hat) + self.eps)


class AMSGrad(Adam):
    """
    AMSGrad variant of Adam.

    Keeps the running maximum of the second moment so the effective step
    size never increases:

        v_max <- max(v_max, v_t)
        p     <- p - (lr / (1 - beta1^t)) * m_t / (sqrt(v_max) / sqrt(1 - beta2^t) + eps)
    """

    slots = ("m", "v", "v_max")

    def _apply(self, param: np.ndarray, grad: np.ndarray, state: Dict[str, np.ndarray]) -> None:
        b1, b2 = self.betas
        t = self.iterations
        m, v = self._moments(grad, state)
        v_max = state["v_max"]
        np.maximum(v_max, v, out=v_max)
        denom = np.sqrt(v_max) / np.sqrt(1.0 - b2**t) + self.eps
        param -= (self.lr / (1.0 - b1**t)) * m / denom
