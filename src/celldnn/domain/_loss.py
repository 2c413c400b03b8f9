"""
Loss function interface.

A loss reduces a prediction/target pair of identical shape to a scalar and
provides the gradient of that scalar with respect to the prediction, which
the training loop feeds into the last layer's `backward`.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ._tensor import ITensor


@runtime_checkable
class ILoss(Protocol):
    """Scalar loss with an analytic gradient w.r.t. the prediction."""

    @property
    def name(self) -> str:
        """Registry tag (e.g. "mse")."""
        ...

    def forward(self, pred: ITensor, target: ITensor) -> float:
        """Return the loss value."""
        ...

    def backward(self, pred: ITensor, target: ITensor) -> ITensor:
        """Return d loss / d pred, shaped like `pred`."""
        ...
