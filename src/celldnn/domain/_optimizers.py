"""
Domain-level optimizer contracts for celldnn.

This module defines the `IOptimizer` protocol, which specifies the minimal
interface required for optimizer implementations (e.g. SGD, Adam).

Notes
-----
- Domain contracts are backend-agnostic and must not depend on NumPy or
  infrastructure implementations.
- Optimizers consume the gradients accumulated by layer `backward` calls and
  mutate the layers' parameters in place. Clearing those gradients is the
  caller's responsibility (the training loop does it after each update).
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable


@runtime_checkable
class IOptimizer(Protocol):
    """
    Optimizer interface contract.

    Required methods
    ----------------
    - `initialize(layers)` allocates per-parameter auxiliary state once, after
      every trainable layer is built.
    - `update(layers)` applies one optimization step to every trainable layer
      in ascending layer-id order.
    """

    def initialize(self, layers: Sequence[object]) -> None:
        """
        Allocate auxiliary state for every trainable parameter.

        Stateless rules treat this as a no-op (apart from bookkeeping).
        """
        ...

    def update(self, layers: Sequence[object]) -> None:
        """
        Apply the update rule once using the currently accumulated gradients.

        Gradients are not cleared.
        """
        ...
