"""
Activation function interface.

An activation is a stateless strategy applied by a layer to its pre-activation
sum. It supplies two elementwise operations:

- `forward(z, out)`              writes act(z) into `out`
- `derivative(z, y, out)`        writes d act / d z into `out`

The chain-rule multiplication with the upstream gradient is the layer's
responsibility, not the activation's. Both the pre-activation `z` and the
activated output `y` are handed to `derivative` so that functions whose
derivative is cheaper in terms of the output (sigmoid, tanh) can use it.

An activation whose Jacobian is not diagonal (softmax) may also define
`backward(z, y, grad, out)` writing the Jacobian-vector product; layers call
it instead of multiplying by `derivative` when it is present.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class IActivation(Protocol):
    """Stateless elementwise activation with a paired derivative."""

    @property
    def name(self) -> str:
        """Registry tag (e.g. "relu"), used by persistence."""
        ...

    def forward(self, z: Any, out: Any) -> Any:
        """
        Apply the activation elementwise.

        Parameters
        ----------
        z : np.ndarray
            Pre-activation values.
        out : np.ndarray
            Destination array of the same shape (may alias nothing else).

        Returns
        -------
        np.ndarray
            `out`.
        """
        ...

    def derivative(self, z: Any, y: Any, out: Any) -> Any:
        """
        Write the elementwise derivative into `out`.

        Parameters
        ----------
        z : np.ndarray
            Pre-activation values.
        y : np.ndarray
            Activated values produced by `forward`.
        out : np.ndarray
            Destination array.

        Returns
        -------
        np.ndarray
            `out`.
        """
        ...
