"""
Error taxonomy for celldnn.

Every failure the library reports is one of the five exception types defined
here. They are deliberately explicit so that a failure can be diagnosed from
the message alone: each error carries the offending dimensions or values both
in its message and as attributes.

None of these errors are retried internally. The training loop does not catch
them either; a single failing example aborts the current epoch.

Hierarchy
---------
- `ConfigurationError`        (ValueError)   invalid constructor/call arguments
- `ShapeMismatchError`        (ValueError)   incompatible tensor shapes
- `IndexOutOfRangeError`      (IndexError)   multi-index outside tensor bounds
- `NotBuiltError`             (RuntimeError) compute/query before `build`
- `UnsupportedOperationError` (RuntimeError) capability missing on an object
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


def _fmt_shape(shape: Optional[Sequence[int]]) -> str:
    if shape is None:
        return "None"
    return "(" + ", ".join(str(int(d)) for d in shape) + ")"


class ConfigurationError(ValueError):
    """
    Raised when a constructor or call receives invalid arguments.

    Typical causes are non-positive shape dimensions, mismatched array lengths,
    a required argument that is None, unknown registry names (activation, loss,
    initializer) and out-of-range hyperparameters.

    Attributes
    ----------
    argument : Optional[str]
        Name of the offending argument, when known.
    value : Any
        The rejected value, when known.
    """

    def __init__(
        self, message: str, *, argument: Optional[str] = None, value: Any = None
    ) -> None:
        super().__init__(message)
        self.argument = argument
        self.value = value


class ShapeMismatchError(ValueError):
    """
    Raised when two shapes that must agree do not.

    Used by elementwise tensor arithmetic, shape-checked copies, reshapes with
    a different element count, and layer forward/backward calls whose input
    shape differs from the configured one.

    Attributes
    ----------
    expected : Optional[tuple[int, ...]]
        Shape that was required.
    received : Optional[tuple[int, ...]]
        Shape that was supplied.
    """

    def __init__(
        self,
        op: str,
        expected: Optional[Sequence[int]],
        received: Optional[Sequence[int]],
        detail: str = "",
    ) -> None:
        msg = (
            f"{op}: shape mismatch, expected {_fmt_shape(expected)} "
            f"but received {_fmt_shape(received)}"
        )
        if detail:
            msg += f" ({detail})"
        super().__init__(msg + ".")
        self.op = op
        self.expected = tuple(expected) if expected is not None else None
        self.received = tuple(received) if received is not None else None


class IndexOutOfRangeError(IndexError):
    """
    Raised when a multi-index does not address a cell of the tensor.

    Attributes
    ----------
    index : tuple[int, ...]
        The index that was requested.
    shape : tuple[int, ...]
        The shape of the tensor that was indexed.
    """

    def __init__(self, index: Sequence[int], shape: Sequence[int], detail: str) -> None:
        super().__init__(
            f"Index {tuple(index)} out of range for shape {_fmt_shape(shape)}: {detail}."
        )
        self.index = tuple(index)
        self.shape = tuple(shape)


class NotBuiltError(RuntimeError):
    """
    Raised when a layer (or model) is used before its shapes are fixed.

    Attributes
    ----------
    owner : str
        Human-readable identifier of the unbuilt object (e.g. "Dense (id 2)").
    op : str
        The operation that was attempted.
    """

    def __init__(self, owner: str, op: str) -> None:
        super().__init__(f"{owner} is not built; cannot call {op}().")
        self.owner = owner
        self.op = op


class UnsupportedOperationError(RuntimeError):
    """
    Raised when an object is asked for a capability it does not provide.

    Examples are kernel access on a pooling layer, or auxiliary-state access
    on a stateless optimizer.

    Attributes
    ----------
    owner : str
        Name of the object that was queried.
    op : str
        The unsupported capability.
    """

    def __init__(self, owner: str, op: str) -> None:
        super().__init__(f"{owner} does not support {op}.")
        self.owner = owner
        self.op = op


__all__ = [
    ConfigurationError.__name__,
    ShapeMismatchError.__name__,
    IndexOutOfRangeError.__name__,
    NotBuiltError.__name__,
    UnsupportedOperationError.__name__,
]
