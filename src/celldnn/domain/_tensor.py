"""
Tensor interface definitions.

This module defines the domain-level interface for tensor-like objects using
structural typing. The interface captures the backend-agnostic surface that
layers, losses and optimizers rely on: shape metadata, cell access, in-place
elementwise arithmetic and a few reductions.

Notes
-----
- Tensors are views over scalar cells. Two tensors may share cells (a parent
  and a slice, a tensor and its reshape), in which case writes through one are
  visible through the other.
- The concrete NumPy-backed implementation lives in
  `infrastructure.tensor._tensor`.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol, Sequence, Union, runtime_checkable

Number = Union[int, float]


@runtime_checkable
class ITensor(Protocol):
    """
    Tensor interface.

    An `ITensor` is an n-dimensional array of float cells with a fixed shape.
    Elementwise operations require identical shapes; no broadcasting or
    implicit shape coercion is performed.
    """

    @property
    def shape(self) -> tuple[int, ...]:
        """
        Return the shape of the tensor.

        Returns
        -------
        tuple[int, ...]
            The tensor's shape.
        """
        ...

    @property
    def size(self) -> int:
        """Return the total number of cells."""
        ...

    @property
    def ndim(self) -> int:
        """Return the number of dimensions."""
        ...

    def get(self, *index: int) -> float:
        """Read the cell at a multi-index."""
        ...

    def set(self, value: Number, *index: int) -> None:
        """Write the cell at a multi-index."""
        ...

    def reshape(self, *shape: int) -> "ITensor":
        """Return a tensor with a new shape over the same cells."""
        ...

    def transpose(self) -> "ITensor":
        """Return a transposed tensor over the same cells."""
        ...

    def slice(self, starts: Sequence[int], ends: Sequence[int]) -> "ITensor":
        """Return a tensor aliasing a half-open sub-block of the cells."""
        ...

    def add(self, other: Union["ITensor", Number]) -> "ITensor":
        """In-place elementwise addition."""
        ...

    def sub(self, other: Union["ITensor", Number]) -> "ITensor":
        """In-place elementwise subtraction."""
        ...

    def mult(self, other: Union["ITensor", Number]) -> "ITensor":
        """In-place elementwise multiplication."""
        ...

    def div(self, other: Union["ITensor", Number]) -> "ITensor":
        """In-place elementwise division."""
        ...

    def apply(
        self, fn: Callable[..., Any], other: Optional["ITensor"] = None
    ) -> "ITensor":
        """Apply a unary (or binary, with `other`) scalar function in place."""
        ...

    def map(
        self, fn: Callable[..., Any], other: Optional["ITensor"] = None
    ) -> "ITensor":
        """Apply a unary (or binary) scalar function into a new tensor."""
        ...

    def sum(self) -> float:
        """Sum of all cells."""
        ...

    def mean(self) -> float:
        """Arithmetic mean of all cells."""
        ...

    def zero(self) -> "ITensor":
        """Set every cell to 0 in place."""
        ...

    def copy_from(self, other: "ITensor") -> "ITensor":
        """Copy cell values from a same-shaped tensor."""
        ...

    def clone(self) -> "ITensor":
        """Return a deep copy with independent cells."""
        ...

    def to_numpy(self, copy: bool = True) -> Any:
        """Return the cells as a NumPy array."""
        ...
