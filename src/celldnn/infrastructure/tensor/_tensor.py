"""
NumPy-backed n-dimensional tensor.

`Tensor` stores float64 cells in a row-major NumPy array and exposes the
small, explicit API the layers and optimizers are written against.

Aliasing
--------
`reshape`, `transpose`, `slice`, `squeeze`, `unsqueeze` and `view` return
tensors that reference the *same* cells as their parent: writing through one
is visible through the other. The only exception is `reshape` of a
non-contiguous view (for example a transposed matrix), which NumPy cannot
express as a view; in that case the result is a copy.

Indexing
--------
Element access takes a full integer multi-index. Negative indices are not
accepted; an index outside ``[0, dim)`` or with the wrong arity raises
`IndexOutOfRangeError`.
"""

from __future__ import annotations

from typing import Any, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np
from typing_extensions import Self

from ...domain._errors import (
    ConfigurationError,
    IndexOutOfRangeError,
    ShapeMismatchError,
)
from .mixins import TensorMixinArithmetic, TensorMixinReduction


def _normalize_shape(shape: Sequence[Any], op: str) -> Tuple[int, ...]:
    """Accept ``(2, 3)``, ``[2, 3]`` or ``((2, 3),)`` and validate it."""
    if len(shape) == 1 and isinstance(shape[0], (tuple, list)):
        shape = shape[0]
    if len(shape) == 0:
        raise ConfigurationError(f"{op}: shape must not be empty", argument="shape")
    out = []
    for d in shape:
        if isinstance(d, bool) or not isinstance(d, (int, np.integer)):
            raise ConfigurationError(
                f"{op}: shape dimensions must be integers, got {d!r}",
                argument="shape",
                value=tuple(shape),
            )
        if d < 1:
            raise ConfigurationError(
                f"{op}: shape dimensions must be > 0, got {tuple(shape)}",
                argument="shape",
                value=tuple(shape),
            )
        out.append(int(d))
    return tuple(out)


class Tensor(TensorMixinArithmetic, TensorMixinReduction):
    """
    Shaped container of float64 cells.

    Parameters
    ----------
    data : nested sequence, flat sequence, scalar or numpy.ndarray
        Cell values. With `shape` omitted, `data` is read as a nested literal
        whose nesting defines the shape. With `shape` given, `data` must be a
        flat sequence of exactly ``prod(shape)`` values in row-major order.
    shape : tuple[int, ...], optional
        Target shape for flat `data`.

    Raises
    ------
    ConfigurationError
        For empty or non-positive shapes, ragged literals, or a flat length
        that does not match `shape`.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, data: Any, shape: Optional[Sequence[int]] = None) -> None:
        if data is None:
            raise ConfigurationError("Tensor data must not be None", argument="data")
        if isinstance(data, Tensor):
            data = data._data
        try:
            arr = np.array(data, dtype=np.float64)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(
                f"Tensor data is not a rectangular numeric literal: {e}",
                argument="data",
            ) from e

        if shape is not None:
            target = _normalize_shape(tuple(shape), "Tensor")
            flat = arr.reshape(-1)
            expected = int(np.prod(target))
            if flat.size != expected:
                raise ConfigurationError(
                    f"Tensor: {flat.size} values cannot fill shape {target} "
                    f"({expected} cells)",
                    argument="data",
                )
            arr = flat.reshape(target)
        elif arr.ndim == 0:
            arr = arr.reshape(1)
        else:
            _normalize_shape(arr.shape, "Tensor")

        self._data = np.ascontiguousarray(arr)

    # ------------------------------------------------------------------
    # Alternate constructors
    # ------------------------------------------------------------------
    @classmethod
    def _wrap(cls, arr: np.ndarray) -> "Tensor":
        """Wrap an existing float64 array without copying or validating."""
        t = cls.__new__(cls)
        t._data = arr
        return t

    @classmethod
    def zeros(cls, *shape: Any) -> "Tensor":
        """Create a zero-filled tensor of the given shape."""
        return cls._wrap(np.zeros(_normalize_shape(shape, "zeros"), dtype=np.float64))

    @classmethod
    def full(cls, shape: Sequence[int], value: float) -> "Tensor":
        """Create a tensor with every cell set to `value`."""
        return cls._wrap(
            np.full(_normalize_shape(tuple(shape), "full"), float(value), dtype=np.float64)
        )

    @classmethod
    def from_numpy(cls, arr: np.ndarray, copy: bool = True) -> "Tensor":
        """
        Create a tensor from a NumPy array.

        With ``copy=False`` and a float64 input, the tensor aliases `arr`.
        """
        a = np.asarray(arr)
        if a.ndim == 0:
            a = a.reshape(1)
        _normalize_shape(a.shape, "from_numpy")
        if copy or a.dtype != np.float64:
            a = np.array(a, dtype=np.float64)
        return cls._wrap(a)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def data(self) -> np.ndarray:
        """The backing array. Writes through it mutate this tensor."""
        return self._data

    @property
    def size(self) -> int:
        return int(self._data.size)

    @property
    def ndim(self) -> int:
        return int(self._data.ndim)

    @property
    def writeable(self) -> bool:
        return bool(self._data.flags.writeable)

    def compare_shape(self, other: "Tensor") -> bool:
        return self.shape == tuple(other.shape)

    def shares_memory(self, other: "Tensor") -> bool:
        """Whether the two tensors reference at least one common cell."""
        return bool(np.shares_memory(self._data, other._data))

    def __len__(self) -> int:
        return int(self._data.shape[0])

    def __iter__(self) -> Iterator[Any]:
        """
        Iterate along the first axis: floats for a 1-D tensor, otherwise
        aliasing views of each sub-tensor. Use `to_array` for the flat cells.
        """
        if self._data.ndim == 1:
            return (float(v) for v in self._data)
        return (type(self)._wrap(row) for row in self._data)

    def __repr__(self) -> str:
        body = np.array2string(self._data, precision=6, separator=", ")
        return f"Tensor(shape={self.shape}, data={body})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tensor):
            return NotImplemented
        if self.shape != other.shape:
            return False
        return bool(np.array_equal(self._data, other._data))

    def __ne__(self, other: object) -> bool:
        eq = self.__eq__(other)
        if eq is NotImplemented:
            return eq
        return not eq

    # ------------------------------------------------------------------
    # Element access
    # ------------------------------------------------------------------
    def _check_index(self, index: Tuple[Any, ...]) -> Tuple[int, ...]:
        shape = self._data.shape
        if len(index) != len(shape):
            raise IndexOutOfRangeError(
                index, shape, f"expected {len(shape)} indices, got {len(index)}"
            )
        for axis, (i, d) in enumerate(zip(index, shape)):
            if isinstance(i, bool) or not isinstance(i, (int, np.integer)):
                raise IndexOutOfRangeError(
                    index, shape, f"index on axis {axis} is not an integer"
                )
            if not 0 <= i < d:
                raise IndexOutOfRangeError(
                    index, shape, f"axis {axis} requires 0 <= index < {d}"
                )
        return tuple(int(i) for i in index)

    def get(self, *index: int) -> float:
        """Return the value at a full multi-index."""
        return float(self._data[self._check_index(index)])

    def set(self, value: float, *index: int) -> Self:
        """Write `value` at a full multi-index."""
        self._data[self._check_index(index)] = value
        return self

    def add_at(self, value: float, *index: int) -> Self:
        """Add `value` to the cell at a full multi-index."""
        self._data[self._check_index(index)] += value
        return self

    def __getitem__(self, index: Union[int, Tuple[int, ...]]) -> float:
        if not isinstance(index, tuple):
            index = (index,)
        return self.get(*index)

    def __setitem__(self, index: Union[int, Tuple[int, ...]], value: float) -> None:
        if not isinstance(index, tuple):
            index = (index,)
        self.set(value, *index)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def view(self) -> "Tensor":
        """Return a new tensor over the same cells."""
        return Tensor._wrap(self._data.view())

    def read_only_view(self) -> "Tensor":
        """Return a view over the same cells that rejects writes."""
        v = self._data.view()
        v.flags.writeable = False
        return Tensor._wrap(v)

    def reshape(self, *shape: Any) -> "Tensor":
        """
        Return a tensor with a new shape over the same cells.

        Raises
        ------
        ShapeMismatchError
            If the element count differs.
        """
        target = _normalize_shape(shape, "reshape")
        count = int(np.prod(target))
        if count != self._data.size:
            raise ShapeMismatchError(
                "reshape",
                self.shape,
                target,
                detail=f"{self._data.size} cells cannot be viewed as {count}",
            )
        return Tensor._wrap(self._data.reshape(target))

    def flatten(self) -> "Tensor":
        return self.reshape(self._data.size)

    def transpose(self) -> "Tensor":
        """
        Return the transpose as a view.

        A 1-D tensor ``(n,)`` becomes the column ``(n, 1)``; a column
        ``(n, 1)`` becomes the 1-D ``(n,)``. Every other shape has its axis
        order reversed.
        """
        shape = self._data.shape
        if len(shape) == 1:
            return Tensor._wrap(self._data.reshape(shape[0], 1))
        if len(shape) == 2 and shape[1] == 1:
            return Tensor._wrap(self._data.reshape(shape[0]))
        return Tensor._wrap(self._data.transpose())

    @property
    def T(self) -> "Tensor":
        return self.transpose()

    def slice(self, starts: Sequence[int], ends: Sequence[int]) -> "Tensor":
        """
        Return the sub-tensor ``[starts[k], ends[k])`` on every axis as a view.

        Raises
        ------
        IndexOutOfRangeError
            If the range lists have the wrong length or a range is empty or
            falls outside the tensor.
        """
        shape = self._data.shape
        starts = tuple(starts)
        ends = tuple(ends)
        if len(starts) != len(shape) or len(ends) != len(shape):
            raise IndexOutOfRangeError(
                starts, shape, f"slice needs {len(shape)} start and end indices"
            )
        index = []
        for axis, (s, e, d) in enumerate(zip(starts, ends, shape)):
            if not (0 <= s < d and s < e <= d):
                raise IndexOutOfRangeError(
                    starts,
                    shape,
                    f"axis {axis} range [{s}, {e}) is not inside [0, {d})",
                )
            index.append(slice(int(s), int(e)))
        return Tensor._wrap(self._data[tuple(index)])

    def squeeze(self, dim: int) -> "Tensor":
        """Drop axis `dim`, which must have extent 1."""
        shape = self._data.shape
        if not 0 <= dim < len(shape) or shape[dim] != 1:
            raise ConfigurationError(
                f"squeeze: axis {dim} of shape {shape} is not a unit axis",
                argument="dim",
                value=dim,
            )
        if len(shape) == 1:
            raise ConfigurationError(
                "squeeze: cannot drop the only axis", argument="dim", value=dim
            )
        return Tensor._wrap(np.squeeze(self._data, axis=dim))

    def unsqueeze(self, dim: int) -> "Tensor":
        """Insert a unit axis at position `dim`."""
        if not 0 <= dim <= self._data.ndim:
            raise ConfigurationError(
                f"unsqueeze: axis {dim} out of range for {self._data.ndim}-D tensor",
                argument="dim",
                value=dim,
            )
        return Tensor._wrap(np.expand_dims(self._data, axis=dim))

    # ------------------------------------------------------------------
    # Bulk writes and copies
    # ------------------------------------------------------------------
    def fill(self, value: float) -> Self:
        self._data.fill(value)
        return self

    def zero(self) -> Self:
        self._data.fill(0.0)
        return self

    def copy_from(self, other: Union["Tensor", np.ndarray]) -> Self:
        """
        Write the values of `other` into this tensor's cells.

        Raises
        ------
        ShapeMismatchError
            If the shapes differ.
        """
        src = other._data if isinstance(other, Tensor) else np.asarray(other)
        if src.shape != self._data.shape:
            raise ShapeMismatchError("copy_from", self._data.shape, src.shape)
        np.copyto(self._data, src)
        return self

    def clone(self) -> "Tensor":
        """Deep copy with independent, writeable cells."""
        return Tensor._wrap(np.array(self._data, dtype=np.float64, copy=True))

    def to_numpy(self, copy: bool = True) -> np.ndarray:
        return self._data.copy() if copy else self._data

    def tolist(self) -> List[Any]:
        return self._data.tolist()

    def to_array(self) -> List[float]:
        """Return all cells as a flat row-major list."""
        return self._data.reshape(-1).tolist()


__all__ = [
    Tensor.__name__,
]
