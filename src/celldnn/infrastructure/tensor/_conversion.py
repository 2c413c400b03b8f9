"""
Input-representation boundary.

Public entry points (`Sequential.forward`, `train`, `forward_batch`, losses)
accept tensors, NumPy arrays or nested Python sequences. The representation
is resolved here, once, so that layers only ever see `Tensor`.
"""

from __future__ import annotations

from typing import Any, List, Sequence

import numpy as np

from ...domain._errors import ConfigurationError
from ._tensor import Tensor


def as_tensor(x: Any, *, copy: bool = False) -> Tensor:
    """
    Resolve `x` into a `Tensor`.

    Parameters
    ----------
    x : Tensor, numpy.ndarray, nested sequence or scalar
        Input data.
    copy : bool, optional
        If True, a `Tensor` input is cloned. Other inputs are always copied
        into fresh float64 storage.

    Raises
    ------
    ConfigurationError
        If `x` is None or cannot be read as a rectangular numeric array.
    """
    if x is None:
        raise ConfigurationError("input must not be None", argument="x")
    if isinstance(x, Tensor):
        return x.clone() if copy else x
    if isinstance(x, np.ndarray):
        return Tensor.from_numpy(x, copy=True)
    return Tensor(x)


def as_tensor_list(xs: Sequence[Any], name: str = "xs") -> List[Tensor]:
    """Resolve every element of a sequence of examples."""
    if xs is None:
        raise ConfigurationError(f"{name} must not be None", argument=name)
    if isinstance(xs, np.ndarray):
        return [Tensor.from_numpy(row, copy=True) for row in xs]
    return [as_tensor(x) for x in xs]


__all__ = [
    as_tensor.__name__,
    as_tensor_list.__name__,
]
