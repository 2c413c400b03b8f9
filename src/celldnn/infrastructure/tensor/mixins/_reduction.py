"""
Whole-tensor reductions.

All reductions scan every cell once and return plain Python floats.
"""

from __future__ import annotations

import numpy as np
from typing_extensions import Self

from ....domain._errors import ConfigurationError
from ._base import TensorMixinBase


class TensorMixinReduction(TensorMixinBase):
    """Sum, mean, extrema, standard deviation and min/max rescaling."""

    def sum(self) -> float:
        return float(np.sum(self._data))

    def mean(self) -> float:
        return float(np.mean(self._data))

    def max(self) -> float:
        return float(np.max(self._data))

    def min(self) -> float:
        return float(np.min(self._data))

    def std(self) -> float:
        """Population standard deviation (divides by the cell count)."""
        return float(np.std(self._data))

    def item(self) -> float:
        """
        Return the single value of a one-element tensor.

        Raises
        ------
        ConfigurationError
            If the tensor holds more than one cell.
        """
        if self._data.size != 1:
            raise ConfigurationError(
                f"item() requires a one-element tensor, got shape {self.shape}",
                argument="shape",
                value=self.shape,
            )
        return float(self._data.reshape(-1)[0])

    def normalize(self, lo: float = 0.0, hi: float = 1.0) -> Self:
        """
        Linearly rescale the cells in place so that min maps to `lo` and max
        maps to `hi`.

        A constant tensor is filled with `lo`.
        """
        if hi < lo:
            raise ConfigurationError(
                f"normalize: hi must be >= lo, got lo={lo}, hi={hi}",
                argument="hi",
                value=hi,
            )
        mn = np.min(self._data)
        mx = np.max(self._data)
        span = mx - mn
        if span == 0:
            self._data.fill(lo)
            return self
        self._data -= mn
        self._data *= (hi - lo) / span
        self._data += lo
        return self
