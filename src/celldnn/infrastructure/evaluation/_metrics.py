"""
Evaluation metrics over sequences of predictions and targets.

Every function accepts sequences of tensors (or anything `as_tensor`
accepts); a prediction and its target must have the same shape.

Classification convention
-------------------------
- Multi-output examples are classified by ``argmax`` (first maximum wins).
- Single-output examples are classified by thresholding at 0.5.
"""

from __future__ import annotations

from typing import Any, List, Sequence

import numpy as np

from ...domain._errors import ConfigurationError, ShapeMismatchError
from ..tensor._conversion import as_tensor_list


def _pairs(preds: Sequence[Any], targets: Sequence[Any]) -> List[tuple]:
    ps = as_tensor_list(preds, "preds")
    ts = as_tensor_list(targets, "targets")
    if len(ps) != len(ts):
        raise ConfigurationError(
            f"preds and targets must have same length, got {len(ps)} and {len(ts)}",
            argument="targets",
        )
    if not ps:
        raise ConfigurationError("at least one prediction is required", argument="preds")
    out = []
    for p, t in zip(ps, ts):
        if p.shape != t.shape:
            raise ShapeMismatchError("metric", t.shape, p.shape)
        out.append((p.data, t.data))
    return out


def _label(a: np.ndarray) -> int:
    if a.size == 1:
        return int(a.reshape(-1)[0] >= 0.5)
    return int(np.argmax(a))


def accuracy(preds: Sequence[Any], targets: Sequence[Any]) -> float:
    """Fraction of examples whose predicted class equals the target class."""
    pairs = _pairs(preds, targets)
    hits = sum(1 for p, t in pairs if _label(p) == _label(t))
    return hits / len(pairs)


def confusion_matrix(preds: Sequence[Any], targets: Sequence[Any], num_classes: int = 0) -> np.ndarray:
    """
    Count matrix ``m[true, predicted]``.

    Parameters
    ----------
    preds, targets : Sequence
        Predictions and targets (one-hot or single probability per example).
    num_classes : int, optional
        Matrix size. Defaults to the example size (2 for single-output).

    Returns
    -------
    np.ndarray
        Integer matrix of shape ``(num_classes, num_classes)``.
    """
    pairs = _pairs(preds, targets)
    size = pairs[0][0].size
    if num_classes <= 0:
        num_classes = 2 if size == 1 else size
    m = np.zeros((num_classes, num_classes), dtype=np.int64)
    for p, t in pairs:
        true, pred = _label(t), _label(p)
        if true >= num_classes or pred >= num_classes:
            raise ConfigurationError(
                f"class index {max(true, pred)} out of range for num_classes={num_classes}",
                argument="num_classes",
                value=num_classes,
            )
        m[true, pred] += 1
    return m


def mean_squared_error(preds: Sequence[Any], targets: Sequence[Any]) -> float:
    """Mean over examples of each example's mean squared error."""
    pairs = _pairs(preds, targets)
    return float(np.mean([np.mean((p - t) ** 2) for p, t in pairs]))


def mean_absolute_error(preds: Sequence[Any], targets: Sequence[Any]) -> float:
    """Mean over examples of each example's mean absolute error."""
    pairs = _pairs(preds, targets)
    return float(np.mean([np.mean(np.abs(p - t)) for p, t in pairs]))


__all__ = [
    accuracy.__name__,
    confusion_matrix.__name__,
    mean_squared_error.__name__,
    mean_absolute_error.__name__,
]
