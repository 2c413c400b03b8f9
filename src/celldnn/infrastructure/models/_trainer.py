"""
Epoch and batch orchestration for `Sequential.train`.

For every epoch the examples are visited in order, in contiguous batches of
`batch_size` (the last batch may be shorter). For every example of a batch:

    forward -> loss -> loss gradient -> backward

Gradients of the batch's examples are summed in the layers' accumulators.
After the batch, the optimizer applies one update and the gradients are
cleared.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterator, List, Sequence, Tuple

from ...domain._errors import ConfigurationError
from ..tensor._tensor import Tensor
from ._history import History

if TYPE_CHECKING:
    from ._sequential import Sequential

logger = logging.getLogger(__name__)


def _iter_batches(n: int, batch_size: int) -> Iterator[Tuple[int, int]]:
    """Yield ``(start, end)`` ranges covering ``range(n)`` in order."""
    for start in range(0, n, batch_size):
        yield start, min(start + batch_size, n)


def _validate(xs: Sequence[Tensor], ys: Sequence[Tensor], epochs: int, batch_size: int) -> None:
    if len(xs) != len(ys):
        raise ConfigurationError(
            f"xs and ys must have same length, got len(xs)={len(xs)}, len(ys)={len(ys)}",
            argument="ys",
        )
    if len(xs) == 0:
        raise ConfigurationError("xs must contain at least one example", argument="xs")
    if isinstance(epochs, bool) or not isinstance(epochs, int) or epochs < 1:
        raise ConfigurationError(f"epochs must be >= 1, got {epochs!r}", argument="epochs", value=epochs)
    if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size < 1:
        raise ConfigurationError(
            f"batch_size must be >= 1, got {batch_size!r}", argument="batch_size", value=batch_size
        )


def train(
    model: "Sequential",
    xs: List[Tensor],
    ys: List[Tensor],
    epochs: int,
    batch_size: int = 1,
    *,
    history: bool = False,
    verbose: int = 0,
) -> History:
    """
    Train `model` in place.

    Parameters
    ----------
    model : Sequential
        A compiled model.
    xs, ys : list[Tensor]
        Inputs and targets, already resolved to tensors.
    epochs : int
        Number of passes over the data. Must be >= 1.
    batch_size : int, optional
        Examples per optimizer update. Must be >= 1. Defaults to 1.
    history : bool, optional
        If True, after each epoch an extra forward pass over all examples
        records the mean loss in the returned `History`.
    verbose : int, optional
        If non-zero, prints a one-line summary per epoch.

    Returns
    -------
    History
        Recorded losses (empty when `history` is False).
    """
    _validate(xs, ys, epochs, batch_size)
    loss = model.loss
    optimizer = model.optimizer
    hist = History(capacity=epochs)
    n = len(xs)

    model.set_training(True)
    try:
        for epoch_idx in range(epochs):
            running = 0.0
            seen = 0
            for start, end in _iter_batches(n, batch_size):
                for i in range(start, end):
                    pred = model.forward(xs[i])
                    running += loss.forward(pred, ys[i])
                    model.backward(loss.backward(pred, ys[i]))
                    seen += 1
                optimizer.update(model.layers)
                model.zero_grad()

            if history:
                hist.append_epoch(epoch_idx, {"loss": model.evaluate(xs, ys)})

            if verbose:
                print(f"Epoch {epoch_idx + 1}/{epochs} - loss: {running / seen:.6f} - seen: {seen}")
            logger.debug("epoch %d/%d done, mean training loss %.6f", epoch_idx + 1, epochs, running / seen)
    finally:
        model.set_training(False)

    return hist
