"""
Parallel read-only inference.

`forward_batch` splits the inputs into contiguous chunks, one per worker.
Each worker replicates the model's layers (sharing parameter cells
read-only, owning private input/output/gradient buffers) and runs forward
over its chunk. Results are cloned out of the replicas' buffers into a
pre-sized list at their input's index, so the output order matches the input
order and does not depend on the worker count.

The first worker exception is re-raised in the caller once all workers have
finished.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Optional, Sequence, Tuple

from ...domain._errors import ConfigurationError
from ..tensor._tensor import Tensor

logger = logging.getLogger(__name__)


def partition(n: int, workers: int) -> List[Tuple[int, int]]:
    """
    Split ``range(n)`` into `workers` contiguous ``(start, end)`` chunks whose
    sizes differ by at most one.
    """
    base, extra = divmod(n, workers)
    chunks = []
    start = 0
    for w in range(workers):
        end = start + base + (1 if w < extra else 0)
        chunks.append((start, end))
        start = end
    return chunks


def resolve_workers(n: int, workers: Optional[int]) -> int:
    if workers is None:
        workers = os.cpu_count() or 1
    if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
        raise ConfigurationError(
            f"workers must be a positive integer, got {workers!r}",
            argument="workers",
            value=workers,
        )
    return max(1, min(workers, n))


def _run_chunk(
    layers: Sequence[Any], xs: Sequence[Tensor], start: int, end: int, results: List[Any]
) -> None:
    replicas = [layer.replicate() for layer in layers]
    for i in range(start, end):
        out = xs[i]
        for layer in replicas:
            out = layer.forward(out)
        results[i] = out.clone()


def forward_batch(
    layers: Sequence[Any], xs: Sequence[Tensor], workers: Optional[int] = None
) -> List[Tensor]:
    """
    Run forward over every input using a fixed pool of threads.

    Parameters
    ----------
    layers : Sequence
        Built layers, in order.
    xs : Sequence[Tensor]
        Inputs.
    workers : int, optional
        Number of threads. Defaults to ``os.cpu_count()``; never more than
        ``len(xs)``.

    Returns
    -------
    list[Tensor]
        Independent output tensors, ``result[i]`` for ``xs[i]``.
    """
    n = len(xs)
    if n == 0:
        return []
    count = resolve_workers(n, workers)
    chunks = partition(n, count)
    logger.debug("forward_batch: %d example(s) over %d worker(s): %s", n, count, chunks)

    results: List[Any] = [None] * n
    with ThreadPoolExecutor(max_workers=count) as pool:
        futures = [pool.submit(_run_chunk, layers, xs, s, e, results) for s, e in chunks]
        for fut in futures:
            fut.result()
    return results
