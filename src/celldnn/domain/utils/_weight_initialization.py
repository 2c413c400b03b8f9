"""
Initializer contract and parameter fan computation.

Kernel layouts fixed by the layers:

- Dense:          ``(in_features, units)``
- Convolutional:  ``(filters, channels, k_h, k_w)``

Bias vectors ``(n,)`` count as ``fan_in == fan_out == n``.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Tuple

from .._tensor import ITensor


class _WeightInitializer(ABC):
    """
    Name-addressed initializer dispatcher.

    A registered initializer is a callable ``(tensor, rng) -> tensor`` that
    overwrites the tensor's cells and returns it. The caller owns `rng`
    (a ``numpy.random.Generator``), so seeding it makes initialization
    reproducible.
    """

    INITIALIZERS: Dict[str, Callable] = {}

    @abstractmethod
    def __init__(self, initializer_name: str) -> None: ...

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def __call__(self, tensor: ITensor, rng: Any) -> ITensor: ...


def fan_in_and_fan_out(shape: Tuple[int, ...]) -> Tuple[int, int]:
    """
    Return ``(fan_in, fan_out)`` for a parameter of `shape`, both at least 1.
    """
    dims = [int(d) for d in shape]
    if not dims:
        return 1, 1
    if len(dims) == 1:
        return max(1, dims[0]), max(1, dims[0])
    if len(dims) == 2:
        return max(1, dims[0]), max(1, dims[1])
    window = 1
    for d in dims[2:]:
        window *= d
    return max(1, dims[1] * window), max(1, dims[0] * window)
