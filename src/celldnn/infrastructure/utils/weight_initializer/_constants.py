"""
Constant and plain-distribution initializers.

Registered names: ``zeros``, ``ones``, ``uniform`` (``U(-0.05, 0.05)``) and
``normal`` (``N(0, 0.05^2)``). These ignore fan-in/fan-out.
"""

import numpy as np

from ._base import WeightInitializer
from ...tensor._tensor import Tensor


@WeightInitializer.register_initializer("zeros")
def zeros(tensor: Tensor, rng: np.random.Generator) -> Tensor:
    return tensor.fill(0.0)


@WeightInitializer.register_initializer("ones")
def ones(tensor: Tensor, rng: np.random.Generator) -> Tensor:
    return tensor.fill(1.0)


@WeightInitializer.register_initializer("uniform")
def uniform(tensor: Tensor, rng: np.random.Generator) -> Tensor:
    """Small symmetric uniform noise, ``U(-0.05, 0.05)``."""
    return tensor.copy_from(rng.uniform(-0.05, 0.05, size=tensor.shape))


@WeightInitializer.register_initializer("normal")
def normal(tensor: Tensor, rng: np.random.Generator) -> Tensor:
    """Small zero-mean normal noise with standard deviation 0.05."""
    return tensor.copy_from(rng.normal(0.0, 0.05, size=tensor.shape))
