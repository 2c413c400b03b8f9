"""
Glorot (Xavier) initializers, scaled by ``fan_in + fan_out``.

- ``xavier``:          normal, ``std = sqrt(2 / (fan_in + fan_out))``
- ``xavier_uniform``:  ``U(-sqrt(6 / (fan_in + fan_out)), +sqrt(6 / (fan_in + fan_out)))``

``xavier_uniform`` is the default kernel initializer of trainable layers.
"""

import math

import numpy as np

from ._base import WeightInitializer
from ...tensor._tensor import Tensor
from ....domain.utils._weight_initialization import fan_in_and_fan_out


def _fan_sum(tensor: Tensor) -> float:
    fan_in, fan_out = fan_in_and_fan_out(tuple(tensor.shape))
    return float(fan_in + fan_out)


@WeightInitializer.register_initializer("xavier")
def xavier(tensor: Tensor, rng: np.random.Generator) -> Tensor:
    std = math.sqrt(2.0 / _fan_sum(tensor))
    return tensor.copy_from(rng.normal(0.0, std, size=tensor.shape))


@WeightInitializer.register_initializer("xavier_uniform")
def xavier_uniform(tensor: Tensor, rng: np.random.Generator) -> Tensor:
    limit = math.sqrt(6.0 / _fan_sum(tensor))
    return tensor.copy_from(rng.uniform(-limit, limit, size=tensor.shape))
