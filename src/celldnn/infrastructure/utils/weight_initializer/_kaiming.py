"""
He (Kaiming) and LeCun initializers, scaled by ``fan_in`` only.

- ``he``:          normal, ``std = sqrt(2 / fan_in)``
- ``he_uniform``:  ``U(-sqrt(6 / fan_in), +sqrt(6 / fan_in))``
- ``lecun``:       normal, ``std = sqrt(1 / fan_in)``

He variants suit ReLU-family activations; LeCun suits tanh/sigmoid-like ones.
"""

import math

import numpy as np

from ._base import WeightInitializer
from ...tensor._tensor import Tensor
from ....domain.utils._weight_initialization import fan_in_and_fan_out


def _fan_in(tensor: Tensor) -> float:
    fan_in, _ = fan_in_and_fan_out(tuple(tensor.shape))
    return float(fan_in)


@WeightInitializer.register_initializer("he")
def he(tensor: Tensor, rng: np.random.Generator) -> Tensor:
    std = math.sqrt(2.0 / _fan_in(tensor))
    return tensor.copy_from(rng.normal(0.0, std, size=tensor.shape))


@WeightInitializer.register_initializer("he_uniform")
def he_uniform(tensor: Tensor, rng: np.random.Generator) -> Tensor:
    limit = math.sqrt(6.0 / _fan_in(tensor))
    return tensor.copy_from(rng.uniform(-limit, limit, size=tensor.shape))


@WeightInitializer.register_initializer("lecun")
def lecun(tensor: Tensor, rng: np.random.Generator) -> Tensor:
    std = math.sqrt(1.0 / _fan_in(tensor))
    return tensor.copy_from(rng.normal(0.0, std, size=tensor.shape))
