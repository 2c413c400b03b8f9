"""
Weight initialization public API.

Importing this package registers every built-in initializer (constants,
Xavier, He, LeCun) in the `WeightInitializer` registry as a side effect.

Exports
-------
- WeightInitializer:
    The registry-backed initializer dispatcher used to apply a selected
    initialization strategy to tensors.
"""

from ._constants import *
from ._xavier import *
from ._kaiming import *
from ._base import WeightInitializer

__all__ = [
    WeightInitializer.__name__,
]
