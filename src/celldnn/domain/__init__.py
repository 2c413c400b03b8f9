"""
Domain layer: backend-agnostic contracts and the error taxonomy.
"""

from ._errors import (
    ConfigurationError,
    IndexOutOfRangeError,
    NotBuiltError,
    ShapeMismatchError,
    UnsupportedOperationError,
)
from ._tensor import ITensor
from ._activation import IActivation
from ._loss import ILoss
from ._layer import IDuplicable, ILayer, INamed, ITrainable, as_trainable
from ._optimizers import IOptimizer

__all__ = [
    ConfigurationError.__name__,
    IndexOutOfRangeError.__name__,
    NotBuiltError.__name__,
    ShapeMismatchError.__name__,
    UnsupportedOperationError.__name__,
    ITensor.__name__,
    IActivation.__name__,
    ILoss.__name__,
    ILayer.__name__,
    ITrainable.__name__,
    INamed.__name__,
    IDuplicable.__name__,
    IOptimizer.__name__,
    as_trainable.__name__,
]
