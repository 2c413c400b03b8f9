"""
celldnn: a small CPU deep learning library on NumPy.

Typical use::

    from celldnn import Dense, Sequential

    model = Sequential([
        Dense(4, activation="tanh", input_shape=(2,)),
        Dense(1, activation="sigmoid"),
    ])
    model.compile("adam", "mse", seed=0)
    model.train(xs, ys, epochs=500, batch_size=4)
    outputs = model.forward_batch(xs)
"""

from .domain import (
    ConfigurationError,
    IndexOutOfRangeError,
    NotBuiltError,
    ShapeMismatchError,
    UnsupportedOperationError,
)
from .infrastructure import *  # noqa: F401,F403
from .infrastructure import __all__ as _infrastructure_all

__version__ = "0.1.0"

__all__ = [
    ConfigurationError.__name__,
    IndexOutOfRangeError.__name__,
    NotBuiltError.__name__,
    ShapeMismatchError.__name__,
    UnsupportedOperationError.__name__,
    *_infrastructure_all,
]
