from ._flatten import Flatten

__all__ = [
    Flatten.__name__,
]
