from ._convolutional import Convolutional

__all__ = [
    Convolutional.__name__,
]
