from ._pooling import AvgPooling, MaxPooling, Pooling2d

__all__ = [
    Pooling2d.__name__,
    MaxPooling.__name__,
    AvgPooling.__name__,
]
