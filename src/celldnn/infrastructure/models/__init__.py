from ._history import History
from ._sequential import Sequential

__all__ = [
    History.__name__,
    Sequential.__name__,
]
