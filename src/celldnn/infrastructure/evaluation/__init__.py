from ._metrics import accuracy, confusion_matrix, mean_absolute_error, mean_squared_error

__all__ = [
    accuracy.__name__,
    confusion_matrix.__name__,
    mean_squared_error.__name__,
    mean_absolute_error.__name__,
]
