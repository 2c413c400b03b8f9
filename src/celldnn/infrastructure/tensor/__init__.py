from ._tensor import Tensor
from ._conversion import as_tensor, as_tensor_list

__all__ = [
    Tensor.__name__,
    as_tensor.__name__,
    as_tensor_list.__name__,
]
