from ._arithmetic import TensorMixinArithmetic
from ._reduction import TensorMixinReduction

__all__ = [
    TensorMixinArithmetic.__name__,
    TensorMixinReduction.__name__,
]
