from ._base import Optimizer
from ._sgd import GD, SGD
from ._adaptive import AdaGrad, Adadelta, RMSProp
from ._adam import AMSGrad, Adam, Nadam
from ._lion import Lion
from ._registry import get_optimizer

__all__ = [
    Optimizer.__name__,
    GD.__name__,
    SGD.__name__,
    AdaGrad.__name__,
    RMSProp.__name__,
    Adadelta.__name__,
    Adam.__name__,
    Nadam.__name__,
    AMSGrad.__name__,
    Lion.__name__,
    get_optimizer.__name__,
]
