"""
Infrastructure layer: NumPy-backed implementations of the domain contracts.

Importing this package registers every built-in activation, loss, layer type,
optimizer and weight initializer.
"""

from .tensor import Tensor, as_tensor, as_tensor_list
from ._activations import activation_token, available_activations, get_activation, register_activation
from ._losses import available_losses, get_loss, register_loss
from .layers import Layer, TrainableLayer, layer_class, register_layer
from .fully_connected import Dense
from .convolution import Convolutional
from .pooling import AvgPooling, MaxPooling, Pooling2d
from .flatten import Flatten
from .optimizers import (
    GD,
    SGD,
    AdaGrad,
    Adadelta,
    Adam,
    AMSGrad,
    Lion,
    Nadam,
    Optimizer,
    RMSProp,
    get_optimizer,
)
from .utils.weight_initializer import WeightInitializer
from .models import History, Sequential
from .evaluation import accuracy, confusion_matrix, mean_absolute_error, mean_squared_error
from .serialization import layer_from_stream, layer_to_stream, load_text, save_text

__all__ = [
    Tensor.__name__,
    as_tensor.__name__,
    as_tensor_list.__name__,
    get_activation.__name__,
    register_activation.__name__,
    available_activations.__name__,
    activation_token.__name__,
    get_loss.__name__,
    register_loss.__name__,
    available_losses.__name__,
    Layer.__name__,
    TrainableLayer.__name__,
    layer_class.__name__,
    register_layer.__name__,
    Dense.__name__,
    Convolutional.__name__,
    Pooling2d.__name__,
    MaxPooling.__name__,
    AvgPooling.__name__,
    Flatten.__name__,
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
    WeightInitializer.__name__,
    History.__name__,
    Sequential.__name__,
    accuracy.__name__,
    confusion_matrix.__name__,
    mean_squared_error.__name__,
    mean_absolute_error.__name__,
    layer_to_stream.__name__,
    layer_from_stream.__name__,
    save_text.__name__,
    load_text.__name__,
]
