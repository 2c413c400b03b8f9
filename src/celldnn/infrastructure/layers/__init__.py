from ._base import Layer, TrainableLayer, layer_class, register_layer

__all__ = [
    Layer.__name__,
    TrainableLayer.__name__,
    layer_class.__name__,
    register_layer.__name__,
]
