from ._stream import layer_from_stream, layer_to_stream
from ._text_format import load_text, save_text

__all__ = [
    layer_to_stream.__name__,
    layer_from_stream.__name__,
    save_text.__name__,
    load_text.__name__,
]
