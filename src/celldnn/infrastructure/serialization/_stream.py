"""
Ordered per-layer value stream.

`layer_to_stream` describes a built layer as a flat sequence of values:

1. type tag (``"Dense"``, ``"Convolutional"``, ``"MaxPooling"``, ...)
2. input shape
3. output shape
4. activation token (``"relu"``, ``"elu(alpha=0.5)"``; ``"none"`` for
   parameter-free layers)
5. bias flag
6. type-specific configuration (the remaining `get_config()` entries:
   units, filters, kernel/pool size, stride, name)
7. kernel scalars in nested traversal order
   (dense: input row -> unit; convolution: filter -> channel -> row -> column)
8. bias scalars in matching order, if the bias is enabled

`layer_from_stream` consumes the same sequence, rebuilds an identically
configured, built layer *before* reading any scalar, then fills its
parameters in the same order.

Tokens may be typed Python values (as produced here) or their text forms
(as read back by `_text_format`); both are accepted on input.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterator, Tuple

from ...domain._errors import ConfigurationError, ShapeMismatchError
from .. import convolution, flatten, fully_connected, pooling  # noqa: F401  (registers layer types)
from ..layers._base import Layer, layer_class

NO_ACTIVATION = "none"


def layer_to_stream(layer: Layer) -> Iterator[Any]:
    """
    Yield the ordered value stream of a built layer.

    Raises
    ------
    NotBuiltError
        If the layer is not built.
    """
    input_shape = layer.input_shape
    output_shape = layer.output_shape
    cfg = layer.get_config()
    cfg.pop("input_shape", None)

    yield layer.type_tag
    yield tuple(input_shape)
    yield tuple(output_shape)
    if layer.trainable:
        yield cfg.pop("activation")
        yield bool(cfg.pop("use_bias"))
        yield cfg
        for value in layer.kernel.data.reshape(-1):  # type: ignore[attr-defined]
            yield float(value)
        if layer.use_bias:  # type: ignore[attr-defined]
            for value in layer.bias.data.reshape(-1):  # type: ignore[attr-defined]
                yield float(value)
    else:
        yield NO_ACTIVATION
        yield False
        yield cfg


def _next(tokens: Iterator[Any], what: str) -> Any:
    try:
        return next(tokens)
    except StopIteration as e:
        raise ConfigurationError(f"stream ended before {what}", argument="tokens") from e


def _shape_token(tok: Any, what: str) -> Tuple[int, ...]:
    try:
        parts = tok.split() if isinstance(tok, str) else list(tok)
        return tuple(int(p) for p in parts)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"invalid {what}: {tok!r}", argument=what, value=tok) from e


def _bool_token(tok: Any) -> bool:
    if isinstance(tok, bool):
        return tok
    if isinstance(tok, str) and tok.strip().lower() in ("true", "false"):
        return tok.strip().lower() == "true"
    raise ConfigurationError(f"invalid bias flag: {tok!r}", argument="use_bias", value=tok)


def _config_token(tok: Any) -> Dict[str, Any]:
    if isinstance(tok, dict):
        return dict(tok)
    try:
        cfg = json.loads(tok)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"invalid layer config: {tok!r}", argument="config", value=tok) from e
    if not isinstance(cfg, dict):
        raise ConfigurationError(f"invalid layer config: {tok!r}", argument="config", value=tok)
    return cfg


def _float_token(tok: Any) -> float:
    try:
        return float(tok)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"invalid parameter value: {tok!r}", argument="value", value=tok) from e


def layer_from_stream(tokens: Iterator[Any]) -> Layer:
    """
    Rebuild one layer from the front of `tokens`.

    Exactly the layer's own tokens are consumed, so successive calls on the
    same iterator read successive layers.

    Raises
    ------
    ConfigurationError
        For an unknown type tag, a malformed token or a truncated stream.
    ShapeMismatchError
        If the rebuilt layer's output shape differs from the recorded one.
    """
    tokens = iter(tokens)
    tag = str(_next(tokens, "type tag")).strip()
    cls = layer_class(tag)
    input_shape = _shape_token(_next(tokens, "input shape"), "input_shape")
    output_shape = _shape_token(_next(tokens, "output shape"), "output_shape")
    activation = str(_next(tokens, "activation")).strip()
    use_bias = _bool_token(_next(tokens, "bias flag"))
    cfg = _config_token(_next(tokens, "layer config"))

    cfg["input_shape"] = list(input_shape)
    if cls.trainable:
        cfg["activation"] = activation
        cfg["use_bias"] = use_bias
    layer = cls.from_config(cfg)
    layer.build(input_shape)
    if tuple(layer.output_shape) != output_shape:
        raise ShapeMismatchError(f"{tag} from stream", output_shape, layer.output_shape)

    if layer.trainable:
        for param in layer.parameters():  # type: ignore[attr-defined]
            flat = param.data.reshape(-1)
            for i in range(flat.size):
                flat[i] = _float_token(_next(tokens, f"{tag} parameter values"))
    return layer


__all__ = [
    layer_to_stream.__name__,
    layer_from_stream.__name__,
]
