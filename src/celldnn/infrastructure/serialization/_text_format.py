"""
Line-oriented text persistence for `Sequential` models.

File layout
-----------
    celldnn.text.v1
    <number of layers>
    <layer 0 stream, one token per line>
    <layer 1 stream, one token per line>
    ...

Token encodings: strings as-is, the layer config as compact JSON, shapes as
space-separated integers, the bias flag as ``true``/``false`` and parameter
values with ``repr(float)`` so they round-trip exactly.

The loaded model is not compiled; call `compile(optimizer, loss)` on it. Its
layers are already built, so compilation keeps the loaded parameters.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterator, List

from ...domain._errors import ConfigurationError
from ..models._sequential import Sequential
from ._stream import layer_from_stream, layer_to_stream

FORMAT = "celldnn.text.v1"


def _encode(token: Any) -> str:
    if isinstance(token, bool):
        return "true" if token else "false"
    if isinstance(token, float):
        return repr(token)
    if isinstance(token, dict):
        return json.dumps(token, sort_keys=True, separators=(",", ":"))
    if isinstance(token, (tuple, list)):
        return " ".join(str(int(d)) for d in token)
    return str(token)


def model_to_lines(model: Sequential) -> List[str]:
    lines = [FORMAT, str(len(model))]
    for layer in model.layers:
        lines.extend(_encode(tok) for tok in layer_to_stream(layer))
    return lines


def model_from_lines(lines: Iterator[str]) -> Sequential:
    lines = iter(lines)
    header = next(lines, None)
    if header is None or header.strip() != FORMAT:
        raise ConfigurationError(f"Unsupported model format: {header!r}", argument="path")
    count_line = next(lines, None)
    try:
        count = int(count_line)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"invalid layer count: {count_line!r}", argument="path") from e
    return Sequential([layer_from_stream(lines) for _ in range(count)])


def save_text(model: Sequential, path: str | Path) -> None:
    """
    Write a model's layers to `path`, one token per line.

    Raises
    ------
    NotBuiltError
        If any layer is not built.
    """
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text("\n".join(model_to_lines(model)) + "\n", encoding="utf-8")


def load_text(path: str | Path) -> Sequential:
    """
    Read a model written by `save_text`.

    Returns
    -------
    Sequential
        Uncompiled model made of built layers.
    """
    p = Path(path)
    with p.open("r", encoding="utf-8") as fh:
        return model_from_lines(line.rstrip("\n") for line in fh)
