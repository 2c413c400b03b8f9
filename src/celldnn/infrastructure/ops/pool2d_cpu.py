"""
CPU pooling kernels for celldnn (single example, CHW layout).

Windows start at ``(i * s_h, j * s_w)`` and are clipped to the input by
``min(start + size, extent)``. The output size is
``((H - k_h) // s_h + 1, (W - k_w) // s_w + 1)``.

Every kernel loops over output positions and is vectorized across channels.
Backward kernels overwrite the input-gradient buffer and *accumulate* the
contributions of overlapping windows.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from .conv2d_cpu import _pair


def pool2d_output_hw(
    H: int, W: int, pool_size: Tuple[int, int], stride: Tuple[int, int]
) -> Tuple[int, int]:
    """Output spatial size of a pooling layer."""
    k_h, k_w = pool_size
    s_h, s_w = stride
    return (H - k_h) // s_h + 1, (W - k_w) // s_w + 1


def _bounds(i: int, size: int, step: int, extent: int) -> Tuple[int, int]:
    start = i * step
    return start, min(start + size, extent)


def maxpool2d_forward_cpu(
    x: np.ndarray,
    *,
    pool_size: int | Tuple[int, int],
    stride: int | Tuple[int, int],
    out: np.ndarray,
    argmax_idx: np.ndarray,
) -> None:
    """
    MaxPool2D forward pass.

    Parameters
    ----------
    x : np.ndarray
        Input of shape (C, H, W).
    pool_size, stride : int or tuple[int, int]
        Window size and step.
    out : np.ndarray
        Destination of shape (C, H_out, W_out); overwritten.
    argmax_idx : np.ndarray
        Integer array of shape (C, H_out, W_out); receives the flat index
        ``h * W + w`` of each window's maximum.

    Notes
    -----
    Ties resolve to the first maximum in row-major window order.
    """
    k_h, k_w = _pair(pool_size)
    s_h, s_w = _pair(stride)
    C, H, W = x.shape
    _, H_out, W_out = out.shape
    channels = np.arange(C)

    for i in range(H_out):
        h0, h1 = _bounds(i, k_h, s_h, H)
        for j in range(W_out):
            w0, w1 = _bounds(j, k_w, s_w, W)
            patch = x[:, h0:h1, w0:w1].reshape(C, -1)
            local = np.argmax(patch, axis=1)
            out[:, i, j] = patch[channels, local]
            pw = w1 - w0
            argmax_idx[:, i, j] = (h0 + local // pw) * W + (w0 + local % pw)


def maxpool2d_backward_cpu(
    grad_out: np.ndarray,
    argmax_idx: np.ndarray,
    *,
    grad_x: np.ndarray,
) -> None:
    """
    MaxPool2D backward pass.

    Each window's upstream gradient is routed to the input cell recorded in
    `argmax_idx`. `grad_x` (shape (C, H, W)) is overwritten.
    """
    C = grad_x.shape[0]
    flat = grad_x.reshape(C, -1)
    flat.fill(0.0)
    channels = np.arange(C)
    _, H_out, W_out = grad_out.shape

    for i in range(H_out):
        for j in range(W_out):
            flat[channels, argmax_idx[:, i, j]] += grad_out[:, i, j]


def avgpool2d_forward_cpu(
    x: np.ndarray,
    *,
    pool_size: int | Tuple[int, int],
    stride: int | Tuple[int, int],
    out: np.ndarray,
) -> None:
    """
    AvgPool2D forward pass.

    The mean is taken over the cells actually inside each clipped window.
    """
    k_h, k_w = _pair(pool_size)
    s_h, s_w = _pair(stride)
    _, H, W = x.shape
    _, H_out, W_out = out.shape

    for i in range(H_out):
        h0, h1 = _bounds(i, k_h, s_h, H)
        for j in range(W_out):
            w0, w1 = _bounds(j, k_w, s_w, W)
            out[:, i, j] = x[:, h0:h1, w0:w1].mean(axis=(1, 2))


def avgpool2d_backward_cpu(
    grad_out: np.ndarray,
    *,
    pool_size: int | Tuple[int, int],
    stride: int | Tuple[int, int],
    grad_x: np.ndarray,
) -> None:
    """
    AvgPool2D backward pass.

    Each window spreads ``grad / count`` uniformly over its cells, where
    ``count`` is the clipped window's cell count. `grad_x` is overwritten.
    """
    k_h, k_w = _pair(pool_size)
    s_h, s_w = _pair(stride)
    _, H, W = grad_x.shape
    _, H_out, W_out = grad_out.shape

    grad_x.fill(0.0)
    for i in range(H_out):
        h0, h1 = _bounds(i, k_h, s_h, H)
        for j in range(W_out):
            w0, w1 = _bounds(j, k_w, s_w, W)
            count = float((h1 - h0) * (w1 - w0))
            grad_x[:, h0:h1, w0:w1] += (grad_out[:, i, j] / count)[:, None, None]
