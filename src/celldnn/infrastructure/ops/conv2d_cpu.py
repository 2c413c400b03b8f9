"""
CPU Conv2D kernels for celldnn.

Valid-mode (no padding), strided 2D cross-correlation over a single example
in CHW layout, with the matching backward pass. Both directions are
vectorized over the kernel offsets ``(u, v)``: each offset contributes one
strided view of the input, contracted against the kernel slice with
``np.tensordot``.

Tensor layout
-------------
- x      : (C, H, W)
- kernel : (F, C, K_h, K_w)
- bias   : (F,)
- y      : (F, H_out, W_out) with

  - H_out = (H - K_h) // s_h + 1
  - W_out = (W - K_w) // s_w + 1

All kernels write into caller-owned output arrays; nothing is returned.
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np


def _pair(v: int | Tuple[int, int]) -> Tuple[int, int]:
    """
    Normalize an integer or pair into a 2-tuple.

    Parameters
    ----------
    v : int or tuple[int, int]
        A scalar value or a 2D pair.

    Returns
    -------
    tuple[int, int]
        A normalized (height, width) pair.
    """
    if isinstance(v, (tuple, list)):
        return int(v[0]), int(v[1])
    return int(v), int(v)


def conv2d_output_hw(
    H: int, W: int, kernel_size: Tuple[int, int], stride: Tuple[int, int]
) -> Tuple[int, int]:
    """Output spatial size of a valid-mode strided correlation."""
    k_h, k_w = kernel_size
    s_h, s_w = stride
    return (H - k_h) // s_h + 1, (W - k_w) // s_w + 1


def _window(
    x: np.ndarray, u: int, v: int, H_out: int, W_out: int, s_h: int, s_w: int
) -> np.ndarray:
    """Strided view ``x[:, i*s_h + u, j*s_w + v]`` over every output (i, j)."""
    return x[:, u : u + s_h * (H_out - 1) + 1 : s_h, v : v + s_w * (W_out - 1) + 1 : s_w]


def conv2d_forward_cpu(
    x: np.ndarray,
    kernel: np.ndarray,
    bias: Optional[np.ndarray],
    stride: int | Tuple[int, int],
    out: np.ndarray,
) -> None:
    """
    Compute ``out[f] = sum_c corr(x[c], kernel[f, c]) + bias[f]``.

    Parameters
    ----------
    x : np.ndarray
        Input of shape (C, H, W).
    kernel : np.ndarray
        Filters of shape (F, C, K_h, K_w).
    bias : Optional[np.ndarray]
        Per-filter bias of shape (F,), or None.
    stride : int or tuple[int, int]
        Vertical and horizontal step between windows.
    out : np.ndarray
        Destination of shape (F, H_out, W_out); overwritten.
    """
    s_h, s_w = _pair(stride)
    _, _, K_h, K_w = kernel.shape
    _, H_out, W_out = out.shape

    out.fill(0.0)
    for u in range(K_h):
        for v in range(K_w):
            xs = _window(x, u, v, H_out, W_out, s_h, s_w)
            out += np.tensordot(kernel[:, :, u, v], xs, axes=(1, 0))

    if bias is not None:
        out += bias[:, None, None]


def conv2d_backward_cpu(
    x: np.ndarray,
    kernel: np.ndarray,
    grad_out: np.ndarray,
    stride: int | Tuple[int, int],
    *,
    grad_x: np.ndarray,
    grad_kernel: np.ndarray,
    grad_bias: Optional[np.ndarray],
) -> None:
    """
    Back-propagate through a valid-mode strided correlation.

    Parameters
    ----------
    x : np.ndarray
        Input cached by the forward pass, shape (C, H, W).
    kernel : np.ndarray
        Filters, shape (F, C, K_h, K_w).
    grad_out : np.ndarray
        Gradient w.r.t. the pre-activation output, shape (F, H_out, W_out).
    stride : int or tuple[int, int]
        Same stride used in the forward pass.
    grad_x : np.ndarray
        Destination for the input gradient, shape (C, H, W); overwritten.
    grad_kernel : np.ndarray
        Kernel gradient accumulator, shape (F, C, K_h, K_w); added into.
    grad_bias : Optional[np.ndarray]
        Bias gradient accumulator, shape (F,); added into when not None.

    Notes
    -----
    The input gradient is the full correlation of `grad_out` with the
    flipped kernel, expressed here as a scatter:
    ``grad_x[c, i*s_h + u, j*s_w + v] += grad_out[f, i, j] * kernel[f, c, u, v]``.
    Rows and columns never touched by a window receive zero.
    """
    s_h, s_w = _pair(stride)
    _, _, K_h, K_w = kernel.shape
    _, H_out, W_out = grad_out.shape

    grad_x.fill(0.0)
    for u in range(K_h):
        for v in range(K_w):
            xs = _window(x, u, v, H_out, W_out, s_h, s_w)
            grad_kernel[:, :, u, v] += np.tensordot(grad_out, xs, axes=([1, 2], [1, 2]))
            gx = _window(grad_x, u, v, H_out, W_out, s_h, s_w)
            gx += np.tensordot(kernel[:, :, u, v], grad_out, axes=(0, 0))

    if grad_bias is not None:
        grad_bias += grad_out.sum(axis=(1, 2))
