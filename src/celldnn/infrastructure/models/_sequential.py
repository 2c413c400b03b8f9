"""
Sequential model container.

`Sequential` chains layers so that

    y = L_n(...L_2(L_1(x)))

and owns the training configuration (loss and optimizer). Its lifecycle is:

1. Construct with layers (or `add` them one by one). The first layer must
   declare its `input_shape`.
2. `compile(optimizer, loss, ...)` builds every layer from its predecessor's
   output shape, assigns ascending layer ids, initializes parameters from a
   seedable generator and initializes the optimizer state.
3. `train`, `forward`, `forward_batch`, `evaluate` and friends.

Any compute call before `compile` raises `NotBuiltError`.

Notes
-----
- `forward` returns the last layer's output buffer (see the buffer ownership
  contract in `domain._layer`). `forward_batch` returns independent copies.
- Layers that are already built when `compile` runs keep their parameters;
  this is how persisted models are reassembled.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from ...domain._errors import (
    ConfigurationError,
    IndexOutOfRangeError,
    NotBuiltError,
    ShapeMismatchError,
)
from ...domain._layer import ILayer, as_trainable
from ...domain._loss import ILoss
from ...domain._optimizers import IOptimizer
from .._losses import get_loss
from ..optimizers._registry import get_optimizer
from ..tensor._conversion import as_tensor, as_tensor_list
from ..tensor._tensor import Tensor
from ..utils.weight_initializer import WeightInitializer
from . import _parallel, _trainer
from ._history import History

logger = logging.getLogger(__name__)


class Sequential:
    """
    Sequential container model.

    Parameters
    ----------
    layers : Sequence[ILayer], optional
        Initial layers, applied in order.
    name : str, optional
        Display name.
    """

    def __init__(self, layers: Optional[Sequence[ILayer]] = None, name: Optional[str] = None) -> None:
        self.name = name or "sequential"
        self._layers: List[Any] = []
        self._loss: Optional[ILoss] = None
        self._optimizer: Optional[IOptimizer] = None
        self._compiled = False
        self._last_output: Optional[Tensor] = None
        for layer in layers or ():
            self.add(layer)

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------
    def add(self, layer: ILayer) -> None:
        """
        Append a layer.

        Raises
        ------
        ConfigurationError
            If the model is already compiled or `layer` is not a layer.
        """
        if self._compiled:
            raise ConfigurationError(f"{self.name} is compiled; cannot add layers", argument="layer")
        if layer is None or not all(
            hasattr(type(layer), attr) for attr in ("build", "forward", "backward")
        ):
            raise ConfigurationError(
                f"expected a layer, got {type(layer).__name__}", argument="layer", value=layer
            )
        self._layers.append(layer)

    @property
    def layers(self) -> Tuple[Any, ...]:
        return tuple(self._layers)

    def layer(self, index: int) -> Any:
        """Return the layer at `index` (0-based)."""
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self._layers):
            raise IndexOutOfRangeError(
                (index,), (len(self._layers),), "layer index outside the model"
            )
        return self._layers[index]

    def kernel(self, index: int) -> Tensor:
        """
        Return the kernel of layer `index`.

        Raises
        ------
        UnsupportedOperationError
            If that layer has no kernel (e.g. pooling, flatten).
        """
        return as_trainable(self.layer(index)).kernel  # type: ignore[return-value]

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._layers)

    def __getitem__(self, index: int) -> Any:
        return self.layer(index)

    @property
    def is_compiled(self) -> bool:
        return self._compiled

    def _require_compiled(self, op: str) -> None:
        if not self._compiled:
            raise NotBuiltError(self.name, op)

    @property
    def loss(self) -> ILoss:
        self._require_compiled("loss")
        return self._loss  # type: ignore[return-value]

    @property
    def optimizer(self) -> IOptimizer:
        self._require_compiled("optimizer")
        return self._optimizer  # type: ignore[return-value]

    @property
    def input_shape(self) -> Tuple[int, ...]:
        self._require_compiled("input_shape")
        return self._layers[0].input_shape

    @property
    def output_shape(self) -> Tuple[int, ...]:
        self._require_compiled("output_shape")
        return self._layers[-1].output_shape

    def _trainables(self) -> List[Any]:
        return [layer for layer in self._layers if layer.trainable]

    # ------------------------------------------------------------------
    # Compilation
    # ------------------------------------------------------------------
    def compile(
        self,
        optimizer: Union[str, IOptimizer, None] = "gd",
        loss: Union[str, ILoss, None] = "mse",
        *,
        kernel_init: Union[str, WeightInitializer] = "xavier_uniform",
        bias_init: Union[str, WeightInitializer] = "zeros",
        seed: Optional[int] = None,
    ) -> None:
        """
        Build the layer chain and attach the optimizer and loss.

        Parameters
        ----------
        optimizer : str or IOptimizer, optional
            Optimizer instance or name (``"gd"``, ``"sgd"``, ``"adam"``, ...).
            Defaults to ``"gd"``.
        loss : str or ILoss, optional
            Loss instance or name. Defaults to ``"mse"``.
        kernel_init, bias_init : str or WeightInitializer, optional
            Initializers for unbuilt trainable layers. Default to
            ``"xavier_uniform"`` and ``"zeros"``.
        seed : int, optional
            Seed of the generator used for parameter initialization.

        Raises
        ------
        ConfigurationError
            If the model has no layers, is already compiled, the first layer
            has no input shape, or an argument is invalid.
        ShapeMismatchError
            If an already-built layer does not accept its predecessor's output.
        """
        if self._compiled:
            raise ConfigurationError(f"{self.name} is already compiled")
        if not self._layers:
            raise ConfigurationError(f"{self.name} has no layers", argument="layers")

        resolved_optimizer = get_optimizer(optimizer)
        resolved_loss = get_loss(loss)
        k_init = kernel_init if isinstance(kernel_init, WeightInitializer) else WeightInitializer(kernel_init)
        b_init = bias_init if isinstance(bias_init, WeightInitializer) else WeightInitializer(bias_init)
        rng = np.random.default_rng(seed)

        shape: Optional[Tuple[int, ...]] = None
        for layer_id, layer in enumerate(self._layers):
            if hasattr(layer, "_assign_id"):
                layer._assign_id(layer_id)
            if layer.is_built:
                if shape is not None and tuple(layer.input_shape) != shape:
                    raise ShapeMismatchError(
                        f"{self.name}.compile (layer {layer_id})", shape, layer.input_shape
                    )
            else:
                layer.build(shape)
                if layer.trainable:
                    layer.initialize(k_init, b_init, rng)
            shape = tuple(layer.output_shape)

        resolved_optimizer.initialize(self._layers)
        self._optimizer = resolved_optimizer
        self._loss = resolved_loss
        self._compiled = True
        logger.debug(
            "compiled %s: %d layer(s), %d parameter(s), optimizer=%r, loss=%r",
            self.name,
            len(self._layers),
            self.num_parameters(),
            resolved_optimizer,
            resolved_loss,
        )

    # ------------------------------------------------------------------
    # Compute
    # ------------------------------------------------------------------
    def forward(self, x: Any) -> Tensor:
        """
        Propagate one example through every layer.

        Returns
        -------
        Tensor
            The last layer's output buffer (overwritten by the next call).
        """
        self._require_compiled("forward")
        out = as_tensor(x)
        for layer in self._layers:
            out = layer.forward(out)
        self._last_output = out
        return out

    def __call__(self, x: Any) -> Tensor:
        return self.forward(x)

    def backward(self, grad: Any) -> Tensor:
        """
        Back-propagate a loss gradient through every layer, last to first.

        Returns
        -------
        Tensor
            The first layer's gradient w.r.t. the model input.
        """
        self._require_compiled("backward")
        g = as_tensor(grad)
        for layer in reversed(self._layers):
            g = layer.backward(g)
        return g

    def zero_grad(self) -> None:
        for layer in self._trainables():
            layer.zero_grad()

    def set_training(self, flag: bool) -> None:
        for layer in self._layers:
            layer.set_training(flag)

    def train(
        self,
        xs: Sequence[Any],
        ys: Sequence[Any],
        epochs: int,
        batch_size: int = 1,
        *,
        history: bool = False,
        verbose: int = 0,
    ) -> History:
        """
        Fit the model to `(xs, ys)`.

        See `_trainer.train` for the exact per-batch procedure.

        Raises
        ------
        ConfigurationError
            On mismatched lengths, ``epochs < 1`` or ``batch_size < 1``.
        """
        self._require_compiled("train")
        return _trainer.train(
            self,
            as_tensor_list(xs, "xs"),
            as_tensor_list(ys, "ys"),
            epochs,
            batch_size,
            history=history,
            verbose=verbose,
        )

    def evaluate(self, xs: Sequence[Any], ys: Sequence[Any]) -> float:
        """Mean loss over the examples."""
        self._require_compiled("evaluate")
        xs_t = as_tensor_list(xs, "xs")
        ys_t = as_tensor_list(ys, "ys")
        if len(xs_t) != len(ys_t) or not xs_t:
            raise ConfigurationError(
                f"xs and ys must be non-empty and of equal length, got {len(xs_t)} and {len(ys_t)}",
                argument="ys",
            )
        total = 0.0
        for x, y in zip(xs_t, ys_t):
            total += self._loss.forward(self.forward(x), y)  # type: ignore[union-attr]
        return total / len(xs_t)

    def forward_batch(self, xs: Sequence[Any], workers: Optional[int] = None) -> List[Tensor]:
        """
        Parallel read-only inference over many examples.

        Parameters
        ----------
        xs : Sequence
            Inputs.
        workers : int, optional
            Thread count; defaults to ``os.cpu_count()`` and is capped at
            ``len(xs)``.

        Returns
        -------
        list[Tensor]
            Independent outputs in input order, identical to calling
            `forward` on each input sequentially.
        """
        self._require_compiled("forward_batch")
        return _parallel.forward_batch(self._layers, as_tensor_list(xs, "xs"), workers)

    def predict(self, xs: Sequence[Any], workers: Optional[int] = None) -> List[Tensor]:
        return self.forward_batch(xs, workers)

    # ------------------------------------------------------------------
    # Output access
    # ------------------------------------------------------------------
    def _last(self) -> Tensor:
        self._require_compiled("output")
        return self._layers[-1].output

    def output_array(self) -> List[float]:
        """Copy of the last output as a flat row-major list."""
        return self._last().to_array()

    def copy_output_into(self, buffer: Tensor) -> Tensor:
        """
        Copy the last output into a caller-owned tensor.

        Raises
        ------
        ShapeMismatchError
            If `buffer` does not have the output shape.
        """
        return buffer.copy_from(self._last())

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------
    def parameters(self) -> List[Tensor]:
        self._require_compiled("parameters")
        return [p for layer in self._trainables() for p in layer.parameters()]

    def gradients(self) -> List[Tensor]:
        self._require_compiled("gradients")
        return [g for layer in self._trainables() for g in layer.gradients()]

    def num_parameters(self) -> int:
        return sum(layer.num_parameters() for layer in self._layers)

    def clone(self) -> "Sequential":
        """
        Deep copy of the model.

        The copy has independent layers and a copy of the optimizer whose
        auxiliary state is re-initialized for the new layers.
        """
        other = Sequential([layer.clone() for layer in self._layers], name=self.name)
        if self._compiled:
            optimizer = copy.deepcopy(self._optimizer)
            other.compile(optimizer, self._loss)
        return other

    def __repr__(self) -> str:
        lines = [f"Sequential(name={self.name!r}, compiled={self._compiled})"]
        for layer in self._layers:
            lines.append(f"  {layer!r}")
        return "\n".join(lines)
