"""
Weight initializer registry and dispatch utilities.

This module defines the concrete `WeightInitializer` used by the
infrastructure layer to apply registered weight initialization strategies
(e.g. He, Xavier) to `Tensor` instances.

Design
------
- Initializers are registered by string name via a decorator-based registry.
- Each initializer is a callable ``(tensor, rng) -> tensor`` that mutates the
  tensor *in-place* and returns it. ``rng`` is a ``numpy.random.Generator``;
  layers receive it from `Sequential.compile(seed=...)` so initialization is
  reproducible.
- The dispatcher resolves an initializer by name at construction time and
  invokes it via `__call__`.

Usage example
-------------
Registering an initializer:

    @WeightInitializer.register_initializer("he")
    def he(tensor: Tensor, rng: np.random.Generator) -> Tensor:
        ...

Applying an initializer:

    init = WeightInitializer("he")
    init(kernel, np.random.default_rng(0))
"""

from __future__ import annotations

from typing import Callable, ClassVar, Dict, Optional, TypeVar

import numpy as np

from ....domain._errors import ConfigurationError
from ....domain.utils._weight_initialization import _WeightInitializer
from ...tensor._tensor import Tensor

T = TypeVar("T", bound=Callable[..., Tensor])


class WeightInitializer(_WeightInitializer):
    """
    Registry-backed weight initializer dispatcher.

    Notes
    -----
    - Initializers are stored by string name in a class-level registry.
    - An unknown name raises `ConfigurationError` listing the registered
      names.
    """

    INITIALIZERS: ClassVar[Dict[str, Callable[..., Tensor]]] = {}

    def __init__(self, initializer_name: str) -> None:
        try:
            self._initializer: Callable[..., Tensor] = self.INITIALIZERS[
                initializer_name
            ]
        except (KeyError, TypeError) as e:
            available = ", ".join(sorted(self.INITIALIZERS)) or "<none>"
            raise ConfigurationError(
                f"Unsupported initializer name: {initializer_name!r}. "
                f"Available: {available}",
                argument="initializer",
                value=initializer_name,
            ) from e
        self._name = initializer_name

    @property
    def name(self) -> str:
        return self._name

    @classmethod
    def register_initializer(
        cls, name: str, *, overwrite: bool = False
    ) -> Callable[[T], T]:
        """
        Decorator to register a weight initializer under `name`.

        Parameters
        ----------
        name:
            Registry key used to retrieve the initializer later.
        overwrite:
            If False (default), raises if `name` is already registered.
        """
        if not isinstance(name, str) or not name:
            raise ConfigurationError("Initializer name must be a non-empty string")

        def decorator(func: T) -> T:
            if not overwrite and name in cls.INITIALIZERS:
                raise ConfigurationError(f"Initializer already registered: {name!r}")
            cls.INITIALIZERS[name] = func
            return func

        return decorator

    @classmethod
    def available(cls) -> tuple[str, ...]:
        """Return registered initializer names (sorted)."""
        return tuple(sorted(cls.INITIALIZERS))

    def __call__(
        self, tensor: Tensor, rng: Optional[np.random.Generator] = None
    ) -> Tensor:
        if rng is None:
            rng = np.random.default_rng()
        return self._initializer(tensor, rng)


__all__ = [
    WeightInitializer.__name__,
]
