# aad_graph/core/config.py
from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional, Tuple, Union
import numpy as np


@dataclass(frozen=True)
class NodeConfig:
    """
    Construction options shared by the leaf node kinds.

    Attributes
    ----------
    shape : tuple of (int | None), optional
        Node shape. A ``None`` entry is the batch dimension and is resolved
        from the execution size when the node is allocated.
    name : str, optional
        When set, the factory registers the new handle under this name.
    value : float, optional
        Fill value for constants (and an alternative initializer for params).
    data : array-like, optional
        Explicit contents. Takes precedence over ``value`` and ``init``.
    init : str | callable, optional
        Initializer name (see ``aad_graph.inits``) or a callable
        ``(shape, rng) -> ndarray``.
    dtype : numpy dtype
        Element type of value and adjoint (float64 by default).
    seed : int, optional
        Seed of the ``numpy.random.Generator`` handed to the initializer.
    """
    shape: Optional[Tuple[Optional[int], ...]] = None
    name: Optional[str] = None
    value: Optional[float] = None
    data: Any = None
    init: Union[str, Callable, None] = None
    dtype: Any = np.float64
    seed: Optional[int] = None

    def __post_init__(self):
        if self.shape is not None:
            if isinstance(self.shape, int):
                shape = (self.shape,)
            else:
                shape = tuple(self.shape)
            for d in shape:
                if d is not None and (not isinstance(d, (int, np.integer)) or d < 0):
                    raise ValueError(f"shape entries must be non-negative ints or None, got {self.shape!r}")
            object.__setattr__(self, "shape", tuple(None if d is None else int(d) for d in shape))
        if self.name is not None and not isinstance(self.name, str):
            raise TypeError(f"name must be a string, got {type(self.name)}")


def make_config(config: Optional[NodeConfig] = None, **options) -> NodeConfig:
    """Merge keyword overrides into `config` (or into the defaults)."""
    if config is None:
        return NodeConfig(**options)
    if not isinstance(config, NodeConfig):
        raise TypeError(f"config must be a NodeConfig, got {type(config)}")
    return replace(config, **options) if options else config
