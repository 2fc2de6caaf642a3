# aad_graph/inits.py
"""
Value initializers for param and constant nodes.

Every initializer is a callable ``(shape, rng) -> np.ndarray`` where `rng`
is a ``numpy.random.Generator``. Factories below build such callables;
``get`` resolves the names accepted by ``NodeConfig.init``.
"""
from __future__ import annotations
from typing import Callable, Tuple
import numpy as np

Initializer = Callable[[Tuple[int, ...], np.random.Generator], np.ndarray]


def zeros(shape, rng=None):
    return np.zeros(shape, dtype=float)


def ones(shape, rng=None):
    return np.ones(shape, dtype=float)


def from_value(v: float) -> Initializer:
    def _init(shape, rng=None):
        return np.full(shape, v, dtype=float)
    return _init


def from_array(a) -> Initializer:
    a = np.asarray(a, dtype=float)

    def _init(shape, rng=None):
        if a.shape != tuple(shape):
            raise ValueError(f"array of shape {a.shape} cannot initialize shape {tuple(shape)}")
        return a.copy()
    return _init


def uniform(low: float = -0.1, high: float = 0.1) -> Initializer:
    def _init(shape, rng):
        return rng.uniform(low, high, size=shape)
    return _init


def normal(mean: float = 0.0, std: float = 0.1) -> Initializer:
    def _init(shape, rng):
        return rng.normal(mean, std, size=shape)
    return _init


def glorot_uniform(shape, rng):
    """
    Glorot/Xavier uniform: U(-s, s) with s = sqrt(6 / (fan_in + fan_out)).
    Vectors and scalars use their element count for both fans.
    """
    shape = tuple(shape)
    if len(shape) >= 2:
        fan_in, fan_out = shape[-2], shape[-1]
    else:
        fan_in = fan_out = max(int(np.prod(shape)), 1)
    scale = np.sqrt(6.0 / (fan_in + fan_out))
    return rng.uniform(-scale, scale, size=shape)


_REGISTRY = {
    "zeros": zeros,
    "ones": ones,
    "uniform": uniform(),
    "normal": normal(),
    "glorot_uniform": glorot_uniform,
}


def get(init) -> Initializer:
    """Resolve an initializer name or pass a callable through."""
    if callable(init):
        return init
    try:
        return _REGISTRY[init]
    except KeyError:
        raise ValueError(
            f"unknown initializer {init!r}; expected one of {sorted(_REGISTRY)} or a callable"
        ) from None
