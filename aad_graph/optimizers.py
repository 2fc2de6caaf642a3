# aad_graph/optimizers.py
"""
Gradient-based updates over a graph's parameter registry.

Both optimizers walk ``graph.params()`` in creation order after a backward
pass and update the parameter values in place. Per-parameter state (Adagrad)
is kept by position, so a graph rebuilt for every batch must create its
params in the same order.
"""
from __future__ import annotations
from typing import List
import numpy as np

from .core.graph import ExpressionGraph


class Sgd:
    """Plain gradient descent: p -= eta * dp."""

    def __init__(self, eta: float = 0.01):
        if eta <= 0:
            raise ValueError(f"learning rate must be positive, got {eta}")
        self.eta = eta

    def update(self, graph: ExpressionGraph) -> None:
        for p in graph.params():
            p.node.val[...] -= self.eta * p.grad
        graph.invalidate()


class Adagrad:
    """
    Adagrad: per-element learning rates from accumulated squared gradients,
        G += dp^2 ;  p -= eta * dp / (sqrt(G) + eps)
    """

    def __init__(self, eta: float = 0.01, eps: float = 1e-8):
        if eta <= 0:
            raise ValueError(f"learning rate must be positive, got {eta}")
        self.eta = eta
        self.eps = eps
        self.history: List[np.ndarray] = []

    def update(self, graph: ExpressionGraph) -> None:
        params = graph.params()
        if not self.history:
            self.history = [np.zeros_like(p.val) for p in params]
        if len(self.history) != len(params):
            raise ValueError(f"optimizer tracks {len(self.history)} params, graph has {len(params)}")
        for G, p in zip(self.history, params):
            if G.shape != p.val.shape:
                raise ValueError(f"{p.debug()} changed shape since the first update")
            g = p.grad
            G += g * g
            p.node.val[...] -= self.eta * g / (np.sqrt(G) + self.eps)
        graph.invalidate()
