# aad_graph/ops/special.py
import numpy as np
from scipy.special import erf as scipy_erf, expit, logsumexp, softmax as scipy_softmax

from ..core.errors import ShapeError
from ..core.node import Node
from .arithmetic import _as_expr, _graph_of
from .transcendental import _unary

TWO_OVER_SQRT_PI = 2.0 / np.sqrt(np.pi)


def relu(x, name=None):
    return _unary(x, lambda a: np.maximum(a, 0.0), lambda a, o: (a > 0).astype(float), "relu", name)


def sigmoid(x, name=None):
    """Logistic function 1 / (1 + e^-x); derivative y * (1 - y)."""
    return _unary(x, expit, lambda a, o: o * (1.0 - o), "sigmoid", name)


def erf(x, name=None):
    """
    Error function: erf(x) = (2/√π) ∫₀ˣ e^(-t²) dt

    Derivative: d/dx erf(x) = (2/√π) * e^(-x²)
    """
    return _unary(x, scipy_erf, lambda a, o: TWO_OVER_SQRT_PI * np.exp(-a * a), "erf", name)


class SoftmaxNode(Node):
    """Softmax over the last axis."""

    op_tag = "softmax"
    fillcolor = "yellow"

    def __init__(self, a, *, name=None):
        super().__init__((a,), name=name)

    def infer_shape(self, batch_size):
        shape = self.children[0].val.shape
        if len(shape) == 0:
            raise ShapeError("softmax needs at least one axis")
        return shape

    def forward(self):
        self._val[...] = scipy_softmax(self.children[0].val, axis=-1)

    def backward(self):
        y, g = self._val, self.adj
        self.children[0].accumulate(y * (g - np.sum(g * y, axis=-1, keepdims=True)))


class CrossEntropyNode(Node):
    """
    Row-wise cross-entropy between softmax(logits) and a target distribution:

        ce = logsumexp(z) * sum(t) - sum(t * z)

    Output drops the last axis of the operands.
    """

    op_tag = "cross_entropy"
    fillcolor = "yellow"

    def __init__(self, logits, target, *, name=None):
        super().__init__((logits, target), name=name)

    def infer_shape(self, batch_size):
        z, t = self.children[0].val.shape, self.children[1].val.shape
        if len(z) == 0 or z != t:
            raise ShapeError(f"cross_entropy needs equally shaped logits and target, got {z} and {t}")
        return z[:-1]

    def forward(self):
        z, t = self.children[0].val, self.children[1].val
        self._val[...] = logsumexp(z, axis=-1) * np.sum(t, axis=-1) - np.sum(t * z, axis=-1)

    def backward(self):
        logits, target = self.children
        z, t = logits.val, target.val
        g = self.adj[..., np.newaxis]
        lse = logsumexp(z, axis=-1, keepdims=True)
        logits.accumulate(g * (scipy_softmax(z, axis=-1) * np.sum(t, axis=-1, keepdims=True) - t))
        target.accumulate(g * (lse - z))


def softmax(x, name=None):
    return _graph_of(x).push_node(SoftmaxNode(x.node, name=name))


def cross_entropy(logits, target, name=None):
    g = _graph_of(logits, target)
    logits = _as_expr(logits, g)
    target = _as_expr(target, g)
    return g.push_node(CrossEntropyNode(logits.node, target.node, name=name))
