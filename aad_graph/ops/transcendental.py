# aad_graph/ops/transcendental.py
import numpy as np
from .arithmetic import ElementwiseNode, _graph_of


def _unary(x, f, df, tag, name=None):
    """Record f(x); `df(x_val, out_val)` is the local partial."""
    g = _graph_of(x)
    return g.push_node(ElementwiseNode((x.node,), f, (df,), tag, name=name))


def exp(x, name=None):
    return _unary(x, np.exp, lambda a, o: o, "exp", name)


def log(x, name=None):
    return _unary(x, np.log, lambda a, o: 1.0 / a, "log", name)


def sqrt(x, name=None):
    return _unary(x, np.sqrt, lambda a, o: 0.5 / o, "sqrt", name)


def tanh(x, name=None):
    return _unary(x, np.tanh, lambda a, o: 1.0 - o * o, "tanh", name)
