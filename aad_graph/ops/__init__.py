# aad_graph/ops/__init__.py

# Convenience re-exports so users can do: from aad_graph.ops import mul, exp, ...
from .arithmetic import add, sub, mul, div, neg, dot
from .transcendental import exp, log, sqrt, tanh
from .special import relu, sigmoid, erf, softmax, cross_entropy
from .reduce import sum, mean

__all__ = [
    "add", "sub", "mul", "div", "neg", "dot",
    "exp", "log", "sqrt", "tanh",
    "relu", "sigmoid", "erf", "softmax", "cross_entropy",
    "sum", "mean",
]
