# aad_graph/__init__.py
# Reverse-mode automatic differentiation over a dynamically built expression graph

from .core.graph import ExpressionGraph
from .core.expr import Expr
from .core.node import Node
from .core.tape import Tape
from .core.config import NodeConfig
from .core.errors import GraphError, NodeNotFoundError, PreconditionError, ShapeError
from .core.seeds import grad, grads, value

# Operators
from . import ops
from .ops import (
    add, sub, mul, div, neg, dot,
    exp, log, sqrt, tanh,
    relu, sigmoid, erf, softmax, cross_entropy,
    mean,
)

from . import inits
from .optimizers import Sgd, Adagrad

__all__ = [
    # Core
    'ExpressionGraph',
    'Expr',
    'Node',
    'Tape',
    'NodeConfig',
    # Errors
    'GraphError',
    'NodeNotFoundError',
    'PreconditionError',
    'ShapeError',
    # Helpers
    'grad',
    'grads',
    'value',
    # Operators (ops.sum is reachable as aad_graph.ops.sum)
    'ops',
    'add', 'sub', 'mul', 'div', 'neg', 'dot',
    'exp', 'log', 'sqrt', 'tanh',
    'relu', 'sigmoid', 'erf', 'softmax', 'cross_entropy',
    'mean',
    # Training
    'inits',
    'Sgd',
    'Adagrad',
]
