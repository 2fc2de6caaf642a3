# aad_graph/core/__init__.py

"""
Core public API for the expression graph.

Exports:
    ExpressionGraph   : Owns the tape and registries; drives forward/backward.
    Expr              : Handle pairing a node with its graph.
    Node              : Base class every node kind implements.
    Tape              : Append-only, creation-ordered node record.
    NodeConfig        : Construction options for leaf nodes.
    InputNode, ParamNode, ConstantNode : Leaf node kinds.
    GraphError, NodeNotFoundError, PreconditionError, ShapeError : Errors.
    grad, grads, value : One-shot gradient helpers.
"""

from .config import NodeConfig
from .errors import GraphError, NodeNotFoundError, PreconditionError, ShapeError
from .node import Node
from .tape import Tape
from .expr import Expr
from .leaves import InputNode, ParamNode, ConstantNode
from .graph import ExpressionGraph
from .seeds import grad, grads, value

__all__ = [
    "ExpressionGraph", "Expr", "Node", "Tape", "NodeConfig",
    "InputNode", "ParamNode", "ConstantNode",
    "GraphError", "NodeNotFoundError", "PreconditionError", "ShapeError",
    "grad", "grads", "value",
]
