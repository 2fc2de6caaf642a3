# aad_graph/core/expr.py
from __future__ import annotations
from typing import TYPE_CHECKING
import numpy as np

from .node import Node

if TYPE_CHECKING:
    from .graph import ExpressionGraph


class Expr:
    """
    Handle pairing one node with the graph that owns it.

    Handles are views: the tape owns the node, any number of handles may refer
    to it, and assigning a value through a handle writes into the node.

    Attributes
    ----------
    graph : ExpressionGraph
        Owning graph.
    node : Node
        Referenced node.
    val : np.ndarray
        Current value; raises PreconditionError before the forward pass.
        Assignable, e.g. to feed an input between executions.
    grad : np.ndarray
        Current adjoint; raises PreconditionError before the backward pass.
    """

    __slots__ = ("_graph", "_node")
    __array_ufunc__ = None  # ndarray <op> Expr falls through to the reflected Expr method

    def __init__(self, graph: "ExpressionGraph", node: Node):
        self._graph = graph
        self._node = node

    @property
    def graph(self) -> "ExpressionGraph":
        return self._graph

    @property
    def node(self) -> Node:
        return self._node

    @property
    def val(self) -> np.ndarray:
        return self._node.val

    @val.setter
    def val(self, t) -> None:
        self._node.set_val(t)
        self._graph.invalidate()

    def set_val(self, t) -> "Expr":
        self._node.set_val(t)
        self._graph.invalidate()
        return self

    @property
    def grad(self) -> np.ndarray:
        return self._node.adj

    @property
    def shape(self):
        return self._node.shape

    def debug(self) -> str:
        return self._node.debug()

    def __repr__(self):
        return f"Expr({self._node.debug()})"

    # Operator overloading for graph operations
    def __add__(self, other):
        from ..ops.arithmetic import add
        return add(self, other)

    def __radd__(self, other):
        from ..ops.arithmetic import add
        return add(other, self)

    def __sub__(self, other):
        from ..ops.arithmetic import sub
        return sub(self, other)

    def __rsub__(self, other):
        from ..ops.arithmetic import sub
        return sub(other, self)

    def __mul__(self, other):
        from ..ops.arithmetic import mul
        return mul(self, other)

    def __rmul__(self, other):
        from ..ops.arithmetic import mul
        return mul(other, self)

    def __truediv__(self, other):
        from ..ops.arithmetic import div
        return div(self, other)

    def __rtruediv__(self, other):
        from ..ops.arithmetic import div
        return div(other, self)

    def __neg__(self):
        from ..ops.arithmetic import neg
        return neg(self)

    def __matmul__(self, other):
        from ..ops.arithmetic import dot
        return dot(self, other)

    def __rmatmul__(self, other):
        from ..ops.arithmetic import dot
        return dot(other, self)
