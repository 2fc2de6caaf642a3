# aad_graph/ops/arithmetic.py
import numpy as np
from ..core.errors import ShapeError
from ..core.expr import Expr
from ..core.node import Node


def _graph_of(*xs):
    for x in xs:
        if isinstance(x, Expr):
            return x.graph
    raise TypeError("at least one operand must be an Expr")


def _as_expr(x, graph) -> Expr:
    """Ensure x is an Expr of `graph`; otherwise lift it into a constant node."""
    if isinstance(x, Expr):
        if x.graph is not graph:
            raise ValueError(f"{x.debug()} belongs to a different graph")
        return x
    arr = np.asarray(x, dtype=float)
    if arr.ndim == 0:
        return graph.constant(value=float(arr))
    return graph.constant(data=arr)


class ElementwiseNode(Node):
    """
    Generic elementwise primitive with numpy broadcasting.

      - forward : val = f(*child_vals)
      - backward: child_k.adj += adj * partials[k](*child_vals, val)
    Each local partial is shaped like the output; broadcast axes are summed
    away when accumulating into the child.
    """

    def __init__(self, children, f, partials, op_tag, *, name=None):
        super().__init__(children, name=name)
        self.f = f
        self.partials = partials
        self.op_tag = op_tag

    def infer_shape(self, batch_size):
        try:
            return np.broadcast_shapes(*[c.val.shape for c in self.children])
        except ValueError:
            shapes = [c.val.shape for c in self.children]
            raise ShapeError(f"{self.op_tag}: operands of shapes {shapes} do not broadcast") from None

    def forward(self):
        self._val[...] = self.f(*[c.val for c in self.children])

    def backward(self):
        args = [c.val for c in self.children]
        for c, dfdc in zip(self.children, self.partials):
            c.accumulate(self.adj * dfdc(*args, self._val))


def _binary(x, y, f, dfdx, dfdy, tag, name=None):
    g = _graph_of(x, y)
    x = _as_expr(x, g)
    y = _as_expr(y, g)
    return g.push_node(ElementwiseNode((x.node, y.node), f, (dfdx, dfdy), tag, name=name))


def add(x, y, name=None): return _binary(x, y, lambda a,b: a+b, lambda a,b,o: 1.0,   lambda a,b,o: 1.0,               "+", name)
def sub(x, y, name=None): return _binary(x, y, lambda a,b: a-b, lambda a,b,o: 1.0,   lambda a,b,o: -1.0,              "-", name)
def mul(x, y, name=None): return _binary(x, y, lambda a,b: a*b, lambda a,b,o: b,     lambda a,b,o: a,                 "*", name)
def div(x, y, name=None): return _binary(x, y, lambda a,b: a/b, lambda a,b,o: 1.0/b, lambda a,b,o: -a/np.square(b),  "/", name)


def neg(x, name=None):
    g = _graph_of(x)
    return g.push_node(ElementwiseNode((x.node,), np.negative, (lambda a, o: -1.0,), "neg", name=name))


class DotNode(Node):
    """
    Matrix product of 1-D/2-D operands (numpy ``@`` semantics).

    Vectors are promoted to a row (left operand) or a column (right operand)
    for the gradient and the promoted axis is dropped again afterwards.
    """

    op_tag = "dot"
    fillcolor = "orange"

    def __init__(self, a, b, *, name=None):
        super().__init__((a, b), name=name)

    def infer_shape(self, batch_size):
        a, b = self.children[0].val.shape, self.children[1].val.shape
        if not (1 <= len(a) <= 2 and 1 <= len(b) <= 2):
            raise ShapeError(f"dot expects 1-D or 2-D operands, got {a} and {b}")
        if a[-1] != b[0]:
            raise ShapeError(f"dot: inner dimensions differ, {a} @ {b}")
        return a[:-1] + b[1:]

    def forward(self):
        a, b = self.children
        self._val[...] = a.val @ b.val

    def backward(self):
        a, b = self.children
        A = a.val if a.val.ndim == 2 else a.val[np.newaxis, :]
        B = b.val if b.val.ndim == 2 else b.val[:, np.newaxis]
        G = self.adj.reshape(A.shape[0], B.shape[1])
        a.accumulate((G @ B.T).reshape(a.val.shape))
        b.accumulate((A.T @ G).reshape(b.val.shape))


def dot(x, y, name=None):
    g = _graph_of(x, y)
    x = _as_expr(x, g)
    y = _as_expr(y, g)
    return g.push_node(DotNode(x.node, y.node, name=name))
