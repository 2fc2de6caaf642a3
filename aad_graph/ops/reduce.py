# aad_graph/ops/reduce.py
import numpy as np
from ..core.errors import ShapeError
from ..core.node import Node, dot_escape
from .arithmetic import _graph_of


class ReduceNode(Node):
    """Sum or mean over all elements (axis=None) or over one axis."""

    fillcolor = "yellow"

    def __init__(self, a, axis=None, mean=False, *, name=None):
        super().__init__((a,), name=name)
        self.axis = axis
        self.mean = mean
        self.op_tag = "mean" if mean else "sum"

    def _axis(self):
        ndim = self.children[0].val.ndim
        if self.axis is None:
            return None
        if not -ndim <= self.axis < ndim:
            raise ShapeError(f"{self.op_tag}: axis {self.axis} out of range for {ndim}-d operand")
        return self.axis % ndim

    def infer_shape(self, batch_size):
        shape = self.children[0].val.shape
        axis = self._axis()
        if axis is None:
            return ()
        return shape[:axis] + shape[axis + 1:]

    def _count(self):
        a = self.children[0].val
        axis = self._axis()
        return a.size if axis is None else a.shape[axis]

    def forward(self):
        a = self.children[0].val
        out = np.sum(a, axis=self._axis())
        if self.mean:
            out = out / max(self._count(), 1)
        self._val[...] = out

    def backward(self):
        a = self.children[0]
        g = self.adj
        axis = self._axis()
        if axis is not None:
            g = np.expand_dims(g, axis)
        if self.mean:
            g = g / max(self._count(), 1)
        a.accumulate(np.broadcast_to(g, a.val.shape))

    def label(self):
        tag = self.op_tag if self.axis is None else f"{self.op_tag}(axis={self.axis})"
        return f"{tag}\\n{dot_escape(self.name)}" if self.name else tag


def sum(x, axis=None, name=None):
    return _graph_of(x).push_node(ReduceNode(x.node, axis, mean=False, name=name))


def mean(x, axis=None, name=None):
    return _graph_of(x).push_node(ReduceNode(x.node, axis, mean=True, name=name))
