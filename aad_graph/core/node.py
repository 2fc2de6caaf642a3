# aad_graph/core/node.py
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional, Sequence, Tuple
import numpy as np

from .errors import PreconditionError


def unbroadcast(grad: np.ndarray, shape: Tuple[int, ...]) -> np.ndarray:
    """Sum `grad` over the axes numpy broadcasting added to reach `shape`."""
    if grad.shape == tuple(shape):
        return grad
    # leading axes introduced by broadcasting
    while grad.ndim > len(shape):
        grad = grad.sum(axis=0)
    # axes stretched from size 1
    for axis, dim in enumerate(shape):
        if dim == 1 and grad.shape[axis] != 1:
            grad = grad.sum(axis=axis, keepdims=True)
    return grad


def dot_escape(text: str) -> str:
    """Escape backslashes and double quotes for a quoted DOT string."""
    return str(text).replace("\\", "\\\\").replace('"', '\\"')


class Node(ABC):
    """
    One step of computation on the tape.

    A node owns a value slot (filled by the forward pass) and an adjoint slot
    (d output / d this node, filled by the backward pass). Its dependencies are
    the nodes it was constructed from; they must already be recorded on the
    same tape, so the tape order is a topological order.

    Attributes
    ----------
    op_tag : str
        Operation name used in diagnostics and graph export.
    children : tuple of Node
        Dependencies, fixed at construction.
    name : str or None
        Optional debug name.
    dtype : numpy dtype
        Element type of the value and the adjoint.
    tape_idx : int or None
        Position on the owning tape, set when the node is recorded.
    """

    op_tag = "node"
    fillcolor = "white"

    def __init__(self, children: Sequence["Node"] = (), *, name: Optional[str] = None, dtype=None):
        self.children: Tuple[Node, ...] = tuple(children)
        self.name = name
        if dtype is None:
            dtype = np.result_type(*[c.dtype for c in self.children]) if self.children else np.float64
        self.dtype = np.dtype(dtype)
        self.tape_idx: Optional[int] = None
        self._val: Optional[np.ndarray] = None
        self._adj: Optional[np.ndarray] = None

    # ---------------- value / adjoint slots ---------------- #
    @property
    def has_val(self) -> bool:
        return self._val is not None

    @property
    def has_adj(self) -> bool:
        return self._adj is not None

    @property
    def val(self) -> np.ndarray:
        if self._val is None:
            raise PreconditionError(f"{self.debug()} has no value; run forward() first")
        return self._val

    @property
    def adj(self) -> np.ndarray:
        if self._adj is None:
            raise PreconditionError(f"{self.debug()} has no adjoint; run backward() first")
        return self._adj

    def set_val(self, t) -> None:
        """Store a copy of `t` as this node's value."""
        self._val = np.array(t, dtype=self.dtype)

    @property
    def shape(self) -> Optional[Tuple[int, ...]]:
        return None if self._val is None else self._val.shape

    # ---------------- pass protocol ---------------- #
    def infer_shape(self, batch_size: int) -> Tuple[int, ...]:
        """Shape of the value for an execution of `batch_size`. Elementwise by default."""
        return self.children[0].val.shape

    def allocate(self, batch_size: int) -> None:
        """
        Reserve the value buffer. Runs after every dependency was allocated,
        so their shapes are known. An existing buffer of the right shape is kept.
        """
        shape = tuple(self.infer_shape(batch_size))
        if self._val is None or self._val.shape != shape:
            self._val = np.zeros(shape, dtype=self.dtype)

    @abstractmethod
    def forward(self) -> None:
        """Compute the value from the values of the dependencies."""

    @abstractmethod
    def backward(self) -> None:
        """Add this node's contribution to the adjoint of every dependency."""

    def zero_adjoint(self) -> None:
        if self._val is None:
            raise PreconditionError(f"{self.debug()} was never evaluated; run forward() first")
        if self._adj is None or self._adj.shape != self._val.shape:
            self._adj = np.zeros_like(self._val)
        else:
            self._adj.fill(0.0)

    def init_dependent(self) -> None:
        """Seed d output / d output = 1."""
        if self._adj is None or self._adj.shape != self.val.shape:
            self.zero_adjoint()
        self._adj.fill(1.0)

    def accumulate(self, grad) -> None:
        """Add `grad` into the adjoint, reducing broadcast axes first."""
        grad = unbroadcast(np.asarray(grad, dtype=self.dtype), self.adj.shape)
        self._adj += grad

    # ---------------- diagnostics ---------------- #
    @property
    def node_id(self) -> str:
        if self.tape_idx is None:
            return f"n{id(self):x}"
        return f"n{self.tape_idx}"

    def label(self) -> str:
        if self.name:
            return f"{self.op_tag}\\n{dot_escape(self.name)}"
        return self.op_tag

    def debug(self) -> str:
        shape = "unallocated" if self._val is None else str(self._val.shape)
        name = f" '{self.name}'" if self.name else ""
        return f"{self.op_tag}{name} #{self.tape_idx} shape={shape}"

    def graphviz(self) -> str:
        lines = [f'"{self.node_id}" [shape="box", label="{self.label()}", '
                 f'style="filled", fillcolor="{self.fillcolor}"]']
        for c in self.children:
            lines.append(f'"{c.node_id}" -> "{self.node_id}"')
        return "\n".join(lines) + "\n\n"

    def __repr__(self):
        return f"<{type(self).__name__} {self.debug()}>"
