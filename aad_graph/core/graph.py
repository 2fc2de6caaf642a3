# aad_graph/core/graph.py
"""
Expression graph: builds the tape through factory calls and drives the
forward (value) and backward (adjoint) passes over it.

Usage:
    g = ExpressionGraph()
    x = g.input(shape=(None, 2), name="x")
    w = g.param(shape=(2, 1), name="w")
    loss = mean(x @ w)
    x.val = batch
    g.backprop(batch_size=len(batch))
    w.grad
"""
from __future__ import annotations
import logging
from typing import Dict, Iterator, List, Optional

from .config import NodeConfig, make_config
from .errors import NodeNotFoundError, PreconditionError
from .expr import Expr
from .leaves import ConstantNode, InputNode, ParamNode
from .node import Node
from .tape import Tape

logger = logging.getLogger(__name__)

GRAPHVIZ_HEADER = "digraph ExpressionGraph {\nrankdir=BT\n"
GRAPHVIZ_FOOTER = "}\n"


class ExpressionGraph:
    """
    Owner of one tape plus the named, parameter and input registries.

    One instance serves one execution unit (e.g. one batch): after the first
    forward/backward call no further nodes can be created. Build a fresh graph
    for the next unit.
    """

    def __init__(self):
        self._tape = Tape()
        self._named: Dict[str, Expr] = {}
        self._params: List[Expr] = []
        self._inputs: List[Expr] = []
        self._batch_size: Optional[int] = None
        self._forward_complete = False

    # ---------------- construction ---------------- #
    @property
    def tape(self) -> Tape:
        return self._tape

    @property
    def executed(self) -> bool:
        return self._batch_size is not None

    def invalidate(self) -> None:
        """Mark current values as stale; backward() needs a fresh forward()."""
        self._forward_complete = False

    def push_node(self, node: Node) -> Expr:
        """Record `node` on the tape and return a handle to it."""
        if self.executed:
            raise PreconditionError(
                f"cannot add {node.op_tag} after the graph was executed; build a new graph"
            )
        self._tape.push_node(node)
        logger.debug("recorded %s", node.debug())
        expr = Expr(self, node)
        if node.name is not None:
            self.add_named_node(expr, node.name)
        return expr

    def input(self, config: Optional[NodeConfig] = None, **options) -> Expr:
        """New input node; recorded in `inputs()`."""
        e = self.push_node(InputNode(make_config(config, **options)))
        self._inputs.append(e)
        return e

    def param(self, config: Optional[NodeConfig] = None, **options) -> Expr:
        """New parameter node; recorded in `params()`."""
        e = self.push_node(ParamNode(make_config(config, **options)))
        self._params.append(e)
        return e

    def constant(self, config: Optional[NodeConfig] = None, **options) -> Expr:
        return self.push_node(ConstantNode(make_config(config, **options)))

    def _filled(self, fill: float, config, options) -> Expr:
        cfg = make_config(config, **options)
        if cfg.data is not None or cfg.init is not None:
            raise ValueError(f"a constant filled with {fill:g} takes no data or init")
        return self.constant(cfg, value=fill)

    def ones(self, config: Optional[NodeConfig] = None, **options) -> Expr:
        """Constant filled with 1; every other option is forwarded as given."""
        return self._filled(1.0, config, options)

    def zeroes(self, config: Optional[NodeConfig] = None, **options) -> Expr:
        """Constant filled with 0; every other option is forwarded as given."""
        return self._filled(0.0, config, options)

    zeros = zeroes

    # ---------------- execution ---------------- #
    def forward(self, batch_size: int) -> None:
        """
        Allocate every node in tape order, then evaluate every node in tape
        order. The two sweeps are separate so that all buffers exist before
        any node reads a dependency.
        """
        if batch_size < 0:
            raise ValueError(f"batch_size must be >= 0, got {batch_size}")
        self._batch_size = batch_size
        self._forward_complete = False
        logger.debug("forward: %d nodes, batch_size=%d", len(self._tape), batch_size)
        for node in self._tape:
            node.allocate(batch_size)
        for node in self._tape:
            node.forward()
        self._forward_complete = True

    def backward(self) -> None:
        """
        Zero every adjoint, seed the last recorded node with 1, then
        propagate adjoints in reverse tape order.
        """
        if not self._tape:
            raise PreconditionError("backward() on an empty graph")
        if not self.executed:
            raise PreconditionError("backward() called before forward()")
        if not self._forward_complete:
            raise PreconditionError(
                "values are stale (a value was assigned or forward() failed); run forward() again"
            )
        logger.debug("backward: %d nodes, seed %s", len(self._tape), self._tape.back().debug())
        for node in self._tape:
            node.zero_adjoint()
        self._tape.back().init_dependent()
        for node in reversed(self._tape):
            node.backward()

    def backprop(self, batch_size: int) -> None:
        self.forward(batch_size)
        self.backward()

    def graphviz(self) -> str:
        """Graph description in DOT syntax, output node first."""
        body = "".join(node.graphviz() for node in reversed(self._tape))
        return GRAPHVIZ_HEADER + body + GRAPHVIZ_FOOTER

    # ---------------- registries ---------------- #
    def lookup(self, name: str) -> Expr:
        try:
            return self._named[name]
        except KeyError:
            raise NodeNotFoundError(f"No such named node in graph: {name}") from None

    def __getitem__(self, name: str) -> Expr:
        return self.lookup(name)

    def get(self, name: str, default: Optional[Expr] = None) -> Optional[Expr]:
        return self._named.get(name, default)

    def has_node(self, name: str) -> bool:
        return name in self._named

    def add_named_node(self, e: Expr, name: str) -> None:
        """Register `e` under `name`. The first registration of a name wins."""
        if e.graph is not self:
            raise ValueError(f"{e.debug()} belongs to another graph")
        if name in self._named:
            logger.debug("name %r already registered; keeping %s", name, self._named[name].debug())
            return
        self._named[name] = e

    def named(self) -> Dict[str, Expr]:
        return dict(self._named)

    def inputs(self) -> List[Expr]:
        return list(self._inputs)

    def params(self) -> List[Expr]:
        return list(self._params)

    def __len__(self) -> int:
        return len(self._tape)

    def __iter__(self) -> Iterator[Expr]:
        return (Expr(self, node) for node in self._tape)

    def __repr__(self):
        return (f"ExpressionGraph(nodes={len(self._tape)}, params={len(self._params)}, "
                f"inputs={len(self._inputs)}, named={len(self._named)})")
