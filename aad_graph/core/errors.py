# aad_graph/core/errors.py
"""
Exception taxonomy for the expression graph.

All errors are programmer-error class conditions raised synchronously;
nothing here is retried.
"""


class GraphError(Exception):
    """Base class for every error raised by aad_graph."""


class NodeNotFoundError(GraphError, KeyError):
    """Lookup of a name that was never registered on the graph."""

    def __str__(self):
        # KeyError quotes its argument; keep the plain message instead
        return str(self.args[0]) if self.args else ""


class PreconditionError(GraphError, RuntimeError):
    """An operation was called in the wrong phase of the graph lifecycle."""


class ShapeError(GraphError, ValueError):
    """Operand or fed-value shapes are incompatible."""
