# aad_graph/core/seeds.py

#-----------------------------------------------------------------------------
# We "plant" a seed (dy/dy = 1) at the last node and let gradients grow
# backwards through the tape. Each helper below builds its own graph, so one
# call is one execution unit.
#-----------------------------------------------------------------------------
from __future__ import annotations
from typing import Any, Callable, Dict, Union
import numpy as np

from .expr import Expr
from .graph import ExpressionGraph


def value(x: Any) -> Any:
    """Return the numeric value of an Expr; pass through plain numbers unchanged."""
    return x.val if isinstance(x, Expr) else x


def grads(f: Callable[[ExpressionGraph, Dict[str, Expr]], Expr],
          inputs: Dict[str, Union[float, np.ndarray]]) -> Dict[str, np.ndarray]:
    """
    Gradient of y = f(graph, vars) with respect to ALL inputs (dict form).
    Performs ONE forward and ONE backward pass.

    Parameters
    ----------
    f       : function taking (graph, {name: Expr}) and returning the output Expr.
              The output must be the last node it creates.
    inputs  : dict {name: numeric}

    Returns
    -------
    dict {name: ndarray}  # gradients in the same key order as `inputs`

    Example
    -------
    grads(lambda g, v: v["x"] * v["x"] + 3 * v["y"], {"x": 2.0, "y": 4.0})
    -> {"x": 4.0, "y": 3.0}
    """
    graph = ExpressionGraph()
    vars_ad = {k: graph.input(data=v, name=k) for k, v in inputs.items()}
    y = f(graph, vars_ad)
    if not isinstance(y, Expr) or y.graph is not graph:
        raise TypeError("f must return an Expr built on the graph it was given")
    if y.node is not graph.tape.back():
        raise ValueError("the output of f must be the last node it creates")
    graph.backprop(batch_size=1)
    return {k: vars_ad[k].grad.copy() for k in inputs.keys()}


def grad(f: Callable[[Expr], Expr], x0: Union[float, np.ndarray]) -> np.ndarray:
    """Gradient of y = f(x) at x0 (single input)."""
    return grads(lambda graph, v: f(v["x"]), {"x": x0})["x"]
