# aad_graph/core/leaves.py
"""
Leaf node kinds: inputs, parameters and constants.

Leaves have no dependencies, so their forward and backward steps do nothing;
what differs between them is where their value comes from.
"""
from __future__ import annotations
import warnings
from typing import Optional, Tuple
import numpy as np

from .. import inits
from .config import NodeConfig
from .errors import PreconditionError, ShapeError
from .node import Node


def resolve_shape(shape: Tuple[Optional[int], ...], batch_size: int) -> Tuple[int, ...]:
    """Substitute the execution size for every batch (None) dimension."""
    return tuple(batch_size if d is None else d for d in shape)


def _matches(shape, actual) -> bool:
    return len(shape) == len(actual) and all(d is None or d == a for d, a in zip(shape, actual))


def _check_fed(node: Node, shape, batch_size: int) -> None:
    if shape is None:
        return
    want = resolve_shape(shape, batch_size)
    if node.val.shape != want:
        raise ShapeError(f"{node.debug()} holds shape {node.val.shape}, expected {want} "
                         f"for batch size {batch_size}")


class LeafNode(Node):

    def __init__(self, config: NodeConfig):
        super().__init__((), name=config.name, dtype=config.dtype)
        self.config = config
        self.declared_shape = config.shape

    def _initial_value(self, shape: Tuple[int, ...], default_init) -> np.ndarray:
        cfg = self.config
        if cfg.data is not None:
            arr = np.asarray(cfg.data, dtype=self.dtype)
            if arr.shape != shape:
                raise ShapeError(f"data of shape {arr.shape} does not match {self.op_tag} shape {shape}")
            return arr.copy()
        if cfg.value is not None:
            return np.full(shape, cfg.value, dtype=self.dtype)
        rng = np.random.default_rng(cfg.seed)
        init = inits.get(cfg.init if cfg.init is not None else default_init)
        return np.asarray(init(shape, rng), dtype=self.dtype)

    def forward(self) -> None:
        pass

    def backward(self) -> None:
        pass


class InputNode(LeafNode):
    """Data fed fresh for each execution through the handle."""

    op_tag = "input"
    fillcolor = "lightgrey"

    def __init__(self, config: NodeConfig):
        super().__init__(config)
        if config.init is not None or config.value is not None:
            raise ValueError("input nodes are fed through their handle; use data= for an initial value")
        if config.data is not None:
            self.set_val(config.data)
            if self.declared_shape is not None and not _matches(self.declared_shape, self.val.shape):
                raise ShapeError(f"data of shape {self.val.shape} does not match input shape {self.declared_shape}")

    def allocate(self, batch_size: int) -> None:
        if self._val is None:
            raise PreconditionError(f"{self.debug()} was never fed; assign a value before forward()")
        _check_fed(self, self.declared_shape, batch_size)


class ParamNode(LeafNode):
    """Learnable value, initialized once and kept across passes."""

    op_tag = "param"
    fillcolor = "orangered"

    def __init__(self, config: NodeConfig):
        super().__init__(config)
        if self.declared_shape is not None and None in self.declared_shape:
            raise ValueError(f"param shape {self.declared_shape} cannot contain the batch dimension")
        if config.data is not None and config.init is not None:
            warnings.warn(f"param {config.name!r} got both data and init; init is ignored")
        if config.data is not None and self.declared_shape is None:
            self.declared_shape = np.shape(config.data)

    def allocate(self, batch_size: int) -> None:
        if self._val is None:
            if self.declared_shape is None:
                raise PreconditionError(f"{self.debug()} has neither a shape nor a value")
            self._val = self._initial_value(self.declared_shape, "glorot_uniform")
        _check_fed(self, self.declared_shape, batch_size)


class ConstantNode(LeafNode):
    """Fixed value; refilled whenever the resolved shape changes."""

    op_tag = "constant"
    fillcolor = "white"

    def __init__(self, config: NodeConfig):
        super().__init__(config)
        if config.data is None and config.value is None and config.init is None:
            raise ValueError("constant needs one of value, data or init")
        if self.declared_shape is None:
            self.declared_shape = np.shape(config.data) if config.data is not None else ()

    def allocate(self, batch_size: int) -> None:
        shape = resolve_shape(self.declared_shape, batch_size)
        if self._val is None or self._val.shape != shape:
            self._val = self._initial_value(shape, "zeros")

    def label(self) -> str:
        if self.config.value is not None and not self.name:
            return f"{self.op_tag}\\n{self.config.value:g}"
        return super().label()
