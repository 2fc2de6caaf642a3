# aad_graph/core/tape.py
from __future__ import annotations
from typing import Iterator, List
from .node import Node


class Tape:
    """
    Append-only record of nodes in creation order.

    Creation order is the evaluation order: a node can only be recorded after
    every node it depends on, so forward iteration visits dependencies first
    and reverse iteration visits consumers first.
    """

    def __init__(self):
        self.nodes: List[Node] = []

    def owns(self, node: Node) -> bool:
        idx = node.tape_idx
        return idx is not None and idx < len(self.nodes) and self.nodes[idx] is node

    def push_node(self, node: Node) -> int:
        """Record `node` and return its slot index."""
        if node.tape_idx is not None:
            raise ValueError(f"{node.debug()} is already recorded on a tape")
        for c in node.children:
            if not self.owns(c):
                raise ValueError(
                    f"dependency {c.debug()} of {node.op_tag} is not recorded on this tape"
                )
        self.nodes.append(node)
        node.tape_idx = len(self.nodes) - 1
        return node.tape_idx

    def back(self) -> Node:
        return self.nodes[-1]

    def __getitem__(self, idx: int) -> Node:
        return self.nodes[idx]

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)

    def __reversed__(self) -> Iterator[Node]:
        return reversed(self.nodes)
