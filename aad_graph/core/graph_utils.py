"""
Graph utilities: structure statistics, DOT rendering and parameter
persistence for an ExpressionGraph.
"""

from collections import Counter
from typing import Dict

import numpy as np
from graphviz import Source

from .graph import ExpressionGraph


def get_graph_stats(graph: ExpressionGraph) -> Dict:
    """
    Collect structure statistics (no printing).

    Returns:
        dict with node/edge counts, fan-in/fan-out and the op breakdown
    """
    nodes = graph.tape.nodes
    if not nodes:
        return {
            'nodes': 0,
            'edges': 0,
            'max_fan_in': 0,
            'avg_fan_in': 0.0,
            'max_fan_out': 0,
            'avg_fan_out': 0.0,
            'operations': {}
        }

    n_nodes = len(nodes)
    fan_ins = [len(node.children) for node in nodes]

    fan_outs = [0] * n_nodes
    for node in nodes:
        for child in node.children:
            fan_outs[child.tape_idx] += 1

    return {
        'nodes': n_nodes,
        'edges': sum(fan_ins),
        'max_fan_in': max(fan_ins),
        'avg_fan_in': float(np.mean(fan_ins)),
        'max_fan_out': max(fan_outs),
        'avg_fan_out': float(np.mean(fan_outs)),
        'operations': dict(Counter(node.op_tag for node in nodes))
    }


def print_graph_summary(graph: ExpressionGraph, detailed: bool = False) -> Dict:
    """
    Print a summary of the graph structure.

    Args:
        graph: the graph to describe
        detailed: also list every node (graphs of up to 100 nodes)

    Returns:
        the statistics dict from get_graph_stats
    """
    stats = get_graph_stats(graph)
    if stats['nodes'] == 0:
        print("Empty computation graph")
        return stats

    print("\n" + "="*70)
    print("COMPUTATION GRAPH SUMMARY")
    print("="*70)
    print(f"Total nodes:        {stats['nodes']:,}")
    print(f"Total edges:        {stats['edges']:,}")
    print(f"Max fan-in:         {stats['max_fan_in']}")
    print(f"Avg fan-in:         {stats['avg_fan_in']:.2f}")
    print(f"Max fan-out:        {stats['max_fan_out']}")
    print(f"Avg fan-out:        {stats['avg_fan_out']:.2f}")
    print()
    print("Operation breakdown:")
    for op_type, count in Counter(stats['operations']).most_common(10):
        pct = 100.0 * count / stats['nodes']
        print(f"  {op_type:14s}: {count:6,} ({pct:5.1f}%)")

    if detailed and stats['nodes'] <= 100:
        print()
        print("="*70)
        print("DETAILED NODE LIST")
        print("="*70)
        for node in graph.tape:
            if node.children:
                parent_info = ", ".join(c.node_id for c in node.children)
                print(f"{node.node_id:>5s}: {node.op_tag:14s} <- [{parent_info}]")
            else:
                print(f"{node.node_id:>5s}: {node.op_tag:14s} [leaf]")

    print("="*70 + "\n")
    return stats


def analyze_graph_complexity(graph: ExpressionGraph) -> str:
    """Short text report on graph size and its most common operations."""
    stats = get_graph_stats(graph)

    if stats['nodes'] == 0:
        return "Empty computation graph"

    report = []
    report.append("Graph Complexity Analysis:")
    report.append(f"  Total operations: {stats['nodes']:,}")
    report.append(f"  Total connections: {stats['edges']:,}")
    report.append(f"  Average branching: {stats['avg_fan_out']:.2f}")

    if stats['nodes'] < 1000:
        complexity = "Low"
    elif stats['nodes'] < 10000:
        complexity = "Medium"
    else:
        complexity = "High"
    report.append(f"  Complexity level: {complexity}")

    top_ops = sorted(stats['operations'].items(), key=lambda x: x[1], reverse=True)[:3]
    report.append("  Top operations:")
    for op, count in top_ops:
        pct = 100.0 * count / stats['nodes']
        report.append(f"    - {op}: {pct:.1f}%")

    return "\n".join(report)


def to_graphviz_source(graph: ExpressionGraph):
    """Wrap graph.graphviz() in a graphviz.Source (render with .render(path))."""
    return Source(graph.graphviz())


# ---------------- parameter persistence ---------------- #
def params_dict(graph: ExpressionGraph) -> Dict[str, np.ndarray]:
    """Copies of all parameter values keyed by name (`param_<i>` if unnamed)."""
    out = {}
    for i, p in enumerate(graph.params()):
        key = p.node.name or f"param_{i}"
        if key in out:
            raise ValueError(f"duplicate parameter name {key!r}")
        out[key] = p.val.copy()
    return out


def save_params(graph: ExpressionGraph, path) -> None:
    """Write all parameter values to an .npz archive."""
    np.savez(path, **params_dict(graph))


def load_params(path) -> Dict[str, np.ndarray]:
    """Read an archive written by save_params; feed it back via param(data=...)."""
    with np.load(path) as archive:
        return {k: archive[k] for k in archive.files}
