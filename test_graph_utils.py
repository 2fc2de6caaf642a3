import numpy as np
import pytest

from aad_graph import ExpressionGraph, ops
from aad_graph.core.graph_utils import (
    analyze_graph_complexity,
    get_graph_stats,
    load_params,
    params_dict,
    print_graph_summary,
    save_params,
    to_graphviz_source,
)


def small_graph():
    g = ExpressionGraph()
    x = g.input(shape=(None, 2), name="x")
    w = g.param(shape=(2, 1), init="uniform", seed=1, name="w")
    b = g.param(shape=(1,), init="zeros")
    y = x @ w + b
    ops.mean(y * y, name="loss")
    x.val = np.array([[1.0, 2.0], [3.0, 4.0]])
    return g


def test_graph_stats():
    stats = get_graph_stats(small_graph())
    assert stats["nodes"] == 7
    assert stats["edges"] == 7
    assert stats["max_fan_in"] == 2
    # y feeds both operands of y * y
    assert stats["max_fan_out"] == 2
    assert stats["operations"] == {"input": 1, "param": 2, "dot": 1, "+": 1, "*": 1, "mean": 1}


def test_empty_graph_stats():
    g = ExpressionGraph()
    assert get_graph_stats(g)["nodes"] == 0
    assert analyze_graph_complexity(g) == "Empty computation graph"


def test_summary_and_report(capsys):
    g = small_graph()
    stats = print_graph_summary(g, detailed=True)
    printed = capsys.readouterr().out
    assert "COMPUTATION GRAPH SUMMARY" in printed
    assert "n3: dot" in printed
    assert stats["nodes"] == 7
    report = analyze_graph_complexity(g)
    assert "Complexity level: Low" in report


def test_graphviz_source_wraps_export():
    g = small_graph()
    src = to_graphviz_source(g)
    assert src.source == g.graphviz()


def test_params_round_trip(tmp_path):
    g = small_graph()
    g.backprop(2)
    path = tmp_path / "model.npz"
    save_params(g, path)
    saved = load_params(path)
    assert sorted(saved) == ["param_1", "w"]
    np.testing.assert_array_equal(saved["w"], g["w"].val)

    # rebuilt graph continues from the saved values
    g2 = ExpressionGraph()
    w2 = g2.param(data=saved["w"], name="w")
    g2.forward(1)
    np.testing.assert_array_equal(w2.val, saved["w"])


def test_params_dict_rejects_duplicate_names():
    g = ExpressionGraph()
    g.param(data=[1.0], name="w")
    g.param(data=[2.0], name="w")
    g.forward(1)
    with pytest.raises(ValueError):
        params_dict(g)
