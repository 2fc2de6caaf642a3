import logging

import numpy as np
import pytest

from aad_graph import ExpressionGraph, NodeConfig, NodeNotFoundError, PreconditionError, ShapeError
from aad_graph.core.graph import GRAPHVIZ_FOOTER, GRAPHVIZ_HEADER
from aad_graph.core.node import Node


class Identity(Node):
    op_tag = "identity"

    def __init__(self, a, log=None):
        super().__init__((a,))
        self.log = log

    def forward(self):
        if self.log is not None:
            self.log.append(("forward", self.tape_idx))
        self._val[...] = self.children[0].val

    def backward(self):
        if self.log is not None:
            self.log.append(("backward", self.tape_idx))
        self.children[0].accumulate(self.adj)


def chain(g, x, k, log=None):
    e = x
    for _ in range(k):
        e = g.push_node(Identity(e.node, log))
    return e


# ---------------- construction / tape order ---------------- #
def test_tape_order_is_call_order_and_topological():
    g = ExpressionGraph()
    a = g.input(shape=(None, 2))
    b = g.param(shape=(2,))
    c = g.constant(value=2.0)
    d = a + b
    e = d * c
    nodes = g.tape.nodes
    assert [n.tape_idx for n in nodes] == list(range(len(nodes)))
    assert [x.node for x in (a, b, c, d, e)] == nodes
    for node in nodes:
        for child in node.children:
            assert child.tape_idx < node.tape_idx


def test_forward_identity_chain_propagates_value():
    g = ExpressionGraph()
    x = g.input(data=[1.0, 2.0, 3.0])
    log = []
    out = chain(g, x, 5, log)
    g.forward(1)
    for e in g:
        np.testing.assert_array_equal(e.val, [1.0, 2.0, 3.0])
    np.testing.assert_array_equal(out.val, [1.0, 2.0, 3.0])
    assert log == [("forward", i) for i in range(1, 6)]


def test_backward_runs_in_reverse_tape_order():
    g = ExpressionGraph()
    x = g.input(data=[1.0])
    log = []
    chain(g, x, 3, log)
    g.backprop(1)
    assert log[3:] == [("backward", 3), ("backward", 2), ("backward", 1)]


def test_backward_two_node_chain_seeds_input_adjoint():
    g = ExpressionGraph()
    x = g.input(data=[[1.0, -2.0]])
    y = chain(g, x, 1)
    g.backprop(1)
    np.testing.assert_array_equal(y.grad, [[1.0, 1.0]])
    np.testing.assert_array_equal(x.grad, y.grad)


def test_backward_twice_does_not_accumulate():
    g = ExpressionGraph()
    x = g.input(data=[3.0])
    y = x * x
    g.forward(1)
    g.backward()
    first = x.grad.copy()
    g.backward()
    np.testing.assert_array_equal(x.grad, first)
    np.testing.assert_array_equal(x.grad, [6.0])


def test_end_to_end_addition():
    g = ExpressionGraph()
    a = g.input()
    b = g.param()
    c = a + b
    a.val = [2]
    b.val = [3]
    g.backprop(batch_size=1)
    np.testing.assert_array_equal(c.val, [5])
    np.testing.assert_array_equal(a.grad, [1])
    np.testing.assert_array_equal(b.grad, [1])


def test_fan_out_accumulates_adjoints():
    g = ExpressionGraph()
    x = g.input(data=[2.0])
    y = x + x + x
    g.backprop(1)
    np.testing.assert_array_equal(y.val, [6.0])
    np.testing.assert_array_equal(x.grad, [3.0])


def test_batch_dimension_resolves_from_execution_size():
    g = ExpressionGraph()
    x = g.input(shape=(None, 2))
    ones = g.ones(shape=(None, 1))
    y = x * ones
    x.val = np.arange(6.0).reshape(3, 2)
    g.forward(3)
    assert ones.val.shape == (3, 1)
    assert y.val.shape == (3, 2)
    x.val = np.arange(4.0).reshape(2, 2)
    g.forward(2)
    assert ones.val.shape == (2, 1)
    np.testing.assert_array_equal(y.val, np.arange(4.0).reshape(2, 2))


def test_fed_value_must_match_batch_size():
    g = ExpressionGraph()
    x = g.input(shape=(None, 2))
    x.val = np.zeros((3, 2))
    with pytest.raises(ShapeError):
        g.forward(4)


# ---------------- factories ---------------- #
def test_ones_and_zeroes_forward_other_options():
    g = ExpressionGraph()
    o = g.ones(shape=[3], name="bias")
    z = g.zeroes(NodeConfig(shape=(2, 2), value=7.0), name="zero")
    g.forward(1)
    np.testing.assert_array_equal(o.val, np.ones(3))
    np.testing.assert_array_equal(z.val, np.zeros((2, 2)))
    assert g["bias"] is o
    assert g["zero"] is z
    assert g.params() == [] and g.inputs() == []


def test_constant_requires_a_source():
    g = ExpressionGraph()
    with pytest.raises(ValueError):
        g.constant(shape=(2,))
    assert len(g) == 0


def test_unknown_option_is_rejected():
    g = ExpressionGraph()
    with pytest.raises(TypeError):
        g.input(colour="red")


def test_param_initialized_once_and_kept():
    g = ExpressionGraph()
    w = g.param(shape=(3, 2), init="normal", seed=0)
    g.forward(1)
    first = w.val.copy()
    g.forward(1)
    np.testing.assert_array_equal(w.val, first)
    assert first.shape == (3, 2)


def test_param_initializer_is_seeded():
    def build():
        g = ExpressionGraph()
        w = g.param(shape=(4,), seed=42)
        g.forward(1)
        return w.val
    np.testing.assert_array_equal(build(), build())


def test_param_rejects_batch_dimension():
    g = ExpressionGraph()
    with pytest.raises(ValueError):
        g.param(shape=(None, 3))


def test_param_data_and_init_warns():
    g = ExpressionGraph()
    with pytest.warns(UserWarning):
        w = g.param(data=[1.0, 2.0], init="zeros")
    g.forward(1)
    np.testing.assert_array_equal(w.val, [1.0, 2.0])


def test_registries_keep_factory_order():
    g = ExpressionGraph()
    i1 = g.input(data=[1.0])
    p1 = g.param(data=[1.0])
    g.constant(value=1.0)
    i2 = g.input(data=[1.0])
    p2 = g.param(data=[1.0])
    p3 = g.param(data=[1.0])
    assert g.inputs() == [i1, i2]
    assert g.params() == [p1, p2, p3]


# ---------------- names ---------------- #
def test_lookup_round_trip_and_missing_name():
    g = ExpressionGraph()
    x = g.input(data=[1.0], name="x")
    assert g.lookup("x") is x
    assert g["x"].node is x.node
    assert g.has_node("x")
    assert not g.has_node("y")
    assert g.get("y") is None
    with pytest.raises(NodeNotFoundError):
        g.lookup("y")
    with pytest.raises(LookupError):
        g["y"]
    # graph stays usable
    g.forward(1)
    np.testing.assert_array_equal(g["x"].val, [1.0])


def test_first_registration_wins(caplog):
    g = ExpressionGraph()
    a = g.input(data=[1.0], name="x")
    b = g.input(data=[2.0])
    with caplog.at_level(logging.DEBUG, logger="aad_graph.core.graph"):
        g.add_named_node(b, "x")
    assert g["x"] is a
    assert "already registered" in caplog.text


def test_derived_nodes_can_be_named():
    g = ExpressionGraph()
    x = g.input(data=[1.0])
    y = chain(g, x, 1)
    g.add_named_node(y, "out")
    assert g["out"].node is y.node


# ---------------- preconditions ---------------- #
def test_backward_on_empty_graph():
    with pytest.raises(PreconditionError):
        ExpressionGraph().backward()


def test_backward_before_forward():
    g = ExpressionGraph()
    g.input(data=[1.0])
    with pytest.raises(PreconditionError):
        g.backward()


def test_reading_before_passes():
    g = ExpressionGraph()
    x = g.input(shape=(2,))
    y = x * 2.0
    with pytest.raises(PreconditionError):
        x.val
    x.val = [1.0, 2.0]
    with pytest.raises(PreconditionError):
        y.val
    g.forward(1)
    with pytest.raises(PreconditionError):
        y.grad
    g.backward()
    np.testing.assert_array_equal(x.grad, [2.0, 2.0])


def test_unfed_input_fails_forward():
    g = ExpressionGraph()
    g.input(shape=(None, 2), name="x")
    with pytest.raises(PreconditionError):
        g.forward(1)


def test_no_construction_after_execution():
    g = ExpressionGraph()
    x = g.input(data=[1.0])
    g.forward(1)
    with pytest.raises(PreconditionError):
        g.constant(value=1.0)
    with pytest.raises(PreconditionError):
        x + 1.0


def test_negative_batch_size():
    g = ExpressionGraph()
    g.input(data=[1.0])
    with pytest.raises(ValueError):
        g.forward(-1)


# ---------------- handles / export ---------------- #
def test_handle_assignment_writes_through():
    g = ExpressionGraph()
    x = g.input(shape=(2,), name="x")
    g["x"].val = [4.0, 5.0]
    np.testing.assert_array_equal(x.val, [4.0, 5.0])
    assert x.graph is g
    assert "input 'x'" in x.debug()


def test_graphviz_export_structure():
    g = ExpressionGraph()
    x = g.input(data=[1.0], name="x")
    y = chain(g, x, 1)
    text = g.graphviz()
    assert text == GRAPHVIZ_HEADER + y.node.graphviz() + x.node.graphviz() + GRAPHVIZ_FOOTER
    assert text.startswith("digraph ExpressionGraph {\nrankdir=BT\n")
    assert text.endswith("}\n")
    assert '"n0" -> "n1"' in text


def test_export_is_side_effect_free():
    g = ExpressionGraph()
    x = g.input(data=[1.0])
    chain(g, x, 2)
    g.graphviz()
    assert not g.executed
    g.forward(1)


def test_backward_after_refeed_requires_forward():
    g = ExpressionGraph()
    x = g.input(data=[3.0])
    x * x
    g.forward(1)
    x.val = [5.0]
    with pytest.raises(PreconditionError):
        g.backward()
    g.forward(1)
    g.backward()
    np.testing.assert_array_equal(x.grad, [10.0])


def test_backward_after_failed_forward():
    g = ExpressionGraph()
    x = g.input(shape=(None, 2))
    x * x
    x.val = np.zeros((4, 2))
    g.forward(4)
    with pytest.raises(ShapeError):
        g.forward(3)
    with pytest.raises(PreconditionError):
        g.backward()


def test_ones_and_zeroes_reject_other_contents():
    g = ExpressionGraph()
    with pytest.raises(ValueError):
        g.ones(data=[7.0, 7.0])
    with pytest.raises(ValueError):
        g.zeroes(shape=(2,), init="normal")
    assert len(g) == 0


def test_graphviz_escapes_names():
    g = ExpressionGraph()
    g.input(data=[1.0], name='say "hi" \\o/')
    text = g.graphviz()
    assert 'label="input\\nsay \\"hi\\" \\\\o/"' in text
