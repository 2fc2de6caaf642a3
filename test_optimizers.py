import numpy as np
import pytest

from aad_graph import Adagrad, ExpressionGraph, Sgd, ops
from aad_graph.core.graph_utils import params_dict


def test_sgd_fits_linear_regression():
    rng = np.random.default_rng(0)
    x_data = rng.uniform(-1.0, 1.0, size=(16, 1))
    t_data = 2.0 * x_data + 1.0

    g = ExpressionGraph()
    x = g.input(shape=(None, 1))
    t = g.input(shape=(None, 1))
    w = g.param(shape=(1, 1), init="zeros")
    b = g.param(shape=(1,), init="zeros")
    d = x @ w + b - t
    ops.mean(d * d)

    x.val = x_data
    t.val = t_data
    opt = Sgd(eta=0.1)
    for _ in range(500):
        g.backprop(16)
        opt.update(g)

    np.testing.assert_allclose(w.val, [[2.0]], atol=1e-2)
    np.testing.assert_allclose(b.val, [1.0], atol=1e-2)


def test_adagrad_keeps_state_across_rebuilt_graphs():
    opt = Adagrad(eta=0.5)
    values = {"p": np.zeros(2)}
    for _ in range(200):
        g = ExpressionGraph()
        p = g.param(data=values["p"], name="p")
        d = p - g.constant(data=[3.0, -1.0])
        ops.sum(d * d)
        g.backprop(1)
        opt.update(g)
        values = params_dict(g)
    np.testing.assert_allclose(values["p"], [3.0, -1.0], atol=1e-2)
    assert len(opt.history) == 1


def test_adagrad_rejects_changed_param_count():
    opt = Adagrad()
    g = ExpressionGraph()
    ops.sum(g.param(data=[1.0]) * 2.0)
    g.backprop(1)
    opt.update(g)

    g2 = ExpressionGraph()
    ops.sum(g2.param(data=[1.0]) * g2.param(data=[1.0]))
    g2.backprop(1)
    with pytest.raises(ValueError):
        opt.update(g2)


def test_learning_rate_must_be_positive():
    with pytest.raises(ValueError):
        Sgd(eta=0.0)
    with pytest.raises(ValueError):
        Adagrad(eta=-1.0)


def test_update_marks_values_stale():
    from aad_graph import PreconditionError
    g = ExpressionGraph()
    ops.sum(g.param(data=[1.0]) * 2.0)
    g.backprop(1)
    Sgd(eta=0.1).update(g)
    with pytest.raises(PreconditionError):
        g.backward()
