"""
Train a 2-layer MLP on XOR with the expression graph.

A fresh graph is built for every batch; parameters are carried from one graph
to the next through param(data=...) and the optimizer state.
"""

import argparse
import time

import numpy as np

from aad_graph import Adagrad, ExpressionGraph, Sgd, ops
from aad_graph.core.graph_utils import params_dict, print_graph_summary, save_params


X = np.array([[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]])
Y = np.array([[1.0, 0.0], [0.0, 1.0], [0.0, 1.0], [1.0, 0.0]])


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Train an MLP on XOR',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('--hidden', type=int, default=8,
                       help='Hidden layer width')
    parser.add_argument('--epochs', type=int, default=2000,
                       help='Number of training steps')
    parser.add_argument('--eta', type=float, default=0.5,
                       help='Learning rate')
    parser.add_argument('--optimizer', choices=['sgd', 'adagrad'], default='adagrad',
                       help='Update rule')
    parser.add_argument('--seed', type=int, default=1234,
                       help='Initializer seed')
    parser.add_argument('--save', type=str, default=None,
                       help='Write trained parameters to this .npz file')
    parser.add_argument('--dot', type=str, default=None,
                       help='Write the graph in DOT format to this file')
    return parser.parse_args()


def build_graph(hidden, values, seed):
    """Build one execution unit; `values` holds parameters from the previous step."""
    g = ExpressionGraph()
    x = g.input(shape=(None, 2), name="x")
    t = g.input(shape=(None, 2), name="t")

    def param(name, shape, init):
        if name in values:
            return g.param(data=values[name], name=name)
        return g.param(shape=shape, init=init, seed=seed, name=name)

    w1 = param("w1", (2, hidden), "glorot_uniform")
    b1 = param("b1", (hidden,), "zeros")
    w2 = param("w2", (hidden, 2), "glorot_uniform")
    b2 = param("b2", (2,), "zeros")

    h = ops.tanh(x @ w1 + b1)
    logits = ops.add(h @ w2, b2, name="logits")
    ops.mean(ops.cross_entropy(logits, t), name="loss")
    return g


def main():
    args = parse_args()
    opt = Sgd(args.eta) if args.optimizer == 'sgd' else Adagrad(args.eta)

    values = {}
    t0 = time.time()
    for epoch in range(args.epochs):
        g = build_graph(args.hidden, values, args.seed)
        g["x"].val = X
        g["t"].val = Y
        g.backprop(len(X))
        opt.update(g)
        values = params_dict(g)
        if epoch % max(args.epochs // 10, 1) == 0:
            print(f"epoch {epoch:5d}  loss {float(g['loss'].val):.6f}")

    g = build_graph(args.hidden, values, args.seed)
    g["x"].val = X
    g["t"].val = Y
    g.forward(len(X))
    pred = g["logits"].val.argmax(axis=1)
    print(f"final loss {float(g['loss'].val):.6f}  predictions {pred}  "
          f"({time.time() - t0:.2f} s)")
    print_graph_summary(g)

    if args.save:
        save_params(g, args.save)
    if args.dot:
        with open(args.dot, 'w') as f:
            f.write(g.graphviz())


if __name__ == "__main__":
    main()
