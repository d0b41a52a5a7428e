import numpy as np
from grad_graphs.ir.graph import Graph, GraphBuilder
from grad_graphs.passes.gradient import gradients, force_mirroring
from grad_graphs.backend.reference import evaluate_graph


def main():
    # y = exp(x0 * x1), differentiated w.r.t. x0
    gb = GraphBuilder()
    x0 = gb.variable("x0")
    x1 = gb.variable("x1")
    yg = gb.variable("yg")
    h = gb.mul(x0, x1)
    y = gb.exp(h)
    # Recompute both forward ops inside the gradient graph
    h.node.attrs["force_mirroring"] = True
    y.node.attrs["force_mirroring"] = True

    grad_graph = gradients([y], [x0], [yg], mirror_fun=force_mirroring)

    print("Original graph")
    print(Graph(outputs=[y]).debug_str())
    print("Gradient graph")
    print(grad_graph.debug_str())

    feed = {
        "x0": np.array([0.5, 1.0, 2.0], dtype=np.float32),
        "x1": np.array([1.0, -1.0, 0.5], dtype=np.float32),
        "yg": np.ones(3, dtype=np.float32),
    }
    (d_x0,) = evaluate_graph(grad_graph, feed)
    print(f"dy/dx0 = {d_x0}")
    print(f"expect = {np.exp(feed['x0'] * feed['x1']) * feed['x1']}")


if __name__ == "__main__":
    main()
