import numpy as np
import pytest
from grad_graphs.ir.graph import Graph, GraphBuilder
from grad_graphs.passes.gradient import gradients, pairwise_aggregate_gradient
from grad_graphs.backend.reference import evaluate_graph


def _numeric_grad(y, feed, name, eps=1e-6):
    """Central finite differences of the scalar output `y` w.r.t. feed[name]."""
    base = np.array(feed[name], dtype=np.float64)
    grad = np.zeros_like(base)
    for idx in np.ndindex(base.shape):
        for sign in (1.0, -1.0):
            shifted = base.copy()
            shifted[idx] += sign * eps
            val = evaluate_graph([y], {**feed, name: shifted})[0]
            grad[idx] += sign * float(val) / (2 * eps)
    return grad


@pytest.fixture
def feed():
    rng = np.random.default_rng(0)
    return {
        "x0": rng.uniform(0.5, 1.5, size=(4,)),
        "x1": rng.uniform(0.5, 1.5, size=(4,)),
        "head": np.array(1.0),
    }


def test_analytic_gradient(feed):
    gb = GraphBuilder()
    x0 = gb.variable("x0")
    x1 = gb.variable("x1")
    head = gb.variable("head")
    y = gb.sum(gb.add(gb.exp(gb.mul(x0, x1)), gb.sin(x0)))

    res = gradients([y], [x0, x1], [head])
    d_x0, d_x1 = evaluate_graph(res, feed)

    e = np.exp(feed["x0"] * feed["x1"])
    np.testing.assert_allclose(d_x0, e * feed["x1"] + np.cos(feed["x0"]), rtol=1e-6)
    np.testing.assert_allclose(d_x1, e * feed["x0"], rtol=1e-6)


@pytest.mark.parametrize("mirror", [False, True])
def test_matches_finite_differences(feed, mirror):
    gb = GraphBuilder()
    x0 = gb.variable("x0")
    x1 = gb.variable("x1")
    head = gb.variable("head")
    # Every built-in elementwise rule on one path or another
    r = gb.divide(gb.cos(x0), gb.sqrt(x1))
    s = gb.mul_scalar(gb.negate(gb.identity(x0)), 3.0)
    y = gb.sum(gb.mul(gb.add(r, s), gb.exp(x1)))

    mirror_fun = (lambda n: not n.is_variable) if mirror else None
    res = gradients([y], [x0, x1], [head], mirror_fun=mirror_fun)
    d_x0, d_x1 = evaluate_graph(res, feed)

    np.testing.assert_allclose(d_x0, _numeric_grad(y, feed, "x0"), rtol=1e-5)
    np.testing.assert_allclose(d_x1, _numeric_grad(y, feed, "x1"), rtol=1e-5)


def test_seed_scales_gradient(feed):
    gb = GraphBuilder()
    x0 = gb.variable("x0")
    head = gb.variable("head")
    y = gb.sum(gb.exp(x0))

    res = gradients([y], [x0], [head])
    (d_x0,) = evaluate_graph(res, {**feed, "head": np.array(2.5)})

    np.testing.assert_allclose(d_x0, 2.5 * np.exp(feed["x0"]), rtol=1e-6)


def test_split_and_concat(feed):
    gb = GraphBuilder()
    x0 = gb.variable("x0")
    x1 = gb.variable("x1")
    head = gb.variable("head")
    lo, hi = gb.split(x0, 2)
    y = gb.sum(gb.mul(gb.concat([hi, lo]), gb.concat([lo, hi])))
    y = gb.add(y, gb.sum(gb.concat([x1, x0])))

    res = gradients([y], [x0, x1], [head])
    d_x0, d_x1 = evaluate_graph(res, feed)

    # y = 2 * sum(lo * hi) + sum(x1) + sum(x0)
    lo_v, hi_v = np.split(feed["x0"], 2)
    np.testing.assert_allclose(d_x0, np.concatenate([2 * hi_v, 2 * lo_v]) + 1.0)
    np.testing.assert_allclose(d_x1, np.ones(4))


def test_unused_split_port_evaluates(feed):
    gb = GraphBuilder()
    x0 = gb.variable("x0")
    head = gb.variable("head")
    lo, hi = gb.split(x0, 2)
    y = gb.sum(gb.exp(lo))

    res = gradients([y], [x0], [head])
    (d_x0,) = evaluate_graph(res, feed)

    lo_v, hi_v = np.split(feed["x0"], 2)
    np.testing.assert_allclose(d_x0, np.concatenate([np.exp(lo_v), np.zeros_like(hi_v)]))


def test_unused_split_like_port_evaluates(feed):
    gb = GraphBuilder()
    x0 = gb.variable("x0")
    x1 = gb.variable("x1")
    head = gb.variable("head")
    a, b = gb.split_like(gb.concat([x0, x1]), [x0, x1])
    y = gb.sum(gb.sin(b))

    res = gradients([y], [x0, x1], [head])
    d_x0, d_x1 = evaluate_graph(res, feed)

    np.testing.assert_allclose(d_x0, np.zeros(4))
    np.testing.assert_allclose(d_x1, np.cos(feed["x1"]))


def test_pairwise_aggregation_same_values(feed):
    gb = GraphBuilder()
    x0 = gb.variable("x0")
    head = gb.variable("head")
    terms = [gb.exp(x0), gb.sin(x0), gb.cos(x0), gb.sqrt(x0), gb.identity(x0)]
    total = terms[0]
    for t in terms[1:]:
        total = gb.add(total, t)
    y = gb.sum(total)

    plain = gradients([y], [x0], [head])
    tree = gradients([y], [x0], [head], aggregate_fun=pairwise_aggregate_gradient)

    np.testing.assert_allclose(
        evaluate_graph(plain, feed)[0], evaluate_graph(tree, feed)[0], rtol=1e-12
    )


def test_second_order(feed):
    gb = GraphBuilder()
    x0 = gb.variable("x0")
    head = gb.variable("head")
    y = gb.sum(gb.sin(x0))

    (dy,) = gradients([y], [x0], [head]).outputs
    head2 = gb.variable("head2")
    res = gradients([gb.sum(dy)], [x0], [head2])
    (d2,) = evaluate_graph(res, {**feed, "head2": np.array(1.0)})

    np.testing.assert_allclose(d2, -np.sin(feed["x0"]), rtol=1e-6)


def test_missing_feed_raises():
    gb = GraphBuilder()
    x = gb.variable("x")
    with pytest.raises(ValueError):
        evaluate_graph(Graph(outputs=[gb.exp(x)]), {})


def test_constants_need_no_feed():
    gb = GraphBuilder()
    c = gb.const([1.0, 2.0])
    (out,) = evaluate_graph([gb.mul_scalar(c, 2.0)], {})
    np.testing.assert_allclose(out, [2.0, 4.0])
