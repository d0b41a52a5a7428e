import pytest
from grad_graphs.ir.node import Node, NodeEntry
from grad_graphs.ops.atomic_types import OpType
from grad_graphs.passes.gradient import (
    GradEntry,
    default_aggregate_gradient,
    pairwise_aggregate_gradient,
)
from grad_graphs.errors import GradientProtocolError


def _entries(n):
    return [NodeEntry(Node.create(None, name=f"g{i}"), 0) for i in range(n)]


def _leaves(entry):
    # In-order leaves of a tree of sum nodes
    if entry.node.op != OpType.EWISE_SUM:
        return [entry]
    out = []
    for e in entry.node.inputs:
        out.extend(_leaves(e))
    return out


@pytest.mark.parametrize(
    "agg_fun", [default_aggregate_gradient, pairwise_aggregate_gradient]
)
def test_zero_contributions(agg_fun):
    out = agg_fun([])
    assert out.index == 0
    assert out.node.op == OpType.ZERO
    assert out.node.inputs == []


@pytest.mark.parametrize(
    "agg_fun", [default_aggregate_gradient, pairwise_aggregate_gradient]
)
def test_single_contribution_is_returned_unchanged(agg_fun):
    (g,) = _entries(1)
    out = agg_fun([g])
    assert out is g


def test_many_contributions_become_one_sum():
    grads = _entries(3)
    out = default_aggregate_gradient(list(grads))
    assert out.index == 0
    assert out.node.op == OpType.EWISE_SUM
    assert out.node.inputs == grads
    assert all(a.node is b.node for a, b in zip(out.node.inputs, grads))


def test_each_call_builds_a_new_node():
    grads = _entries(2)
    first = default_aggregate_gradient(list(grads))
    second = default_aggregate_gradient(list(grads))
    assert first.node is not second.node
    assert default_aggregate_gradient([]).node is not default_aggregate_gradient([]).node


def test_pairwise_builds_balanced_tree():
    grads = _entries(5)
    out = pairwise_aggregate_gradient(list(grads))

    assert out.node.op == OpType.EWISE_SUM
    assert _leaves(out) == grads
    for node_entry in [out, *out.node.inputs]:
        if node_entry.node.op == OpType.EWISE_SUM:
            assert len(node_entry.node.inputs) == 2


def test_grad_entry_aggregates_once():
    calls = []

    def agg(grads):
        calls.append(list(grads))
        return default_aggregate_gradient(grads)

    entry = GradEntry()
    a, b = _entries(2)
    entry.add_grad(a)
    entry.add_grad(b)

    first = entry.aggregate(agg)
    second = entry.aggregate(agg)

    assert first is second
    assert calls == [[a, b]]
    assert entry.grads == []


def test_grad_entry_rejects_late_contribution():
    entry = GradEntry()
    entry.aggregate(default_aggregate_gradient)
    with pytest.raises(GradientProtocolError):
        entry.add_grad(_entries(1)[0])
