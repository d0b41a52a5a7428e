import pytest
from grad_graphs.ir.graph import Graph, GraphBuilder
from grad_graphs.ops.atomic_types import OpType
from grad_graphs.ops.registry import DEFAULT_REGISTRY, OpRegistry
from grad_graphs.passes.registry import PassRegistry
from grad_graphs.errors import MissingAttributeError, NoGradientRuleError
from grad_graphs.tools.list_registry import check


@pytest.fixture
def scratch_passes(monkeypatch):
    monkeypatch.setattr(PassRegistry, "_passes", dict(PassRegistry._passes))


def test_gradient_pass_is_registered():
    entry = PassRegistry.get("Gradient")
    assert entry.change_graph
    assert set(entry.depend_graph_attrs) == {"grad_ys", "grad_xs", "grad_ys_out_grad"}


def test_unknown_pass():
    with pytest.raises(ValueError):
        Graph().apply("NoSuchPass")


def test_passes_run_in_order(scratch_passes):
    seen = []

    @PassRegistry.register("Tag", provide_graph_attrs=["tag"])
    def tag_pass(graph):
        seen.append("Tag")
        graph.set_attr("tag", len(seen))
        return graph

    @PassRegistry.register("NeedsTag", depend_graph_attrs=["tag"])
    def needs_tag_pass(graph):
        seen.append("NeedsTag")
        return Graph(outputs=graph.outputs, attrs={"seen": graph.get_attr("tag")})

    with pytest.raises(MissingAttributeError):
        Graph().apply("NeedsTag")

    out = Graph().apply(["Tag", "NeedsTag"])
    assert seen == ["Tag", "NeedsTag"]
    assert out.get_attr("seen") == 1


def test_duplicate_registration(scratch_passes):
    with pytest.raises(ValueError):
        PassRegistry.register("Gradient")(lambda g: g)


def test_gradient_via_apply():
    gb = GraphBuilder()
    x = gb.variable("x")
    y = gb.exp(x)
    g = gb.variable("g")
    src = Graph(
        outputs=[y],
        attrs={"grad_ys": [y], "grad_ys_out_grad": [g], "grad_xs": [x]},
    )

    res = src.apply("Gradient")

    assert res.outputs[0].node.op == OpType.MUL
    assert src.outputs == [y]


def test_keywords_only_reach_passes_that_take_them(scratch_passes):
    @PassRegistry.register("Tag", provide_graph_attrs=["tag"])
    def tag_pass(graph):
        graph.set_attr("tag", True)
        return graph

    gb = GraphBuilder()
    x = gb.variable("x")
    y = gb.exp(x)
    g = gb.variable("g")
    attrs = {"grad_ys": [y], "grad_ys_out_grad": [g], "grad_xs": [x]}

    res = Graph(outputs=[y], attrs=dict(attrs)).apply(
        ["Tag", "Gradient"], registry=DEFAULT_REGISTRY
    )
    assert res.outputs[0].node.op == OpType.MUL

    # The registry still reaches the Gradient pass
    with pytest.raises(NoGradientRuleError):
        Graph(outputs=[y], attrs=dict(attrs)).apply(
            ["Tag", "Gradient"], registry=OpRegistry()
        )


def test_op_registry():
    registry = OpRegistry()
    op_def = registry.register("Twice", 1, description="2x")
    assert registry.get("Twice") is op_def
    assert "Twice" in registry
    assert registry.lookup_gradient_rule("Twice") is None
    assert registry.lookup_gradient_rule("Missing") is None

    @registry.set_gradient("Twice")
    def twice_grad(node, out_grads):
        return [out_grads[0]]

    assert registry.lookup_gradient_rule("Twice") is twice_grad
    with pytest.raises(ValueError):
        registry.register("Twice")
    with pytest.raises(ValueError):
        registry.set_gradient("Missing")(twice_grad)


def test_every_builtin_has_a_gradient():
    for op_def in DEFAULT_REGISTRY.list_ops():
        assert OpType.is_atomic(op_def.name)
        assert op_def.gradient is not None, op_def.name


def test_list_registry(capsys):
    check()
    out = capsys.readouterr().out
    assert "Op: Exp" in out
    assert "Op: __ewise_sum__" in out
    assert "Pass: Gradient" in out
    assert "MISSING" not in out
