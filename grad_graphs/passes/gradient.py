"""
File: grad_graphs/passes/gradient.py

Symbolic reverse-mode differentiation as a graph-to-graph pass.

The pass reads three graph attributes:
    grad_ys:          entries whose gradient is propagated
    grad_ys_out_grad: gradient injected at each entry of grad_ys
    grad_xs:          entries whose gradient is returned
and optionally:
    grad_aggregate_fun: List[NodeEntry] -> NodeEntry
    grad_mirror_fun:    Node -> bool, nodes to recompute instead of retain

It returns a new Graph whose outputs are the gradients of grad_xs, in order.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence
from .. import config
from ..errors import (
    ArityMismatchError,
    GradientProtocolError,
    MissingAttributeError,
    NoGradientRuleError,
    SizeMismatchError,
)
from ..ir.graph import Graph, dfs_visit
from ..ir.node import Node, NodeEntry, make_entry
from ..ops.atomic_types import OpType
from ..ops.registry import DEFAULT_REGISTRY, OpRegistry
from .registry import PassRegistry

AggregateFun = Callable[[List[NodeEntry]], NodeEntry]
MirrorFun = Callable[[Node], bool]

REQUIRED_ATTRS = ("grad_ys", "grad_ys_out_grad", "grad_xs")


def default_aggregate_gradient(grads: List[NodeEntry]) -> NodeEntry:
    """
    0 contributions -> new zero node, 1 -> that entry unchanged,
    n -> one elementwise-sum node over all of them, in the given order.
    """
    if len(grads) == 1:
        return grads[0]
    if not grads:
        return make_entry(OpType.ZERO, [])
    return make_entry(OpType.EWISE_SUM, list(grads))


def pairwise_aggregate_gradient(grads: List[NodeEntry]) -> NodeEntry:
    """
    Same contract as default_aggregate_gradient, but sums as a balanced tree of
    binary sums.
    """
    if len(grads) <= 2:
        return default_aggregate_gradient(grads)
    level = list(grads)
    while len(level) > 1:
        paired = [
            make_entry(OpType.EWISE_SUM, [level[i], level[i + 1]])
            for i in range(0, len(level) - 1, 2)
        ]
        if len(level) % 2:
            paired.append(level[-1])
        level = paired
    return level[0]


@dataclass
class GradEntry:
    # Aggregated gradient, set at most once
    sum: Optional[NodeEntry] = None
    # Contributions not yet aggregated, in arrival order
    grads: List[NodeEntry] = field(default_factory=list)

    def add_grad(self, entry: NodeEntry):
        if self.sum is not None:
            raise GradientProtocolError(
                f"Gradient contribution {entry!r} arrived after aggregation"
            )
        self.grads.append(entry)

    def aggregate(self, agg_fun: AggregateFun) -> NodeEntry:
        if self.sum is None:
            # The pending list is handed over exactly once.
            grads, self.grads = self.grads, []
            self.sum = agg_fun(grads)
        return self.sum


def force_mirroring(node: Node) -> bool:
    """Mirror predicate honouring a truthy `force_mirroring` node attribute."""
    return not node.is_variable and bool(node.get_attr("force_mirroring", False))


def build_mirror_map(
    topo_order: Sequence[Node], mirror_fun: MirrorFun
) -> Dict[Node, Node]:
    """
    Maps every node to the node gradient rules should see in its place.

    `topo_order` must list producers before consumers, so the working node of
    every input already exists when a clone is rewired.
    """
    mirror_map: Dict[Node, Node] = {}
    for node in topo_order:
        if not mirror_fun(node):
            mirror_map[node] = node
            continue
        new_node = node.clone(config.MIRROR_SUFFIX)
        new_node.inputs = [
            NodeEntry(mirror_map[e.node], e.index, e.version) for e in node.inputs
        ]
        new_node.control_deps = [mirror_map[n] for n in node.control_deps]
        mirror_map[node] = new_node
        if config.DEBUG_GRADIENT:
            print(f"[Mirror] {node.name} -> {new_node.name}")
    return mirror_map


def _new_grad_entries(node: Node) -> List[GradEntry]:
    return [GradEntry() for _ in range(node.num_outputs)]


@PassRegistry.register(
    "Gradient",
    description='Return a gradient graph of attrs["grad_ys"] wrt attrs["grad_xs"]',
    change_graph=True,
    depend_graph_attrs=REQUIRED_ATTRS,
)
def gradient(src: Graph, registry: Optional[OpRegistry] = None) -> Graph:
    for key in REQUIRED_ATTRS:
        if not src.has_attr(key):
            raise MissingAttributeError(key)
    ys: List[NodeEntry] = list(src.get_attr("grad_ys"))
    ys_out_grad: List[NodeEntry] = list(src.get_attr("grad_ys_out_grad"))
    xs: List[NodeEntry] = list(src.get_attr("grad_xs"))
    if len(ys) != len(ys_out_grad):
        raise SizeMismatchError(
            f"grad_ys has {len(ys)} entries but grad_ys_out_grad has {len(ys_out_grad)}"
        )

    agg_fun: AggregateFun = (
        src.get_attr("grad_aggregate_fun") or default_aggregate_gradient
    )
    mirror_fun: Optional[MirrorFun] = src.get_attr("grad_mirror_fun")
    registry = registry or DEFAULT_REGISTRY

    # 1. Topo Sort
    topo_order: List[Node] = []
    output_grads: Dict[Node, List[GradEntry]] = {}

    def _visit(node: Node):
        if node not in output_grads:
            output_grads[node] = _new_grad_entries(node)
        topo_order.append(node)

    dfs_visit(ys, _visit)

    # 2. Seed
    for y, y_grad in zip(ys, ys_out_grad):
        output_grads[y.node][y.index].add_grad(y_grad)

    # 3. Mirror
    mirror_map: Dict[Node, Node] = {}
    if mirror_fun is not None:
        mirror_map = build_mirror_map(topo_order, mirror_fun)

    # 4. Backward, consumers before producers
    for node in reversed(topo_order):
        if node.is_variable:
            continue
        out_agg_grads = [e.aggregate(agg_fun) for e in output_grads[node]]

        grad_rule = registry.lookup_gradient_rule(node.op)
        if grad_rule is None:
            raise NoGradientRuleError(node.op, node.name)
        input_grads = grad_rule(mirror_map[node] if mirror_map else node, out_agg_grads)
        if len(input_grads) != len(node.inputs):
            raise ArityMismatchError(
                f"Gradient of '{node.op}' (node '{node.name}') returned "
                f"{len(input_grads)} entries for {len(node.inputs)} inputs"
            )
        if config.DEBUG_GRADIENT:
            print(
                f"[Gradient] {node.name} ({node.op}): "
                f"{len(out_agg_grads)} output grads -> {len(input_grads)} input grads"
            )

        for e, in_grad in zip(node.inputs, input_grads):
            output_grads[e.node][e.index].add_grad(in_grad)

    # 5. Extract
    ret = Graph()
    for x in xs:
        entries = output_grads.get(x.node)
        if entries is None:
            # Not reachable from grad_ys, gradient is zero
            entries = output_grads[x.node] = _new_grad_entries(x.node)
        ret.outputs.append(entries[x.index].aggregate(agg_fun))
    return ret


def gradients(
    ys: Sequence[NodeEntry],
    xs: Sequence[NodeEntry],
    ys_out_grad: Sequence[NodeEntry],
    aggregate_fun: Optional[AggregateFun] = None,
    mirror_fun: Optional[MirrorFun] = None,
    registry: Optional[OpRegistry] = None,
) -> Graph:
    """Builds the attribute bag for the Gradient pass and applies it."""
    src = Graph(outputs=list(ys))
    src.set_attr("grad_ys", list(ys))
    src.set_attr("grad_xs", list(xs))
    src.set_attr("grad_ys_out_grad", list(ys_out_grad))
    if aggregate_fun is not None:
        src.set_attr("grad_aggregate_fun", aggregate_fun)
    if mirror_fun is not None:
        src.set_attr("grad_mirror_fun", mirror_fun)
    return src.apply("Gradient", registry=registry)
