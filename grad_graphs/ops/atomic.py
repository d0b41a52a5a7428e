"""
Built-in operators and their gradient rules.

A gradient rule receives the node being differentiated (possibly its mirrored
copy) and one aggregated gradient per output port, and returns one gradient
entry per input edge, in input order. Rules only build new nodes; the forward
nodes they read are never modified.
"""

from typing import List
from ..ir.node import Node, NodeEntry, make_entry
from .atomic_types import OpType
from .registry import register_op, register_gradient

register_op(OpType.ADD, 2, description="Elementwise a + b")
register_op(OpType.MUL, 2, description="Elementwise a * b")
register_op(OpType.DIVIDE, 2, description="Elementwise a / b")
register_op(OpType.NEGATE, 1, description="Elementwise -x")
register_op(OpType.EXP, 1, description="Elementwise e^x")
register_op(OpType.SIN, 1, description="Elementwise sin(x)")
register_op(OpType.COS, 1, description="Elementwise cos(x)")
register_op(OpType.SQRT, 1, description="Elementwise sqrt(x)")
register_op(OpType.MUL_SCALAR, 1, description="x * attrs['scalar']")
register_op(OpType.IDENTITY, 1, description="Copy of x")
register_op(OpType.SUM, 1, description="Sum of all elements, 0-d result")
register_op(OpType.BROADCAST_LIKE, 2, description="Broadcast a to the shape of like")
register_op(OpType.SUM_LIKE, 2, description="Reduce a by summation to the shape of like")
register_op(
    OpType.SPLIT,
    1,
    num_outputs=lambda attrs: attrs["sections"],
    description="Split x into attrs['sections'] equal parts along axis 0",
)
register_op(
    OpType.SPLIT_LIKE,
    -1,
    num_outputs=lambda attrs: attrs["sections"],
    description="Split x along axis 0 into parts sized like the remaining inputs",
)
register_op(OpType.CONCAT, -1, description="Concatenate inputs along axis 0")
register_op(OpType.ZEROS_LIKE, 1, description="Zeros with the shape of x")
register_op(OpType.ZERO, 0, description="Zero placeholder gradient")
register_op(OpType.EWISE_SUM, -1, description="Elementwise sum of all inputs")


def _out(node: Node, index: int = 0) -> NodeEntry:
    return NodeEntry(node, index)


def _mul(a: NodeEntry, b: NodeEntry, name: str) -> NodeEntry:
    return make_entry(OpType.MUL, [a, b], name)


@register_gradient(OpType.ADD)
def add_grad(node: Node, out_grads: List[NodeEntry]) -> List[NodeEntry]:
    g = out_grads[0]
    return [g, g]


@register_gradient(OpType.MUL)
def mul_grad(node: Node, out_grads: List[NodeEntry]) -> List[NodeEntry]:
    g = out_grads[0]
    a, b = node.inputs
    return [
        _mul(g, b, f"{node.name}_grad_lhs"),
        _mul(g, a, f"{node.name}_grad_rhs"),
    ]


@register_gradient(OpType.DIVIDE)
def divide_grad(node: Node, out_grads: List[NodeEntry]) -> List[NodeEntry]:
    # d(a/b)/da = 1/b, d(a/b)/db = -(a/b)/b
    g = out_grads[0]
    b = node.inputs[1]
    grad_a = make_entry(OpType.DIVIDE, [g, b], f"{node.name}_grad_lhs")
    scaled = _mul(g, _out(node), f"{node.name}_grad_scaled")
    quot = make_entry(OpType.DIVIDE, [scaled, b], f"{node.name}_grad_quot")
    grad_b = make_entry(OpType.NEGATE, [quot], f"{node.name}_grad_rhs")
    return [grad_a, grad_b]


@register_gradient(OpType.NEGATE)
def negate_grad(node: Node, out_grads: List[NodeEntry]) -> List[NodeEntry]:
    return [make_entry(OpType.NEGATE, [out_grads[0]], f"{node.name}_grad")]


@register_gradient(OpType.EXP)
def exp_grad(node: Node, out_grads: List[NodeEntry]) -> List[NodeEntry]:
    # Reuses the forward output: d(e^x)/dx = e^x
    return [_mul(out_grads[0], _out(node), f"{node.name}_grad")]


@register_gradient(OpType.SIN)
def sin_grad(node: Node, out_grads: List[NodeEntry]) -> List[NodeEntry]:
    cos_x = make_entry(OpType.COS, [node.inputs[0]], f"{node.name}_grad_cos")
    return [_mul(out_grads[0], cos_x, f"{node.name}_grad")]


@register_gradient(OpType.COS)
def cos_grad(node: Node, out_grads: List[NodeEntry]) -> List[NodeEntry]:
    sin_x = make_entry(OpType.SIN, [node.inputs[0]], f"{node.name}_grad_sin")
    prod = _mul(out_grads[0], sin_x, f"{node.name}_grad_mul")
    return [make_entry(OpType.NEGATE, [prod], f"{node.name}_grad")]


@register_gradient(OpType.SQRT)
def sqrt_grad(node: Node, out_grads: List[NodeEntry]) -> List[NodeEntry]:
    half = make_entry(
        OpType.MUL_SCALAR, [out_grads[0]], f"{node.name}_grad_half", {"scalar": 0.5}
    )
    return [make_entry(OpType.DIVIDE, [half, _out(node)], f"{node.name}_grad")]


@register_gradient(OpType.MUL_SCALAR)
def mul_scalar_grad(node: Node, out_grads: List[NodeEntry]) -> List[NodeEntry]:
    return [
        make_entry(
            OpType.MUL_SCALAR,
            [out_grads[0]],
            f"{node.name}_grad",
            {"scalar": node.get_attr("scalar")},
        )
    ]


@register_gradient(OpType.IDENTITY)
def identity_grad(node: Node, out_grads: List[NodeEntry]) -> List[NodeEntry]:
    return [out_grads[0]]


@register_gradient(OpType.SUM)
def sum_grad(node: Node, out_grads: List[NodeEntry]) -> List[NodeEntry]:
    return [
        make_entry(
            OpType.BROADCAST_LIKE,
            [out_grads[0], node.inputs[0]],
            f"{node.name}_grad",
        )
    ]


def _concat_parts(node: Node, out_grads: List[NodeEntry]) -> List[NodeEntry]:
    # Concat needs every part at full rank, so unused ports get shaped zeros.
    parts = []
    for i, g in enumerate(out_grads):
        if g.node.op == OpType.ZERO:
            g = make_entry(
                OpType.ZEROS_LIKE, [_out(node, i)], f"{node.name}_grad_zeros{i}"
            )
        parts.append(g)
    return parts


@register_gradient(OpType.SPLIT)
def split_grad(node: Node, out_grads: List[NodeEntry]) -> List[NodeEntry]:
    parts = _concat_parts(node, out_grads)
    return [make_entry(OpType.CONCAT, parts, f"{node.name}_grad")]


@register_gradient(OpType.CONCAT)
def concat_grad(node: Node, out_grads: List[NodeEntry]) -> List[NodeEntry]:
    sections = len(node.inputs)
    splitter = Node.create(
        OpType.SPLIT_LIKE,
        [out_grads[0], *node.inputs],
        f"{node.name}_grad",
        {"sections": sections},
        num_outputs=sections,
    )
    return [NodeEntry(splitter, i) for i in range(sections)]


@register_gradient(OpType.EWISE_SUM)
def ewise_sum_grad(node: Node, out_grads: List[NodeEntry]) -> List[NodeEntry]:
    return [out_grads[0]] * len(node.inputs)


@register_gradient(OpType.ZERO)
def zero_grad(node: Node, out_grads: List[NodeEntry]) -> List[NodeEntry]:
    return []


def _zero(node: Node, tag: str) -> NodeEntry:
    return make_entry(OpType.ZERO, [], f"{node.name}_grad_{tag}")


@register_gradient(OpType.BROADCAST_LIKE)
def broadcast_like_grad(node: Node, out_grads: List[NodeEntry]) -> List[NodeEntry]:
    # The shape donor gets no gradient.
    a = node.inputs[0]
    reduced = make_entry(OpType.SUM_LIKE, [out_grads[0], a], f"{node.name}_grad")
    return [reduced, _zero(node, "like")]


@register_gradient(OpType.SUM_LIKE)
def sum_like_grad(node: Node, out_grads: List[NodeEntry]) -> List[NodeEntry]:
    a = node.inputs[0]
    expanded = make_entry(OpType.BROADCAST_LIKE, [out_grads[0], a], f"{node.name}_grad")
    return [expanded, _zero(node, "like")]


@register_gradient(OpType.SPLIT_LIKE)
def split_like_grad(node: Node, out_grads: List[NodeEntry]) -> List[NodeEntry]:
    parts = _concat_parts(node, out_grads)
    joined = make_entry(OpType.CONCAT, parts, f"{node.name}_grad")
    return [joined] + [_zero(node, f"like{i}") for i in range(len(node.inputs) - 1)]


@register_gradient(OpType.ZEROS_LIKE)
def zeros_like_grad(node: Node, out_grads: List[NodeEntry]) -> List[NodeEntry]:
    return [_zero(node, "in")]
