from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Union
import numpy as np
from .node import Node, NodeEntry
from ..ops.atomic_types import OpType
from ..ops.registry import DEFAULT_REGISTRY, OpRegistry


def _children(node: Node) -> List[Node]:
    # Value edges first, then ordering-only edges.
    return [e.node for e in node.inputs] + list(node.control_deps)


def dfs_visit(roots: Sequence[NodeEntry], visitor: Callable[[Node], None]):
    """
    Post-order DFS from `roots`. Every reachable node is passed to `visitor`
    exactly once, after all of its producers and control dependencies.
    """
    visited: Set[Node] = set()
    for root in roots:
        if root.node in visited:
            continue
        visited.add(root.node)
        # (node, index of the next child to descend into)
        stack = [(root.node, 0)]
        while stack:
            node, child_idx = stack[-1]
            children = _children(node)
            if child_idx < len(children):
                stack[-1] = (node, child_idx + 1)
                child = children[child_idx]
                if child not in visited:
                    visited.add(child)
                    stack.append((child, 0))
            else:
                stack.pop()
                visitor(node)


def topological_sort(roots: Union[NodeEntry, Sequence[NodeEntry]]) -> List[Node]:
    """
    Returns a linear order of every node reachable from `roots`, producers first.
    """
    if isinstance(roots, NodeEntry):
        roots = [roots]
    order: List[Node] = []
    dfs_visit(roots, order.append)
    return order


def get_variables(roots: Union[NodeEntry, Sequence[NodeEntry]]) -> List[Node]:
    """Returns all variable (leaf) nodes the graph depends on."""
    return [n for n in topological_sort(roots) if n.is_variable]


@dataclass
class Graph:
    outputs: List[NodeEntry] = field(default_factory=list)
    # Side-channel parameters into and results out of passes.
    attrs: Dict[str, Any] = field(default_factory=dict)

    def has_attr(self, key: str) -> bool:
        return key in self.attrs

    def get_attr(self, key: str, default: Any = None) -> Any:
        return self.attrs.get(key, default)

    def set_attr(self, key: str, value: Any):
        self.attrs[key] = value

    def topo_order(self) -> List[Node]:
        return topological_sort(self.outputs)

    def apply(self, pass_names: Union[str, Sequence[str]], **kwargs) -> "Graph":
        from ..passes.registry import PassRegistry

        if isinstance(pass_names, str):
            pass_names = [pass_names]
        return PassRegistry.apply_passes(self, pass_names, **kwargs)

    def debug_str(self) -> str:
        lines = []
        for node in self.topo_order():
            if node.is_variable:
                lines.append(f"Variable:{node.name}")
                continue
            args = ", ".join(repr(e) for e in node.inputs)
            line = f"Op:{node.op}, Name={node.name}, Inputs=[{args}]"
            if node.attrs:
                line += f", Attrs={node.attrs}"
            if node.control_deps:
                deps = ", ".join(n.name for n in node.control_deps)
                line += f", ControlDeps=[{deps}]"
            lines.append(line)
        outs = ", ".join(repr(e) for e in self.outputs)
        lines.append(f"Outputs=[{outs}]")
        return "\n".join(lines)


class GraphBuilder:
    def __init__(self, registry: Optional[OpRegistry] = None):
        self.registry = registry or DEFAULT_REGISTRY
        self.variables = {}
        self._count = 0

    def _next_name(self, op_name):
        self._count += 1
        return f"{op_name.lower()}_{self._count}"

    # --- Core Nodes ---

    def variable(self, name: str) -> NodeEntry:
        if name in self.variables:
            raise ValueError(f"Variable '{name}' already defined")
        node = Node.create(None, name=name)
        self.variables[name] = node
        return NodeEntry(node, 0)

    def const(self, value) -> NodeEntry:
        node = Node.create(
            None,
            name=self._next_name("const"),
            attrs={"value": np.asarray(value, dtype=np.float32)},
        )
        return NodeEntry(node, 0)

    def op(
        self,
        op_type: str,
        inputs: List[NodeEntry],
        attrs: Optional[Dict[str, Any]] = None,
        name: Optional[str] = None,
    ) -> Union[NodeEntry, List[NodeEntry]]:
        op_def = self.registry.get(op_type)
        if op_def is None:
            raise ValueError(f"Unknown operator '{op_type}'")
        attrs = attrs or {}
        if op_def.num_inputs >= 0 and len(inputs) != op_def.num_inputs:
            raise ValueError(
                f"{op_type} requires {op_def.num_inputs} inputs, got {len(inputs)}"
            )
        node = Node.create(
            op_type,
            inputs,
            name or self._next_name(op_type),
            attrs,
            num_outputs=op_def.outputs_for(attrs),
        )
        if node.num_outputs == 1:
            return NodeEntry(node, 0)
        return [NodeEntry(node, i) for i in range(node.num_outputs)]

    # --- Math Ops ---

    def add(self, a, b):
        return self.op(OpType.ADD, [a, b])

    def mul(self, a, b):
        return self.op(OpType.MUL, [a, b])

    def divide(self, a, b):
        return self.op(OpType.DIVIDE, [a, b])

    def negate(self, a):
        return self.op(OpType.NEGATE, [a])

    def exp(self, a):
        return self.op(OpType.EXP, [a])

    def sin(self, a):
        return self.op(OpType.SIN, [a])

    def cos(self, a):
        return self.op(OpType.COS, [a])

    def sqrt(self, a):
        return self.op(OpType.SQRT, [a])

    def mul_scalar(self, a, scalar: float):
        return self.op(OpType.MUL_SCALAR, [a], {"scalar": scalar})

    def identity(self, a):
        return self.op(OpType.IDENTITY, [a])

    def ewise_sum(self, entries: List[NodeEntry]):
        return self.op(OpType.EWISE_SUM, entries)

    def zeros(self):
        return self.op(OpType.ZERO, [])

    def zeros_like(self, a):
        return self.op(OpType.ZEROS_LIKE, [a])

    # --- Reduction Ops ---

    def sum(self, a):
        return self.op(OpType.SUM, [a])

    def broadcast_like(self, a, like):
        return self.op(OpType.BROADCAST_LIKE, [a, like])

    def sum_like(self, a, like):
        return self.op(OpType.SUM_LIKE, [a, like])

    # --- Manipulation Ops ---

    def split(self, a, sections: int) -> List[NodeEntry]:
        outs = self.op(OpType.SPLIT, [a], {"sections": sections})
        return outs if isinstance(outs, list) else [outs]

    def split_like(self, a, likes: List[NodeEntry]) -> List[NodeEntry]:
        outs = self.op(OpType.SPLIT_LIKE, [a, *likes], {"sections": len(likes)})
        return outs if isinstance(outs, list) else [outs]

    def concat(self, entries: List[NodeEntry]):
        return self.op(OpType.CONCAT, entries)
