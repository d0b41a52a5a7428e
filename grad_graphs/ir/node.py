from dataclasses import dataclass, field, replace
from typing import List, Optional, Dict, Any
import uuid


@dataclass(frozen=True)
class NodeEntry:
    """
    An edge into the graph: output port `index` of `node`.

    Two entries are the same edge when they point at the same node object and
    the same port. `version` is carried for display only.
    """

    node: "Node"
    index: int = 0
    version: int = field(default=0, compare=False)

    def __repr__(self):
        suffix = f":{self.index}" if self.node.num_outputs > 1 else ""
        return f"{self.node.name}{suffix}"


@dataclass(eq=False)
class Node:
    # None marks a variable (graph input or constant).
    op: Optional[str]
    inputs: List[NodeEntry] = field(default_factory=list)
    name: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    attrs: Dict[str, Any] = field(default_factory=dict)
    # Ordering-only edges, never carry a value.
    control_deps: List["Node"] = field(default_factory=list)
    num_outputs: int = 1

    @classmethod
    def create(
        cls,
        op: Optional[str],
        inputs: Optional[List[NodeEntry]] = None,
        name: Optional[str] = None,
        attrs: Optional[Dict[str, Any]] = None,
        num_outputs: int = 1,
    ) -> "Node":
        node = cls(
            op,
            list(inputs) if inputs else [],
            attrs=dict(attrs) if attrs else {},
            num_outputs=num_outputs,
        )
        if name is not None:
            node.name = name
        return node

    @property
    def is_variable(self) -> bool:
        return self.op is None

    def get_attr(self, key: str, default: Any = None) -> Any:
        return self.attrs.get(key, default)

    def output(self, index: int = 0) -> NodeEntry:
        if not 0 <= index < self.num_outputs:
            raise ValueError(
                f"Node '{self.name}' has {self.num_outputs} outputs, asked for {index}"
            )
        return NodeEntry(self, index)

    def clone(self, name_suffix: str = "") -> "Node":
        """
        Shallow copy: same op, same attribute values. The input and control
        dependency lists are fresh so the copy can be rewired on its own.
        """
        return replace(
            self,
            inputs=list(self.inputs),
            name=self.name + name_suffix,
            attrs=dict(self.attrs),
            control_deps=list(self.control_deps),
        )

    def get_details(self) -> str:
        lines = []
        header = f"Node: {self.name} [{self.op or 'Variable'}]"
        lines.append(header)
        lines.append("-" * len(header))
        lines.append(f"Outputs          : {self.num_outputs}")
        lines.append("Inputs           :")
        if not self.inputs:
            lines.append("  (None - Leaf Node)")
        else:
            for idx, e in enumerate(self.inputs):
                lines.append(f"  [{idx}] {e.node.name:<10} port {e.index}")
        if self.control_deps:
            names = ", ".join(n.name for n in self.control_deps)
            lines.append(f"Control Deps     : {names}")
        if self.attrs:
            lines.append("Attributes       :")
            for k, v in self.attrs.items():
                lines.append(f"  {k:<14} : {v}")
        return "\n".join(lines)

    def __repr__(self):
        attr_keys = list(self.attrs.keys()) if self.attrs else []
        attrs_summary = f" | attrs={attr_keys}" if attr_keys else ""
        return f"[{self.num_outputs}{attrs_summary}] {self.op or 'Variable'}({self.name})"


def make_entry(
    op: str,
    inputs: List[NodeEntry],
    name: Optional[str] = None,
    attrs: Optional[Dict[str, Any]] = None,
) -> NodeEntry:
    """Creates a fresh single-output node and returns its only output."""
    return NodeEntry(Node.create(op, inputs, name, attrs), 0)
