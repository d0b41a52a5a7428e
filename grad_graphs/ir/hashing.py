import hashlib
import json
import numpy as np
from typing import Dict, Sequence
from .. import config
from .graph import topological_sort
from .node import Node, NodeEntry


def _hash_string(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8")).hexdigest()


def _attrs_str(attrs) -> str:
    def _default(o):
        if isinstance(o, np.ndarray):
            return o.tolist()
        return str(o)

    return json.dumps(attrs, sort_keys=True, default=_default)


def _variable_name(node: Node) -> str:
    # Mirrored clones of a variable stand for the same input.
    name, suffix = node.name, config.MIRROR_SUFFIX
    while suffix and name.endswith(suffix):
        name = name[: -len(suffix)]
    return name


def _node_hash(node: Node, memo: Dict[Node, str]) -> str:
    if node.is_variable:
        return _hash_string(f"VAR|{_variable_name(node)}|{_attrs_str(node.attrs)}")

    # Input order matters, gradient sums are order sensitive
    input_hashes = [f"{memo[e.node]}:{e.index}" for e in node.inputs]
    dep_hashes = [memo[n] for n in node.control_deps]
    content = (
        f"{node.op}|{node.num_outputs}|{_attrs_str(node.attrs)}|"
        f"{','.join(input_hashes)}|{','.join(dep_hashes)}"
    )
    return _hash_string(content)


def get_structural_hash(node: Node, memo: Dict[Node, str] = None) -> str:
    """
    Hash of the computation rooted at `node`. Operator node names do not
    contribute, so a graph and its mirrored copy hash the same. Variables are
    identified by name, ignoring any mirror suffix.
    """
    if memo is None:
        memo = {}
    if node in memo:
        return memo[node]

    # Producers first, so every input hash is in the memo when needed
    for n in topological_sort(NodeEntry(node, 0)):
        if n not in memo:
            memo[n] = _node_hash(n, memo)
    return memo[node]


def compute_structural_hash(entry: NodeEntry, memo: Dict[Node, str] = None) -> str:
    return _hash_string(f"{get_structural_hash(entry.node, memo)}:{entry.index}")


def graphs_isomorphic(a: Sequence[NodeEntry], b: Sequence[NodeEntry]) -> bool:
    """True when both output lists compute the same thing, up to node identity."""
    if len(a) != len(b):
        return False
    memo_a: Dict[Node, str] = {}
    memo_b: Dict[Node, str] = {}
    return all(
        compute_structural_hash(x, memo_a) == compute_structural_hash(y, memo_b)
        for x, y in zip(a, b)
    )
